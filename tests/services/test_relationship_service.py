"""RelationshipService 테스트"""

import pytest

from src.core.errors import NotFoundError
from src.core.event_types import EventTypes
from src.services.relationship_service import RelationshipService


@pytest.fixture()
def service(catalog, store, bus) -> RelationshipService:
    store.create("p1")
    return RelationshipService(catalog, store, bus)


class TestDialogueChoice:
    def test_scores_accumulate(self, service, record_events):
        recorder = record_events(EventTypes.RELATIONSHIP_CHANGED)
        service.apply_dialogue_choice("p1", "nova", 8)
        changes = service.apply_dialogue_choice("p1", "nova", -3)

        assert changes[0].old_score == 8
        assert changes[0].new_score == 5
        assert service.get_scores("p1") == {"nova": 5}
        assert [d["delta"] for d in recorder.of(EventTypes.RELATIONSHIP_CHANGED)] == [8, -3]

    def test_zero_delta_no_save(self, service, store):
        assert service.apply_dialogue_choice("p1", "nova", 0) == []
        assert store.load("p1").version == 0

    def test_unknown_character(self, service):
        with pytest.raises(NotFoundError):
            service.apply_dialogue_choice("p1", "ghost", 1)


class TestEvolution:
    def test_stage_follows_relationship(self, service):
        assert service.get_evolution_stage("p1", "nova") == 0
        service.apply_dialogue_choice("p1", "nova", 10)
        assert service.get_evolution_stage("p1", "nova") == 1

    def test_unknown_player(self, service):
        with pytest.raises(NotFoundError):
            service.get_evolution_stage("ghost", "nova")
