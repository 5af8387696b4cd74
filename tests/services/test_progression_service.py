"""ProgressionService 테스트 — 경험치/스킬/프레스티지/업적 + 동시성"""

import threading

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from src.core.errors import NotFoundError
from src.core.event_types import EventTypes
from src.core.operation import OperationStatus
from src.core.progression.models import SkillBranchKind
from src.db.models import Base
from src.services.player_state_service import PlayerStateService
from src.services.progression_service import ProgressionService


@pytest.fixture()
def service(catalog, store, bus) -> ProgressionService:
    progression = ProgressionService(catalog, store, bus)
    progression.register_player("p1")
    return progression


class TestExperience:
    def test_level_up_persisted_and_emitted(self, service, record_events):
        recorder = record_events(EventTypes.LEVEL_UP)
        result = service.add_experience("p1", 1000)

        assert result.new_level == 5
        player = service.get_player("p1")
        assert player.progression.current_level == 5
        assert player.progression.mastery_points == 1
        assert recorder.of(EventTypes.LEVEL_UP) == [
            {"player_id": "p1", "new_level": 5, "rewards": [5]}
        ]

    def test_negative_amount_not_saved(self, service, store):
        result = service.add_experience("p1", -5)
        assert result.status == OperationStatus.INVALID
        assert store.load("p1").version == 0

    def test_unknown_player(self, service):
        with pytest.raises(NotFoundError):
            service.add_experience("ghost", 10)
        with pytest.raises(NotFoundError):
            service.get_player("ghost")

    def test_register_is_idempotent(self, service):
        service.add_experience("p1", 150)
        assert service.register_player("p1").progression.total_experience == 150


class TestSkills:
    def test_upgrade_requires_mastery(self, service):
        result = service.upgrade_skill("p1", SkillBranchKind.SPEED, 0)
        assert result.status == OperationStatus.INVALID
        assert result.reason == "insufficient_mastery_points"

    def test_upgrade_spends_mastery(self, service, record_events):
        recorder = record_events(EventTypes.SKILL_UPGRADED)
        service.add_experience("p1", 1000)

        result = service.upgrade_skill("p1", SkillBranchKind.SPEED, 0)
        assert result.status == OperationStatus.APPLIED
        assert result.mastery_points == 0
        assert service.get_skill_bonus("p1", SkillBranchKind.SPEED) == pytest.approx(0.05)
        assert recorder.of(EventTypes.SKILL_UPGRADED) == [
            {"player_id": "p1", "branch": "speed", "new_level": 1}
        ]

    def test_out_of_order_refused(self, service):
        service.add_experience("p1", 5500)
        result = service.upgrade_skill("p1", SkillBranchKind.LUCK, 1)
        assert result.reason == "tier_out_of_order"
        assert service.get_player("p1").progression.mastery_points == 3


class TestPrestige:
    def test_below_floor(self, service, record_events):
        recorder = record_events(EventTypes.PRESTIGE)
        assert service.prestige("p1") is False
        assert recorder.events == []

    def test_prestige_resets(self, service, store, record_events):
        recorder = record_events(EventTypes.PRESTIGE)

        def operation(state):
            updated = state.copy()
            updated.progression.current_level = 50
            return updated, None

        store.transact("p1", operation)
        assert service.prestige("p1") is True

        player = service.get_player("p1")
        assert player.progression.current_level == 1
        assert player.progression.prestige_count == 1
        assert recorder.of(EventTypes.PRESTIGE) == [{"player_id": "p1", "prestige_count": 1}]


class TestAchievements:
    def test_grant_once(self, service, record_events):
        recorder = record_events(EventTypes.QUEST_AVAILABILITY_CHANGED)
        assert service.grant_achievement("p1", "wallet_linked") is True
        assert service.grant_achievement("p1", "wallet_linked") is False
        assert service.get_player("p1").achievements == {"wallet_linked"}
        assert len(recorder.events) == 1

    def test_unknown_achievement(self, service):
        with pytest.raises(NotFoundError):
            service.grant_achievement("p1", "moon_landing")


class TestConcurrency:
    def test_parallel_grants_all_applied(self, tmp_path, catalog, bus):
        """같은 플레이어에 대한 동시 연산은 잠금으로 직렬화되어 유실 없음"""
        engine = create_engine(
            f"sqlite:///{tmp_path / 'ledger.db'}",
            connect_args={"check_same_thread": False},
        )
        Base.metadata.create_all(engine)
        store = PlayerStateService(sessionmaker(bind=engine, autocommit=False, autoflush=False))
        service = ProgressionService(catalog, store, bus)
        service.register_player("p1")

        errors: list[Exception] = []

        def worker():
            try:
                for _ in range(5):
                    service.add_experience("p1", 100)
            except Exception as exc:  # noqa: BLE001
                errors.append(exc)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)

        assert errors == []
        player = service.get_player("p1")
        assert player.progression.total_experience == 4000
        assert player.version == 40
        engine.dispose()
