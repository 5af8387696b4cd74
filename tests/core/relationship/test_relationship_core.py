"""관계 점수 Core 테스트"""

from src.core.relationship import (
    RelationshipChange,
    apply_dialogue_choice,
    apply_relationship_changes,
    get_relationship_score,
)


class TestRelationshipScore:
    def test_missing_is_zero(self):
        assert get_relationship_score({}, "nova") == 0

    def test_existing(self):
        assert get_relationship_score({"nova": -3}, "nova") == -3


class TestApplyChanges:
    def test_additive_and_unbounded(self):
        scores, changes = apply_relationship_changes(
            {"nova": 5}, {"nova": -20, "vex": 1000}, reason="quest:q1"
        )
        assert scores == {"nova": -15, "vex": 1000}
        assert [c.delta for c in changes] == [-20, 1000]
        assert all(c.reason == "quest:q1" for c in changes)

    def test_zero_delta_skipped(self):
        scores, changes = apply_relationship_changes({"nova": 5}, {"nova": 0})
        assert scores == {"nova": 5}
        assert changes == []

    def test_input_not_mutated(self):
        original = {"nova": 5}
        apply_relationship_changes(original, {"nova": 1})
        assert original == {"nova": 5}


class TestDialogueChoice:
    def test_dialogue_choice(self):
        scores, changes = apply_dialogue_choice({}, "vex", 7)
        assert scores == {"vex": 7}
        assert changes == [
            RelationshipChange(
                character_id="vex", old_score=0, new_score=7, reason="dialogue_choice"
            )
        ]
