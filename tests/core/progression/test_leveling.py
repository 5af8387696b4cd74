"""레벨 곡선 + 경험치 + 프레스티지 테스트"""

import pytest

from src.core.operation import OperationStatus
from src.core.progression.leveling import (
    DEFAULT_LEVEL_REWARDS,
    PRESTIGE_MASTERY_BONUS,
    add_experience,
    next_level_threshold,
    prestige,
)
from src.core.progression.models import (
    LevelReward,
    PlayerProgression,
    SkillBonus,
    SkillBranch,
    SkillBranchKind,
    new_skill_tree,
)


class TestThresholds:
    @pytest.mark.parametrize(
        "level,expected",
        [
            (1, 100),
            (10, 1000),
            (11, 1200),
            (25, 4000),
            (26, 4400),
            (50, 14000),
            (51, 14800),
            (75, 34000),
            (76, 35600),
        ],
    )
    def test_curve_tiers(self, level, expected):
        assert next_level_threshold(level) == expected

    def test_level_zero_rejected(self):
        with pytest.raises(ValueError):
            next_level_threshold(0)


class TestAddExperience:
    def test_250_xp_from_level_1(self):
        progression, result = add_experience(PlayerProgression(), 250)
        assert progression.current_level == 2
        assert progression.level_experience == 150
        assert progression.total_experience == 250
        assert result.leveled_up is True
        assert result.new_level == 2

    def test_grouping_does_not_change_result(self):
        """한 번에 주든 나눠 주든 결과 동일"""
        single, _ = add_experience(PlayerProgression(), 5500)

        split = PlayerProgression()
        for chunk in (100, 1400, 2000, 1999, 1):
            split, _ = add_experience(split, chunk)

        assert split == single

    def test_small_grant_no_level_up(self):
        progression, result = add_experience(PlayerProgression(), 99)
        assert progression.current_level == 1
        assert progression.level_experience == 99
        assert result.leveled_up is False
        assert result.triggered_rewards == []

    def test_negative_amount_invalid_and_unchanged(self):
        original = PlayerProgression(current_level=3, total_experience=320)
        progression, result = add_experience(original, -10)
        assert result.status == OperationStatus.INVALID
        assert progression == original

    def test_multi_level_rewards_in_order(self):
        """L1 → L11: 레벨 5, 10 보상이 순서대로, 마스터리 포인트 합산"""
        progression, result = add_experience(PlayerProgression(), 5500)
        assert progression.current_level == 11
        assert progression.level_experience == 0
        assert [r.level for r in result.triggered_rewards] == [5, 10]
        expected_mastery = (
            DEFAULT_LEVEL_REWARDS[5].mastery_points
            + DEFAULT_LEVEL_REWARDS[10].mastery_points
        )
        assert progression.mastery_points == expected_mastery

    def test_custom_reward_table(self):
        table = {2: LevelReward(level=2, mastery_points=4)}
        progression, result = add_experience(PlayerProgression(), 100, table)
        assert [r.level for r in result.triggered_rewards] == [2]
        assert progression.mastery_points == 4

    def test_input_not_mutated(self):
        original = PlayerProgression()
        add_experience(original, 1000)
        assert original.current_level == 1
        assert original.total_experience == 0


class TestPrestige:
    def _maxed_skills(self):
        skills = new_skill_tree()
        skills[SkillBranchKind.SPEED] = SkillBranch(
            kind=SkillBranchKind.SPEED,
            level=2,
            bonuses=[SkillBonus("multiplier", 0.05), SkillBonus("multiplier", 0.10)],
        )
        return skills

    def test_prestige_below_50_fails(self):
        original = PlayerProgression(current_level=49, mastery_points=3)
        skills = self._maxed_skills()
        progression, new_skills, ok = prestige(original, skills)
        assert ok is False
        assert progression == original
        assert new_skills[SkillBranchKind.SPEED].level == 2

    def test_prestige_resets_and_grants_mastery(self):
        original = PlayerProgression(
            current_level=50,
            total_experience=200000,
            level_experience=300,
            mastery_points=3,
        )
        progression, skills, ok = prestige(original, self._maxed_skills())
        assert ok is True
        assert progression.current_level == 1
        assert progression.total_experience == 0
        assert progression.level_experience == 0
        assert progression.prestige_count == 1
        assert progression.mastery_points == 3 + PRESTIGE_MASTERY_BONUS
        for branch in skills.values():
            assert branch.level == 0
            assert branch.bonuses == []
