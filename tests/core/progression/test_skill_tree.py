"""스킬 트리 + 시즌 랭크 테스트"""

import pytest

from src.core.operation import OperationStatus
from src.core.progression.models import (
    PlayerProgression,
    SeasonalRankTier,
    SkillBranch,
    SkillBranchKind,
    new_skill_tree,
)
from src.core.progression.seasonal import calculate_seasonal_rank
from src.core.progression.skill_tree import (
    DEFAULT_SKILL_TREE,
    get_skill_bonus,
    upgrade_skill,
)

SPEED = SkillBranchKind.SPEED


class TestUpgradeSkill:
    def test_first_tier_purchase(self):
        progression, skills, result = upgrade_skill(
            PlayerProgression(mastery_points=5), new_skill_tree(), SPEED, 0
        )
        assert result.status == OperationStatus.APPLIED
        assert result.new_level == 1
        assert progression.mastery_points == 5 - DEFAULT_SKILL_TREE[SPEED][0].cost
        assert skills[SPEED].bonuses == [DEFAULT_SKILL_TREE[SPEED][0].bonus]

    @pytest.mark.parametrize("mastery", [0, 3, 100])
    def test_out_of_order_refused_regardless_of_balance(self, mastery):
        """tier 2를 tier 0보다 먼저 살 수 없다 (포인트와 무관), 변경 없음"""
        original = PlayerProgression(mastery_points=mastery)
        skills = new_skill_tree()
        progression, new_skills, result = upgrade_skill(original, skills, SPEED, 2)
        assert result.status == OperationStatus.INVALID
        assert result.reason == "tier_out_of_order"
        assert progression == original
        assert new_skills[SPEED].level == 0
        assert new_skills[SPEED].bonuses == []

    def test_insufficient_mastery(self):
        original = PlayerProgression(mastery_points=0)
        progression, _, result = upgrade_skill(original, new_skill_tree(), SPEED, 0)
        assert result.reason == "insufficient_mastery_points"
        assert progression == original

    def test_unknown_tier(self):
        _, _, result = upgrade_skill(
            PlayerProgression(mastery_points=50), new_skill_tree(), SPEED, 99
        )
        assert result.reason == "unknown_tier"

    def test_branch_maxed(self):
        skills = new_skill_tree()
        skills[SPEED] = SkillBranch(kind=SPEED, level=0, max_level=0)
        _, _, result = upgrade_skill(
            PlayerProgression(mastery_points=50), skills, SPEED, 0
        )
        assert result.reason == "branch_maxed"

    def test_sequential_purchases_sum_bonuses(self):
        progression = PlayerProgression(mastery_points=20)
        skills = new_skill_tree()
        for tier_index in range(3):
            progression, skills, result = upgrade_skill(
                progression, skills, SPEED, tier_index
            )
            assert result.status == OperationStatus.APPLIED

        assert skills[SPEED].level == 3
        assert progression.mastery_points == 20 - (1 + 2 + 3)
        assert get_skill_bonus(skills, SPEED) == pytest.approx(0.05 + 0.10 + 0.15)
        assert get_skill_bonus(skills, SkillBranchKind.LUCK) == 0.0


class TestSeasonalRank:
    @pytest.mark.parametrize(
        "points,tier",
        [
            (0, SeasonalRankTier.BRONZE),
            (499, SeasonalRankTier.BRONZE),
            (500, SeasonalRankTier.SILVER),
            (1500, SeasonalRankTier.GOLD),
            (3000, SeasonalRankTier.PLATINUM),
            (5000, SeasonalRankTier.DIAMOND),
            (7500, SeasonalRankTier.MASTER),
            (10000, SeasonalRankTier.GRANDMASTER),
        ],
    )
    def test_thresholds(self, points, tier):
        assert calculate_seasonal_rank(points).tier == tier

    def test_rank_carries_rewards(self):
        rank = calculate_seasonal_rank(12000, season=3)
        assert rank.season == 3
        assert rank.rewards[0].amount == 50000
