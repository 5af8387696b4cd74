"""스킬 트리 — 다섯 브랜치, 단계별 순차 구매, 보너스 합산"""

import logging
from dataclasses import replace
from typing import Mapping

from src.core.progression.models import (
    PlayerProgression,
    SkillBonus,
    SkillBranch,
    SkillBranchKind,
    SkillTier,
    SkillUpgradeResult,
)
from src.core.operation import OperationStatus

logger = logging.getLogger(__name__)

SkillTree = Mapping[SkillBranchKind, tuple[SkillTier, ...]]

# 브랜치별 단계 이름 (비용/보너스 곡선은 공통)
_TIER_NAMES: dict[SkillBranchKind, tuple[str, ...]] = {
    SkillBranchKind.SPEED: (
        "Quick Feet",
        "Lightning Reflexes",
        "Speed Demon",
        "Velocity Master",
        "Sonic Boom",
    ),
    SkillBranchKind.ACCURACY: (
        "Steady Hands",
        "Precision Aim",
        "Bullseye",
        "Perfect Shot",
        "Sniper Mode",
    ),
    SkillBranchKind.ENDURANCE: (
        "Stamina Boost",
        "Iron Will",
        "Unstoppable",
        "Titan Mode",
        "Immortal",
    ),
    SkillBranchKind.LUCK: (
        "Lucky Break",
        "Fortune Favors",
        "Lucky Charm",
        "Jackpot",
        "Miracle",
    ),
    SkillBranchKind.STRATEGY: (
        "Tactical Mind",
        "Strategic Planning",
        "Master Planner",
        "Grand Strategist",
        "Genius",
    ),
}
_TIER_COSTS: tuple[int, ...] = (1, 2, 3, 5, 7)
_TIER_MAGNITUDES: tuple[float, ...] = (0.05, 0.10, 0.15, 0.25, 0.35)


def _build_default_tree() -> dict[SkillBranchKind, tuple[SkillTier, ...]]:
    tree: dict[SkillBranchKind, tuple[SkillTier, ...]] = {}
    for kind, names in _TIER_NAMES.items():
        tiers = []
        for index, name in enumerate(names):
            magnitude = _TIER_MAGNITUDES[index]
            tiers.append(
                SkillTier(
                    required_level=index,
                    name=name,
                    cost=_TIER_COSTS[index],
                    bonus=SkillBonus(
                        kind="multiplier",
                        magnitude=magnitude,
                        description=f"+{int(round(magnitude * 100))}% {kind.value}",
                    ),
                )
            )
        tree[kind] = tuple(tiers)
    return tree


DEFAULT_SKILL_TREE: dict[SkillBranchKind, tuple[SkillTier, ...]] = (
    _build_default_tree()
)


def upgrade_skill(
    progression: PlayerProgression,
    skills: Mapping[SkillBranchKind, SkillBranch],
    branch: SkillBranchKind,
    tier_index: int,
    tree: SkillTree = DEFAULT_SKILL_TREE,
) -> tuple[PlayerProgression, dict[SkillBranchKind, SkillBranch], SkillUpgradeResult]:
    """스킬 단계 구매.

    성공 조건:
    1. 단계가 존재
    2. 브랜치 현재 레벨 == 단계의 required_level (순서대로만 구매)
    3. 브랜치 레벨 < max_level
    4. mastery_points >= cost

    실패 시 원본 그대로 반환 (부분 적용 없음).
    """
    current = skills.get(branch) or SkillBranch(kind=branch)
    tiers = tree.get(branch, ())

    def _fail(reason: str):
        logger.debug(
            "Skill upgrade refused: %s tier=%d (%s)", branch.value, tier_index, reason
        )
        return (
            progression,
            dict(skills),
            SkillUpgradeResult(
                status=OperationStatus.INVALID,
                branch=branch,
                new_level=current.level,
                mastery_points=progression.mastery_points,
                reason=reason,
            ),
        )

    if tier_index < 0 or tier_index >= len(tiers):
        return _fail("unknown_tier")

    tier = tiers[tier_index]
    if current.level != tier.required_level:
        return _fail("tier_out_of_order")
    if current.level >= current.max_level:
        return _fail("branch_maxed")
    if progression.mastery_points < tier.cost:
        return _fail("insufficient_mastery_points")

    updated_progression = replace(
        progression, mastery_points=progression.mastery_points - tier.cost
    )
    updated_branch = replace(
        current,
        level=current.level + 1,
        bonuses=[*current.bonuses, tier.bonus],
    )
    updated_skills = dict(skills)
    updated_skills[branch] = updated_branch

    logger.info(
        "Skill upgraded: %s -> level %d (%s)",
        branch.value,
        updated_branch.level,
        tier.name,
    )
    return (
        updated_progression,
        updated_skills,
        SkillUpgradeResult(
            status=OperationStatus.APPLIED,
            branch=branch,
            new_level=updated_branch.level,
            mastery_points=updated_progression.mastery_points,
        ),
    )


def get_skill_bonus(
    skills: Mapping[SkillBranchKind, SkillBranch],
    branch: SkillBranchKind,
) -> float:
    """보유 보너스 합계. 외부 게임플레이 시스템이 배율로 사용."""
    current = skills.get(branch)
    if current is None:
        return 0.0
    return sum(bonus.magnitude for bonus in current.bonuses)
