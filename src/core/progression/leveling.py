"""레벨 곡선 + 경험치 적용 + 프레스티지 — 순수 함수"""

import logging
from dataclasses import replace
from typing import Mapping, Optional

from src.core.progression.models import (
    LevelReward,
    LevelUpResult,
    PlayerProgression,
    SkillBranch,
    SkillBranchKind,
)
from src.core.operation import OperationStatus

logger = logging.getLogger(__name__)

# === 레벨 곡선 (레벨 L을 벗어나는 데 필요한 경험치) ===
# (상한 레벨, 기본값, 기울기, 기준 레벨)
XP_CURVE_TIERS: tuple[tuple[int, int, int, int], ...] = (
    (10, 0, 100, 0),
    (25, 1000, 200, 10),
    (50, 4000, 400, 25),
    (75, 14000, 800, 50),
)
XP_CURVE_TAIL: tuple[int, int, int] = (34000, 1600, 75)

# === 프레스티지 ===
PRESTIGE_LEVEL_FLOOR = 50
PRESTIGE_MASTERY_BONUS = 10

# === 레벨 보상 기본 테이블 ===
DEFAULT_LEVEL_REWARDS: dict[int, LevelReward] = {
    5: LevelReward(
        level=5,
        rush_tokens=100,
        mastery_points=1,
        nft_rewards=("speed-demon-badge",),
        cosmetic_rewards=("skin:rookie-runner",),
    ),
    10: LevelReward(
        level=10,
        rush_tokens=500,
        mastery_points=2,
        nft_rewards=("precision-master",),
        cosmetic_rewards=("trail:lightning-trail",),
    ),
    25: LevelReward(
        level=25,
        rush_tokens=2000,
        mastery_points=5,
        nft_rewards=("endurance-champion",),
        cosmetic_rewards=("avatar:elite-runner",),
    ),
    50: LevelReward(
        level=50,
        rush_tokens=10000,
        mastery_points=10,
        nft_rewards=("master-runner",),
        cosmetic_rewards=("title:master-of-the-rush",),
    ),
}


def next_level_threshold(level: int) -> int:
    """레벨 level에서 다음 레벨로 오르는 데 필요한 경험치.

    구간별 선형, 구간이 올라갈수록 기울기가 두 배.
    """
    if level < 1:
        raise ValueError(f"level must be >= 1, got {level}")
    for max_level, base, slope, offset in XP_CURVE_TIERS:
        if level <= max_level:
            return base + (level - offset) * slope
    base, slope, offset = XP_CURVE_TAIL
    return base + (level - offset) * slope


def add_experience(
    progression: PlayerProgression,
    amount: int,
    level_rewards: Optional[Mapping[int, LevelReward]] = None,
) -> tuple[PlayerProgression, LevelUpResult]:
    """경험치 적용. 한 번에 여러 레벨이 오를 수 있다 (재귀 없이 루프).

    중간 레벨 보상은 도달 순서대로 반환하고, 보상에 포함된
    마스터리 포인트는 원장에 바로 더한다.
    """
    if amount < 0:
        return progression, LevelUpResult(
            status=OperationStatus.INVALID,
            new_level=progression.current_level,
            reason="negative_amount",
        )

    rewards_table = DEFAULT_LEVEL_REWARDS if level_rewards is None else level_rewards
    updated = replace(
        progression,
        total_experience=progression.total_experience + amount,
        level_experience=progression.level_experience + amount,
    )

    triggered: list[LevelReward] = []
    while updated.level_experience >= next_level_threshold(updated.current_level):
        threshold = next_level_threshold(updated.current_level)
        updated.level_experience -= threshold
        updated.current_level += 1

        reward = rewards_table.get(updated.current_level)
        if reward is not None:
            triggered.append(reward)
            updated.mastery_points += reward.mastery_points

    leveled_up = updated.current_level > progression.current_level
    if leveled_up:
        logger.info(
            "Level up: %d -> %d (rewards=%d)",
            progression.current_level,
            updated.current_level,
            len(triggered),
        )

    return updated, LevelUpResult(
        status=OperationStatus.APPLIED,
        leveled_up=leveled_up,
        new_level=updated.current_level,
        triggered_rewards=triggered,
    )


def prestige(
    progression: PlayerProgression,
    skills: Mapping[SkillBranchKind, SkillBranch],
) -> tuple[PlayerProgression, dict[SkillBranchKind, SkillBranch], bool]:
    """프레스티지. 레벨 50 미만이면 실패(변경 없음).

    이미 쓴 마스터리 포인트는 환불하지 않고 고정 보너스만 지급한다.
    """
    if progression.current_level < PRESTIGE_LEVEL_FLOOR:
        logger.debug(
            "Prestige refused: level %d < %d",
            progression.current_level,
            PRESTIGE_LEVEL_FLOOR,
        )
        return progression, dict(skills), False

    updated = replace(
        progression,
        current_level=1,
        total_experience=0,
        level_experience=0,
        prestige_count=progression.prestige_count + 1,
        mastery_points=progression.mastery_points + PRESTIGE_MASTERY_BONUS,
    )
    reset_skills = {
        kind: SkillBranch(kind=kind, level=0, max_level=branch.max_level)
        for kind, branch in skills.items()
    }
    logger.info("Prestige %d reached", updated.prestige_count)
    return updated, reset_skills, True
