"""진행도(레벨/스킬) 도메인 모델 (DB 무관)"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from src.core.operation import OperationStatus


class SkillBranchKind(str, Enum):
    SPEED = "speed"
    ACCURACY = "accuracy"
    ENDURANCE = "endurance"
    LUCK = "luck"
    STRATEGY = "strategy"


class SeasonalRankTier(str, Enum):
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"
    PLATINUM = "platinum"
    DIAMOND = "diamond"
    MASTER = "master"
    GRANDMASTER = "grandmaster"


DEFAULT_SKILL_MAX_LEVEL = 50


@dataclass
class PlayerProgression:
    """플레이어 레벨/경험치 원장"""

    current_level: int = 1
    total_experience: int = 0
    level_experience: int = 0  # 현재 레벨 안에서 누적된 경험치
    prestige_count: int = 0
    mastery_points: int = 0


@dataclass(frozen=True)
class SkillBonus:
    kind: str  # "multiplier" | "bonus" | "unlock"
    magnitude: float
    description: str = ""


@dataclass(frozen=True)
class SkillTier:
    """스킬 브랜치의 구매 단계. required_level == 구매 직전 브랜치 레벨."""

    required_level: int
    name: str
    cost: int
    bonus: SkillBonus


@dataclass
class SkillBranch:
    kind: SkillBranchKind
    level: int = 0
    max_level: int = DEFAULT_SKILL_MAX_LEVEL
    bonuses: list[SkillBonus] = field(default_factory=list)


@dataclass(frozen=True)
class LevelReward:
    """특정 레벨 도달 시 지급되는 보상 묶음"""

    level: int
    rush_tokens: int = 0
    mastery_points: int = 0
    nft_rewards: tuple[str, ...] = ()
    cosmetic_rewards: tuple[str, ...] = ()


@dataclass
class LevelUpResult:
    status: OperationStatus
    leveled_up: bool = False
    new_level: int = 1
    triggered_rewards: list[LevelReward] = field(default_factory=list)
    reason: Optional[str] = None


@dataclass
class SkillUpgradeResult:
    status: OperationStatus
    branch: SkillBranchKind
    new_level: int = 0
    mastery_points: int = 0
    reason: Optional[str] = None


@dataclass(frozen=True)
class SeasonalReward:
    reward_type: str  # "RUSH" | "NFT" | "Cosmetic" | "PowerUp"
    amount: int
    rarity: str


@dataclass(frozen=True)
class SeasonalRank:
    season: int
    tier: SeasonalRankTier
    points: int
    rewards: tuple[SeasonalReward, ...] = ()


def new_skill_tree() -> dict[SkillBranchKind, SkillBranch]:
    """신규 플레이어용 다섯 브랜치 기본값."""
    return {kind: SkillBranch(kind=kind) for kind in SkillBranchKind}
