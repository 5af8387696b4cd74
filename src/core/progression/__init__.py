"""진행도(레벨/스킬 트리/시즌 랭크) Core 패키지"""

from src.core.progression.leveling import (
    DEFAULT_LEVEL_REWARDS,
    PRESTIGE_LEVEL_FLOOR,
    PRESTIGE_MASTERY_BONUS,
    add_experience,
    next_level_threshold,
    prestige,
)
from src.core.progression.models import (
    LevelReward,
    LevelUpResult,
    PlayerProgression,
    SeasonalRank,
    SeasonalRankTier,
    SkillBonus,
    SkillBranch,
    SkillBranchKind,
    SkillTier,
    SkillUpgradeResult,
    new_skill_tree,
)
from src.core.progression.seasonal import calculate_seasonal_rank
from src.core.progression.skill_tree import (
    DEFAULT_SKILL_TREE,
    get_skill_bonus,
    upgrade_skill,
)

__all__ = [
    # models
    "PlayerProgression",
    "SkillBranchKind",
    "SkillBonus",
    "SkillTier",
    "SkillBranch",
    "LevelReward",
    "LevelUpResult",
    "SkillUpgradeResult",
    "SeasonalRank",
    "SeasonalRankTier",
    "new_skill_tree",
    # leveling
    "DEFAULT_LEVEL_REWARDS",
    "PRESTIGE_LEVEL_FLOOR",
    "PRESTIGE_MASTERY_BONUS",
    "next_level_threshold",
    "add_experience",
    "prestige",
    # skill tree
    "DEFAULT_SKILL_TREE",
    "upgrade_skill",
    "get_skill_bonus",
    # seasonal
    "calculate_seasonal_rank",
]
