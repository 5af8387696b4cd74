"""퀘스트 시스템 Core 패키지"""

from src.core.quest.enums import (
    COUNTING_OBJECTIVE_TYPES,
    ComparisonOperator,
    GrantSource,
    GrantStatus,
    ObjectiveType,
    PrerequisiteType,
    QuestStatus,
    Rarity,
    Repeatability,
    RewardType,
)
from src.core.quest.models import (
    ActivationResult,
    CharacterDefinition,
    DispenseResult,
    EventCriteria,
    EventRecord,
    EvolutionStage,
    GrantedReward,
    ObjectiveDefinition,
    ParameterCheck,
    PlayerContext,
    Prerequisite,
    ProgressResult,
    QuestCompletionResult,
    QuestDefinition,
    QuestProgressSummary,
    QuestState,
    RarityRoll,
    RarityRollConfig,
    Reward,
    RewardGrant,
)
from src.core.quest.catalog import QuestCatalog, load_catalog, load_catalog_file
from src.core.quest.prerequisite_logic import (
    PrerequisiteResolver,
    current_evolution_stage,
    is_available,
    list_available,
    repeat_period,
)

__all__ = [
    # enums
    "QuestStatus",
    "ObjectiveType",
    "COUNTING_OBJECTIVE_TYPES",
    "PrerequisiteType",
    "RewardType",
    "Repeatability",
    "ComparisonOperator",
    "Rarity",
    "GrantStatus",
    "GrantSource",
    # models
    "Prerequisite",
    "ObjectiveDefinition",
    "ParameterCheck",
    "EventCriteria",
    "RarityRollConfig",
    "Reward",
    "QuestDefinition",
    "EvolutionStage",
    "CharacterDefinition",
    "QuestState",
    "GrantedReward",
    "RarityRoll",
    "RewardGrant",
    "EventRecord",
    "PlayerContext",
    "ActivationResult",
    "ProgressResult",
    "QuestCompletionResult",
    "QuestProgressSummary",
    "DispenseResult",
    # catalog
    "QuestCatalog",
    "load_catalog",
    "load_catalog_file",
    # prerequisites
    "PrerequisiteResolver",
    "is_available",
    "list_available",
    "repeat_period",
    "current_evolution_stage",
]
