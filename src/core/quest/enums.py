"""퀘스트 관련 열거형"""

from enum import Enum


class QuestStatus(str, Enum):
    NOT_STARTED = "not_started"
    ACTIVE = "active"
    COMPLETED_PENDING_DISPENSE = "completed_pending_dispense"
    COMPLETED = "completed"


class ObjectiveType(str, Enum):
    COLLECT = "collect"
    COMPLETE = "complete"
    ACHIEVE = "achieve"
    INTERACT = "interact"
    EXPLORE = "explore"
    SURVIVE = "survive"
    SCORE = "score"


# 증분(delta)으로 누적되는 목표 유형. 나머지는 "발생" 신호로 target까지 채운다.
COUNTING_OBJECTIVE_TYPES: frozenset[ObjectiveType] = frozenset(
    {ObjectiveType.COLLECT, ObjectiveType.SCORE}
)


class PrerequisiteType(str, Enum):
    LEVEL = "level"
    ACHIEVEMENT = "achievement"
    QUEST = "quest"
    RELATIONSHIP = "relationship"
    CHARACTER = "character"


class RewardType(str, Enum):
    EXPERIENCE = "experience"
    TOKEN = "token"
    NFT = "nft"
    CHARACTER_UNLOCK = "character_unlock"
    STORY_UNLOCK = "story_unlock"
    FEATURE_UNLOCK = "feature_unlock"
    COSMETIC = "cosmetic"
    MASTERY_POINTS = "mastery_points"


class Repeatability(str, Enum):
    ONCE = "once"
    DAILY = "daily"
    WEEKLY = "weekly"
    UNLIMITED = "unlimited"


class ComparisonOperator(str, Enum):
    GT = ">"
    LT = "<"
    EQ = "=="
    NE = "!="
    GE = ">="
    LE = "<="


class Rarity(str, Enum):
    COMMON = "common"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"
    MYTHIC = "mythic"


class GrantStatus(str, Enum):
    PENDING = "pending"
    DISPENSED = "dispensed"


class GrantSource(str, Enum):
    QUEST = "quest"
    LEVEL_UP = "level_up"
