"""퀘스트 도메인 모델 (DB 무관)

정의(Definition) 계열은 카탈로그 로드 후 읽기 전용.
상태(State) 계열은 플레이어별로 엔진 연산이 갱신한다.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from src.core.operation import OperationStatus
from src.core.quest.enums import (
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

# 희귀 드롭 발생 시 등급 분포 (누적 확률 버킷팅, 위에서부터)
DEFAULT_RARITY_TIERS: tuple[tuple[Rarity, float], ...] = (
    (Rarity.MYTHIC, 0.01),
    (Rarity.LEGENDARY, 0.04),
    (Rarity.EPIC, 0.15),
    (Rarity.RARE, 0.80),
)


# === 정의 (읽기 전용) ===


@dataclass(frozen=True)
class Prerequisite:
    """해금 조건 하나. prereq_type에 따라 value 의미가 달라진다.

    level/relationship: 최소 수치, achievement/quest/character: 대상 ID.
    relationship은 character_id가 없으면 소유 퀘스트의 캐릭터를 본다.
    """

    prereq_type: PrerequisiteType
    value: Any
    character_id: Optional[str] = None
    description: str = ""


@dataclass(frozen=True)
class ObjectiveDefinition:
    objective_id: str
    objective_type: ObjectiveType
    target: int = 1
    is_optional: bool = False
    title: str = ""
    action_tag: Optional[str] = None  # 게임플레이 태그 필터
    event_param: Optional[str] = None  # 온체인 이벤트에서 delta로 쓸 파라미터


@dataclass(frozen=True)
class ParameterCheck:
    param_name: str
    operator: ComparisonOperator
    value: Any


@dataclass(frozen=True)
class EventCriteria:
    """리액티브 퀘스트 완료 조건"""

    event_signature: str
    parameter_checks: tuple[ParameterCheck, ...] = ()
    time_window: int = 0  # 0 = 무제한, 그 외 활성화 후 초
    repeatability: Repeatability = Repeatability.ONCE


@dataclass(frozen=True)
class RarityRollConfig:
    rare_drop_chance: float  # 0 ~ 100 (%)
    num_words: int = 1
    tiers: tuple[tuple[Rarity, float], ...] = DEFAULT_RARITY_TIERS
    base_rarity: Rarity = Rarity.COMMON


@dataclass(frozen=True)
class Reward:
    reward_type: RewardType
    amount: int = 0
    item: Optional[str] = None
    rarity: Optional[Rarity] = None
    rarity_roll: Optional[RarityRollConfig] = None
    description: str = ""


@dataclass(frozen=True)
class QuestDefinition:
    quest_id: str
    character_id: Optional[str] = None
    title: str = ""
    level_requirement: int = 1
    prerequisites: tuple[Prerequisite, ...] = ()
    objectives: tuple[ObjectiveDefinition, ...] = ()
    rewards: tuple[Reward, ...] = ()
    relationship_changes: dict[str, int] = field(default_factory=dict)
    is_repeatable: bool = False
    cooldown: int = 0  # 초
    event_criteria: Optional[EventCriteria] = None
    unlocks_characters: tuple[str, ...] = ()
    unlocks_stories: tuple[str, ...] = ()
    unlocks_features: tuple[str, ...] = ()

    @property
    def is_reactive(self) -> bool:
        return self.event_criteria is not None

    def get_objective(self, objective_id: str) -> Optional[ObjectiveDefinition]:
        for objective in self.objectives:
            if objective.objective_id == objective_id:
                return objective
        return None


@dataclass(frozen=True)
class EvolutionStage:
    stage: int
    name: str
    requirements: tuple[Prerequisite, ...] = ()


@dataclass(frozen=True)
class CharacterDefinition:
    character_id: str
    name: str = ""
    prerequisites: tuple[Prerequisite, ...] = ()
    evolution_stages: tuple[EvolutionStage, ...] = ()


# === 플레이어별 상태 ===


@dataclass
class QuestState:
    """플레이어의 퀘스트 진행 상태"""

    quest_id: str
    status: QuestStatus = QuestStatus.NOT_STARTED
    progress: dict[str, int] = field(default_factory=dict)  # objective_id → current
    activated_at: Optional[int] = None
    last_completed_at: Optional[int] = None
    completion_count: int = 0  # 보상 지급까지 끝난 완료 횟수


@dataclass(frozen=True)
class GrantedReward:
    """외부 시스템이 실현(민팅/전송/알림)할 지급 기록"""

    reward_type: RewardType
    amount: int = 0
    item: Optional[str] = None
    rarity: Optional[Rarity] = None
    source: GrantSource = GrantSource.QUEST
    quest_id: Optional[str] = None
    level: Optional[int] = None


@dataclass
class RarityRoll:
    words: list[int]
    rarity: Rarity


@dataclass
class RewardGrant:
    """퀘스트 완료 1회분 보상 지급 기록 (멱등성 마커)"""

    grant_key: str
    quest_id: str
    completion_seq: int
    status: GrantStatus = GrantStatus.PENDING
    rolls: dict[int, RarityRoll] = field(default_factory=dict)  # reward index → 결과
    granted: list[GrantedReward] = field(default_factory=list)
    dispensed_at: Optional[int] = None


@dataclass(frozen=True)
class EventRecord:
    """이벤트 피드가 전달하는 온체인 이벤트"""

    signature: str
    parameters: dict[str, Any]
    timestamp: int
    unique_id: str  # tx hash 또는 "hash:logIndex"
    player_id: str


@dataclass(frozen=True)
class PlayerContext:
    """해금 판정 입력 스냅샷"""

    level: int = 1
    achievements: frozenset[str] = frozenset()
    completed_quests: frozenset[str] = frozenset()
    relationships: dict[str, int] = field(default_factory=dict)
    unlocked_characters: frozenset[str] = frozenset()


# === 연산 결과 ===


@dataclass
class ActivationResult:
    status: OperationStatus
    quest_id: str
    reason: Optional[str] = None


@dataclass
class ProgressResult:
    status: OperationStatus
    quest_id: str
    objective_id: Optional[str] = None
    objective_completed: bool = False
    quest_completed: bool = False
    reason: Optional[str] = None


@dataclass
class QuestCompletionResult:
    status: OperationStatus
    quest_id: Optional[str]  # 중복 이벤트면 None
    event_id: str
    objectives_advanced: list[str] = field(default_factory=list)
    quest_completed: bool = False
    reason: Optional[str] = None


@dataclass
class QuestProgressSummary:
    quest_id: str
    completed: int
    total: int
    percentage: float
    is_complete: bool


@dataclass
class DispenseResult:
    status: OperationStatus
    quest_id: str
    granted: list[GrantedReward] = field(default_factory=list)
    rarities: dict[int, Rarity] = field(default_factory=dict)
    relationship_changes: dict[str, int] = field(default_factory=dict)
    available: list[str] = field(default_factory=list)
    newly_available: list[str] = field(default_factory=list)
    reason: Optional[str] = None
