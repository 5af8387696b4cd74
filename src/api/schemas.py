"""API request/response schemas."""

from typing import Any, Optional

from pydantic import BaseModel, Field

from src.core.progression.models import SkillBranchKind


# === Request Schemas ===


class RegisterRequest(BaseModel):
    """플레이어 등록 요청"""

    player_id: str = Field(..., min_length=1, max_length=66, description="플레이어 ID")


class ExperienceRequest(BaseModel):
    """경험치 지급 요청"""

    amount: int = Field(..., description="지급 경험치 (음수는 invalid)")


class SkillUpgradeRequest(BaseModel):
    """스킬 단계 구매 요청"""

    branch: SkillBranchKind
    tier_index: int = Field(..., ge=0, description="구매할 단계 index (0부터)")


class AchievementRequest(BaseModel):
    achievement_id: str


class ProgressRequest(BaseModel):
    """목표 진행 요청. delta 생략 시 '발생' 신호."""

    objective_id: str
    delta: Optional[int] = None
    action_tag: Optional[str] = None


class GameActionRequest(BaseModel):
    """게임플레이 액션 (태그 기반 목표 라우팅)"""

    action_tag: str
    amount: int = Field(default=1, ge=0)


class DialogueChoiceRequest(BaseModel):
    character_id: str
    delta: int


class ChainEventRequest(BaseModel):
    """이벤트 피드가 전달하는 온체인 이벤트 레코드"""

    player_id: str
    signature: str = Field(..., description="이벤트 시그니처 (예: Transfer(address,address,uint256))")
    parameters: dict[str, Any] = Field(default_factory=dict)
    timestamp: int = Field(..., ge=0, description="블록 타임스탬프 (초)")
    unique_id: str = Field(..., description="tx hash 또는 hash:logIndex")


# === Response Schemas ===


class OperationResponse(BaseModel):
    """상태만 돌려주는 연산 공통 응답"""

    status: str
    reason: Optional[str] = None


class ProgressionResponse(BaseModel):
    """플레이어 진행도"""

    player_id: str
    current_level: int
    total_experience: int
    level_experience: int
    next_level_threshold: int
    prestige_count: int
    mastery_points: int
    skills: dict[str, int]
    achievements: list[str]
    unlocked_characters: list[str]
    version: int


class LevelRewardInfo(BaseModel):
    level: int
    rush_tokens: int
    mastery_points: int
    nft_rewards: list[str]
    cosmetic_rewards: list[str]


class ExperienceResponse(BaseModel):
    status: str
    leveled_up: bool
    new_level: int
    triggered_rewards: list[LevelRewardInfo] = []
    reason: Optional[str] = None


class PrestigeResponse(BaseModel):
    success: bool
    prestige_count: int
    mastery_points: int


class SkillUpgradeResponse(BaseModel):
    status: str
    branch: str
    new_level: int
    mastery_points: int
    bonus_total: float
    reason: Optional[str] = None


class SeasonalRankResponse(BaseModel):
    season: int
    tier: str
    points: int
    rewards: list[dict[str, Any]] = []


class AvailableResponse(BaseModel):
    player_id: str
    available: list[str]


class QuestStateResponse(BaseModel):
    quest_id: str
    status: str
    progress: dict[str, int]
    completed: int
    total: int
    percentage: float
    completion_count: int


class ProgressResponse(BaseModel):
    status: str
    quest_id: str
    objective_id: Optional[str] = None
    objective_completed: bool = False
    quest_completed: bool = False
    reason: Optional[str] = None


class GrantedRewardInfo(BaseModel):
    reward_type: str
    amount: int
    item: Optional[str] = None
    rarity: Optional[str] = None
    source: str
    level: Optional[int] = None


class DispenseResponse(BaseModel):
    status: str
    quest_id: str
    granted: list[GrantedRewardInfo] = []
    rarities: dict[int, str] = {}
    relationship_changes: dict[str, int] = {}
    newly_available: list[str] = []
    reason: Optional[str] = None


class ChainEventResult(BaseModel):
    status: str
    quest_id: Optional[str] = None
    objectives_advanced: list[str] = []
    quest_completed: bool = False
    reason: Optional[str] = None


class ChainEventResponse(BaseModel):
    event_id: str
    results: list[ChainEventResult]


class RelationshipResponse(BaseModel):
    player_id: str
    scores: dict[str, int]


class ErrorResponse(BaseModel):
    """에러 응답"""

    error: str
    detail: Optional[str] = None
