"""Progression API endpoints (level, prestige, skills, achievements)."""

from fastapi import APIRouter, Depends, Request

from src.api.errors import http_errors
from src.api.schemas import (
    AchievementRequest,
    ErrorResponse,
    ExperienceRequest,
    ExperienceResponse,
    LevelRewardInfo,
    OperationResponse,
    PrestigeResponse,
    ProgressionResponse,
    RegisterRequest,
    SeasonalRankResponse,
    SkillUpgradeRequest,
    SkillUpgradeResponse,
)
from src.core.logging import get_logger
from src.core.operation import OperationStatus
from src.core.progression.leveling import next_level_threshold
from src.core.progression.seasonal import calculate_seasonal_rank
from src.core.progression.skill_tree import get_skill_bonus
from src.core.state import PlayerState
from src.services.progression_service import ProgressionService

logger = get_logger(__name__)

router = APIRouter(prefix="/players", tags=["progression"])


def get_progression_service(request: Request) -> ProgressionService:
    """ProgressionService 인스턴스 반환 (의존성 주입)"""
    service: ProgressionService = request.app.state.progression_service
    return service


def _build_progression(state: PlayerState) -> ProgressionResponse:
    progression = state.progression
    return ProgressionResponse(
        player_id=state.player_id,
        current_level=progression.current_level,
        total_experience=progression.total_experience,
        level_experience=progression.level_experience,
        next_level_threshold=next_level_threshold(progression.current_level),
        prestige_count=progression.prestige_count,
        mastery_points=progression.mastery_points,
        skills={kind.value: branch.level for kind, branch in state.skills.items()},
        achievements=sorted(state.achievements),
        unlocked_characters=sorted(state.unlocked_characters),
        version=state.version,
    )


@router.post("", response_model=ProgressionResponse)
def register_player(
    request: RegisterRequest,
    service: ProgressionService = Depends(get_progression_service),
) -> ProgressionResponse:
    """플레이어 등록 (이미 있으면 현재 상태 반환)"""
    state = service.register_player(request.player_id)
    logger.info("Player registered: %s", request.player_id)
    return _build_progression(state)


@router.get(
    "/{player_id}/progression",
    response_model=ProgressionResponse,
    responses={404: {"model": ErrorResponse}},
)
def get_progression(
    player_id: str,
    service: ProgressionService = Depends(get_progression_service),
) -> ProgressionResponse:
    with http_errors():
        return _build_progression(service.get_player(player_id))


@router.post(
    "/{player_id}/progression/experience",
    response_model=ExperienceResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
def add_experience(
    player_id: str,
    request: ExperienceRequest,
    service: ProgressionService = Depends(get_progression_service),
) -> ExperienceResponse:
    """경험치 지급. 여러 레벨이 한 번에 오를 수 있다."""
    with http_errors():
        result = service.add_experience(player_id, request.amount)
    return ExperienceResponse(
        status=result.status.value,
        leveled_up=result.leveled_up,
        new_level=result.new_level,
        triggered_rewards=[
            LevelRewardInfo(
                level=r.level,
                rush_tokens=r.rush_tokens,
                mastery_points=r.mastery_points,
                nft_rewards=list(r.nft_rewards),
                cosmetic_rewards=list(r.cosmetic_rewards),
            )
            for r in result.triggered_rewards
        ],
        reason=result.reason,
    )


@router.post(
    "/{player_id}/progression/prestige",
    response_model=PrestigeResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
def prestige(
    player_id: str,
    service: ProgressionService = Depends(get_progression_service),
) -> PrestigeResponse:
    """프레스티지 (레벨 50 이상)"""
    with http_errors():
        success = service.prestige(player_id)
        state = service.get_player(player_id)
    return PrestigeResponse(
        success=success,
        prestige_count=state.progression.prestige_count,
        mastery_points=state.progression.mastery_points,
    )


@router.post(
    "/{player_id}/progression/skills",
    response_model=SkillUpgradeResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
def upgrade_skill(
    player_id: str,
    request: SkillUpgradeRequest,
    service: ProgressionService = Depends(get_progression_service),
) -> SkillUpgradeResponse:
    """스킬 단계 구매 (단계 순서대로만)"""
    with http_errors():
        result = service.upgrade_skill(player_id, request.branch, request.tier_index)
        skills = service.get_player(player_id).skills
    return SkillUpgradeResponse(
        status=result.status.value,
        branch=result.branch.value,
        new_level=result.new_level,
        mastery_points=result.mastery_points,
        bonus_total=get_skill_bonus(skills, request.branch),
        reason=result.reason,
    )


@router.post(
    "/{player_id}/achievements",
    response_model=OperationResponse,
    responses={404: {"model": ErrorResponse}},
)
def grant_achievement(
    player_id: str,
    request: AchievementRequest,
    service: ProgressionService = Depends(get_progression_service),
) -> OperationResponse:
    with http_errors():
        added = service.grant_achievement(player_id, request.achievement_id)
    if added:
        return OperationResponse(status=OperationStatus.APPLIED.value)
    return OperationResponse(
        status=OperationStatus.DUPLICATE.value, reason="already_granted"
    )


@router.get("/seasonal-rank/{points}", response_model=SeasonalRankResponse)
def seasonal_rank(points: int, season: int = 1) -> SeasonalRankResponse:
    """시즌 포인트 → 랭크 티어 + 시즌 보상"""
    rank = calculate_seasonal_rank(points, season)
    return SeasonalRankResponse(
        season=rank.season,
        tier=rank.tier.value,
        points=rank.points,
        rewards=[
            {"reward_type": r.reward_type, "amount": r.amount, "rarity": r.rarity}
            for r in rank.rewards
        ],
    )
