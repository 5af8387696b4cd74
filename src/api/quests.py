"""Quest API endpoints (availability, activation, progress, dispense, chain events)."""

from fastapi import APIRouter, Depends, Request, Response

from src.api.errors import http_errors
from src.api.schemas import (
    AvailableResponse,
    ChainEventRequest,
    ChainEventResponse,
    ChainEventResult,
    DispenseResponse,
    ErrorResponse,
    GameActionRequest,
    GrantedRewardInfo,
    OperationResponse,
    ProgressRequest,
    ProgressResponse,
    QuestStateResponse,
)
from src.core.logging import get_logger
from src.core.operation import OperationStatus
from src.core.quest.models import EventRecord, ProgressResult
from src.services.quest_service import QuestService

logger = get_logger(__name__)

router = APIRouter(tags=["quests"])


def get_quest_service(request: Request) -> QuestService:
    """QuestService 인스턴스 반환 (의존성 주입)"""
    service: QuestService = request.app.state.quest_service
    return service


def _build_progress(result: ProgressResult) -> ProgressResponse:
    return ProgressResponse(
        status=result.status.value,
        quest_id=result.quest_id,
        objective_id=result.objective_id,
        objective_completed=result.objective_completed,
        quest_completed=result.quest_completed,
        reason=result.reason,
    )


@router.get(
    "/players/{player_id}/quests/available",
    response_model=AvailableResponse,
    responses={404: {"model": ErrorResponse}},
)
def list_available(
    player_id: str,
    service: QuestService = Depends(get_quest_service),
) -> AvailableResponse:
    """시작 가능한 퀘스트 + 해금 가능한 캐릭터"""
    with http_errors():
        available = service.list_available(player_id)
    return AvailableResponse(player_id=player_id, available=available)


@router.get(
    "/players/{player_id}/quests/{quest_id}",
    response_model=QuestStateResponse,
    responses={404: {"model": ErrorResponse}},
)
def get_quest(
    player_id: str,
    quest_id: str,
    service: QuestService = Depends(get_quest_service),
) -> QuestStateResponse:
    with http_errors():
        state = service.get_quest_state(player_id, quest_id)
        summary = service.get_progress(player_id, quest_id)
    return QuestStateResponse(
        quest_id=quest_id,
        status=state.status.value,
        progress=dict(state.progress),
        completed=summary.completed,
        total=summary.total,
        percentage=summary.percentage,
        completion_count=state.completion_count,
    )


@router.post(
    "/players/{player_id}/quests/{quest_id}/activate",
    response_model=OperationResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
def activate_quest(
    player_id: str,
    quest_id: str,
    service: QuestService = Depends(get_quest_service),
) -> OperationResponse:
    with http_errors():
        result = service.activate(player_id, quest_id)
    return OperationResponse(status=result.status.value, reason=result.reason)


@router.post(
    "/players/{player_id}/quests/{quest_id}/progress",
    response_model=ProgressResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
def record_progress(
    player_id: str,
    quest_id: str,
    request: ProgressRequest,
    service: QuestService = Depends(get_quest_service),
) -> ProgressResponse:
    with http_errors():
        result = service.record_progress(
            player_id,
            quest_id,
            request.objective_id,
            delta=request.delta,
            action_tag=request.action_tag,
        )
    return _build_progress(result)


@router.post(
    "/players/{player_id}/actions",
    response_model=list[ProgressResponse],
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
def game_action(
    player_id: str,
    request: GameActionRequest,
    service: QuestService = Depends(get_quest_service),
) -> list[ProgressResponse]:
    """게임플레이 액션 태그 → 일치하는 활성 목표 전부 진행"""
    with http_errors():
        results = service.handle_game_action(
            player_id, request.action_tag, request.amount
        )
    return [_build_progress(r) for r in results]


@router.post(
    "/players/{player_id}/quests/{quest_id}/dispense",
    response_model=DispenseResponse,
    responses={
        202: {"model": DispenseResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
def dispense(
    player_id: str,
    quest_id: str,
    response: Response,
    service: QuestService = Depends(get_quest_service),
) -> DispenseResponse:
    """보상 지급. 난수 오라클 응답 대기 중이면 202 (reward pending)."""
    with http_errors():
        result = service.dispense(player_id, quest_id)
    if result.status == OperationStatus.PENDING:
        response.status_code = 202
    return DispenseResponse(
        status=result.status.value,
        quest_id=result.quest_id,
        granted=[
            GrantedRewardInfo(
                reward_type=g.reward_type.value,
                amount=g.amount,
                item=g.item,
                rarity=g.rarity.value if g.rarity else None,
                source=g.source.value,
                level=g.level,
            )
            for g in result.granted
        ],
        rarities={index: rarity.value for index, rarity in result.rarities.items()},
        relationship_changes=dict(result.relationship_changes),
        newly_available=list(result.newly_available),
        reason=result.reason,
    )


@router.post(
    "/chain-events",
    response_model=ChainEventResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
def ingest_chain_event(
    request: ChainEventRequest,
    service: QuestService = Depends(get_quest_service),
) -> ChainEventResponse:
    """이벤트 피드 수신. 같은 unique_id 재전달은 duplicate로 응답."""
    record = EventRecord(
        signature=request.signature,
        parameters=dict(request.parameters),
        timestamp=request.timestamp,
        unique_id=request.unique_id,
        player_id=request.player_id,
    )
    with http_errors():
        results = service.handle_chain_event(record)
    return ChainEventResponse(
        event_id=record.unique_id,
        results=[
            ChainEventResult(
                status=r.status.value,
                quest_id=r.quest_id,
                objectives_advanced=list(r.objectives_advanced),
                quest_completed=r.quest_completed,
                reason=r.reason,
            )
            for r in results
        ],
    )
