"""Relationship API endpoints."""

from fastapi import APIRouter, Depends, Request

from src.api.errors import http_errors
from src.api.schemas import (
    DialogueChoiceRequest,
    ErrorResponse,
    RelationshipResponse,
)
from src.services.relationship_service import RelationshipService

router = APIRouter(prefix="/players", tags=["relationships"])


def get_relationship_service(request: Request) -> RelationshipService:
    """RelationshipService 인스턴스 반환 (의존성 주입)"""
    service: RelationshipService = request.app.state.relationship_service
    return service


@router.get(
    "/{player_id}/relationships",
    response_model=RelationshipResponse,
    responses={404: {"model": ErrorResponse}},
)
def get_relationships(
    player_id: str,
    service: RelationshipService = Depends(get_relationship_service),
) -> RelationshipResponse:
    with http_errors():
        scores = service.get_scores(player_id)
    return RelationshipResponse(player_id=player_id, scores=scores)


@router.post(
    "/{player_id}/relationships/dialogue",
    response_model=RelationshipResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
def dialogue_choice(
    player_id: str,
    request: DialogueChoiceRequest,
    service: RelationshipService = Depends(get_relationship_service),
) -> RelationshipResponse:
    """대화 선택지 결과 반영"""
    with http_errors():
        service.apply_dialogue_choice(player_id, request.character_id, request.delta)
        scores = service.get_scores(player_id)
    return RelationshipResponse(player_id=player_id, scores=scores)


@router.get(
    "/{player_id}/characters/{character_id}/evolution",
    responses={404: {"model": ErrorResponse}},
)
def evolution_stage(
    player_id: str,
    character_id: str,
    service: RelationshipService = Depends(get_relationship_service),
) -> dict[str, int | str]:
    with http_errors():
        stage = service.get_evolution_stage(player_id, character_id)
    return {"character_id": character_id, "stage": stage}
