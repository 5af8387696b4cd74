"""Relationship Service — 관계 점수 조회/변동, 캐릭터 진화 단계

Service → Core, Service → 저장소 허용.
Service → Service 금지, EventBus 경유.
"""

from typing import Dict, List

from src.core.errors import NotFoundError
from src.core.event_bus import EventBus, GameEvent
from src.core.event_types import EventTypes
from src.core.logging import get_logger
from src.core.quest.catalog import QuestCatalog
from src.core.quest.prerequisite_logic import current_evolution_stage
from src.core.relationship.calculations import apply_dialogue_choice
from src.core.relationship.models import RelationshipChange
from src.core.state import PlayerState
from src.services.player_state_service import PlayerStateService

logger = get_logger(__name__)

SOURCE = "relationship_service"


class RelationshipService:
    """캐릭터별 관계 점수 + 진화 단계"""

    def __init__(
        self,
        catalog: QuestCatalog,
        store: PlayerStateService,
        event_bus: EventBus,
    ) -> None:
        self._catalog = catalog
        self._store = store
        self._bus = event_bus

    def _require_character(self, character_id: str) -> None:
        if self._catalog.get_character(character_id) is None:
            raise NotFoundError("Unknown character", {"character_id": character_id})

    def _load(self, player_id: str) -> PlayerState:
        state = self._store.load(player_id)
        if state is None:
            raise NotFoundError("Unknown player", {"player_id": player_id})
        return state

    # ── 조회 ─────────────────────────────────────────────────

    def get_scores(self, player_id: str) -> Dict[str, int]:
        return dict(self._load(player_id).relationships)

    def get_evolution_stage(self, player_id: str, character_id: str) -> int:
        self._require_character(character_id)
        state = self._load(player_id)
        return current_evolution_stage(self._catalog, character_id, state.to_context())

    # ── 변동 ─────────────────────────────────────────────────

    def apply_dialogue_choice(
        self, player_id: str, character_id: str, delta: int
    ) -> List[RelationshipChange]:
        """대화 선택지 결과 반영. delta 0이면 변경 없음."""
        self._require_character(character_id)

        def operation(state: PlayerState) -> tuple[PlayerState, List[RelationshipChange]]:
            scores, changes = apply_dialogue_choice(
                state.relationships, character_id, delta
            )
            if not changes:
                return state, changes
            updated = state.copy()
            updated.relationships = scores
            return updated, changes

        _, changes = self._store.transact(player_id, operation)
        for change in changes:
            logger.info(
                f"관계 변동: {player_id}→{change.character_id} "
                f"{change.old_score}→{change.new_score} ({change.reason})"
            )
            self._bus.emit(
                GameEvent(
                    event_type=EventTypes.RELATIONSHIP_CHANGED,
                    data={
                        "player_id": player_id,
                        "character_id": change.character_id,
                        "delta": change.delta,
                    },
                    source=SOURCE,
                )
            )
        return changes
