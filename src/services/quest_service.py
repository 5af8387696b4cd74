"""퀘스트 Service — Core↔저장소 연결, 오라클 호출, EventBus 통신

Service → Core, Service → 저장소 허용.
Service → Service 금지, EventBus 경유.

모든 연산은 PlayerStateService.transact 안에서 (플레이어 잠금 + 버전 검사) 실행되고,
이벤트는 저장이 끝난 뒤에 발행한다.
"""

import logging
import time
from typing import Callable, Optional

from src.core.errors import NotFoundError, OracleFailure
from src.core.event_bus import EventBus, GameEvent
from src.core.event_types import EventTypes
from src.core.operation import OperationStatus
from src.core.quest.catalog import QuestCatalog
from src.core.quest.enums import QuestStatus
from src.core.quest.event_logic import handle_event
from src.core.quest.models import (
    ActivationResult,
    DispenseResult,
    EventRecord,
    ProgressResult,
    QuestCompletionResult,
    QuestProgressSummary,
    QuestState,
)
from src.core.quest.objective_logic import (
    activate_quest,
    quest_progress,
    record_progress,
    route_game_action,
)
from src.core.quest.prerequisite_logic import is_available, list_available
from src.core.quest.reward_logic import (
    dispense,
    open_grant,
    record_rolls,
    required_rolls,
)
from src.core.state import PlayerState
from src.services.oracle.base import RandomnessOracle
from src.services.player_state_service import PlayerStateService

logger = logging.getLogger(__name__)

SOURCE = "quest_service"

# 해금 조건을 다시 보는 상태 (처음 시작, 반복 재시작)
_STARTABLE = frozenset({QuestStatus.NOT_STARTED, QuestStatus.COMPLETED})


def _epoch_seconds() -> int:
    return int(time.time())


class QuestService:
    """퀘스트 가용성/활성화/진행/온체인 이벤트/보상 지급"""

    def __init__(
        self,
        catalog: QuestCatalog,
        store: PlayerStateService,
        oracle: RandomnessOracle,
        event_bus: EventBus,
        clock: Callable[[], int] = _epoch_seconds,
    ):
        self._catalog = catalog
        self._store = store
        self._oracle = oracle
        self._bus = event_bus
        self._clock = clock

    @property
    def catalog(self) -> QuestCatalog:
        return self._catalog

    def _require_quest(self, quest_id: str) -> None:
        if self._catalog.get_quest(quest_id) is None:
            raise NotFoundError("Unknown quest", {"quest_id": quest_id})

    def _load(self, player_id: str) -> PlayerState:
        state = self._store.load(player_id)
        if state is None:
            raise NotFoundError("Unknown player", {"player_id": player_id})
        return state

    def _emit(self, event_type: str, data: dict) -> None:
        self._bus.emit(GameEvent(event_type=event_type, data=data, source=SOURCE))

    # === 조회 ===

    def list_available(self, player_id: str) -> list[str]:
        state = self._load(player_id)
        return list_available(
            self._catalog, state.to_context(), state.quest_states, self._clock()
        )

    def get_quest_state(self, player_id: str, quest_id: str) -> QuestState:
        self._require_quest(quest_id)
        return self._load(player_id).quest_state(quest_id)

    def get_progress(self, player_id: str, quest_id: str) -> QuestProgressSummary:
        self._require_quest(quest_id)
        state = self._load(player_id)
        definition = self._catalog.quests[quest_id]
        return quest_progress(definition, state.quest_state(quest_id))

    # === 활성화 ===

    def activate(self, player_id: str, quest_id: str) -> ActivationResult:
        """해금 조건 통과 시 퀘스트 시작 (반복 퀘스트는 재시작)."""
        self._require_quest(quest_id)
        definition = self._catalog.quests[quest_id]
        now = self._clock()

        def operation(state: PlayerState) -> tuple[PlayerState, ActivationResult]:
            startable = state.quest_state(quest_id).status in _STARTABLE
            if startable and not is_available(self._catalog, quest_id, state.to_context()):
                logger.info("Activation refused (locked): %s/%s", player_id, quest_id)
                return state, ActivationResult(
                    status=OperationStatus.REJECTED, quest_id=quest_id, reason="locked"
                )
            quest_state, result = activate_quest(
                definition, state.quest_state(quest_id), now
            )
            if result.status != OperationStatus.APPLIED:
                return state, result
            updated = state.copy()
            updated.quest_states[quest_id] = quest_state
            return updated, result

        _, result = self._store.transact(player_id, operation)
        if result.status == OperationStatus.APPLIED:
            self._emit(
                EventTypes.QUEST_ACTIVATED,
                {"player_id": player_id, "quest_id": quest_id},
            )
        return result

    # === 진행 ===

    def _emit_progress(self, player_id: str, results: list[ProgressResult]) -> None:
        for result in results:
            if result.status != OperationStatus.APPLIED:
                continue
            data = {
                "player_id": player_id,
                "quest_id": result.quest_id,
                "objective_id": result.objective_id,
            }
            self._emit(EventTypes.OBJECTIVE_PROGRESSED, data)
            if result.objective_completed:
                self._emit(EventTypes.OBJECTIVE_COMPLETED, data)
            if result.quest_completed:
                self._emit(
                    EventTypes.QUEST_COMPLETED,
                    {"player_id": player_id, "quest_id": result.quest_id},
                )

    def record_progress(
        self,
        player_id: str,
        quest_id: str,
        objective_id: str,
        delta: Optional[int] = None,
        action_tag: Optional[str] = None,
    ) -> ProgressResult:
        self._require_quest(quest_id)
        definition = self._catalog.quests[quest_id]
        now = self._clock()

        def operation(state: PlayerState) -> tuple[PlayerState, ProgressResult]:
            quest_state, result = record_progress(
                definition,
                state.quest_state(quest_id),
                objective_id,
                now,
                delta=delta,
                action_tag=action_tag,
            )
            if result.status != OperationStatus.APPLIED:
                return state, result
            updated = state.copy()
            updated.quest_states[quest_id] = quest_state
            return updated, result

        _, result = self._store.transact(player_id, operation)
        self._emit_progress(player_id, [result])
        return result

    def handle_game_action(
        self, player_id: str, action_tag: str, amount: int = 1
    ) -> list[ProgressResult]:
        """게임플레이 액션 → 해당 태그 목표 전부 진행."""
        if amount < 0:
            return [
                ProgressResult(
                    status=OperationStatus.INVALID, quest_id="", reason="negative_delta"
                )
            ]
        now = self._clock()
        _, results = self._store.transact(
            player_id,
            lambda state: route_game_action(
                self._catalog, state, action_tag, now, amount=amount
            ),
        )
        self._emit_progress(player_id, results)
        return results

    # === 온체인 이벤트 ===

    def handle_chain_event(self, record: EventRecord) -> list[QuestCompletionResult]:
        """이벤트 피드 레코드 처리. 같은 unique_id 재전달은 한 번만 반영."""
        now = self._clock()
        _, results = self._store.transact(
            record.player_id,
            lambda state: handle_event(self._catalog, state, record, now),
        )
        for result in results:
            if result.status == OperationStatus.APPLIED and result.quest_completed:
                self._emit(
                    EventTypes.QUEST_COMPLETED,
                    {"player_id": record.player_id, "quest_id": result.quest_id},
                )
        return results

    # === 보상 지급 ===

    def _request_words(
        self, rolls: dict[int, int]
    ) -> tuple[dict[int, list[int]], Optional[OracleFailure]]:
        """필요한 롤마다 오라클 요청. 실패 시 그때까지 받은 word와 실패를 반환."""
        words: dict[int, list[int]] = {}
        for index, count in sorted(rolls.items()):
            try:
                words[index] = self._oracle.request_random_words(count)
            except OracleFailure as exc:
                return words, exc
        return words, None

    def dispense(self, player_id: str, quest_id: str) -> DispenseResult:
        """보상 지급. 오라클 실패 시 PENDING (보상 없음, 재시도 가능)."""
        self._require_quest(quest_id)
        now = self._clock()
        levels: dict[str, int] = {}

        def operation(state: PlayerState) -> tuple[PlayerState, DispenseResult]:
            levels["before"] = state.progression.current_level
            rolls = required_rolls(self._catalog, state, quest_id)
            working = state
            if rolls:
                words, failure = self._request_words(rolls)
                if words:
                    working = record_rolls(self._catalog, working, quest_id, words)
                if failure is not None:
                    logger.warning(
                        "Oracle failed for %s/%s; reward left pending: %s",
                        player_id,
                        quest_id,
                        failure,
                    )
                    if working is state:
                        working = open_grant(state, quest_id)
                    return working, DispenseResult(
                        status=OperationStatus.PENDING,
                        quest_id=quest_id,
                        reason="oracle_unavailable",
                    )
            updated, result = dispense(self._catalog, working, quest_id, now)
            if result.status not in (OperationStatus.APPLIED, OperationStatus.PENDING):
                return state, result
            return updated, result

        after, result = self._store.transact(player_id, operation)
        self._emit_dispense(player_id, levels["before"], after, result)
        return result

    def _emit_dispense(
        self,
        player_id: str,
        level_before: int,
        after: PlayerState,
        result: DispenseResult,
    ) -> None:
        if result.status == OperationStatus.PENDING:
            self._emit(
                EventTypes.REWARD_PENDING,
                {"player_id": player_id, "quest_id": result.quest_id},
            )
            return
        if result.status != OperationStatus.APPLIED:
            return

        self._emit(
            EventTypes.REWARD_DISPENSED,
            {
                "player_id": player_id,
                "quest_id": result.quest_id,
                "grant_count": len(result.granted),
            },
        )
        new_level = after.progression.current_level
        if new_level > level_before:
            self._emit(
                EventTypes.LEVEL_UP,
                {"player_id": player_id, "new_level": new_level},
            )
        for character_id, delta in result.relationship_changes.items():
            if delta == 0:
                continue
            self._emit(
                EventTypes.RELATIONSHIP_CHANGED,
                {
                    "player_id": player_id,
                    "quest_id": result.quest_id,
                    "character_id": character_id,
                    "delta": delta,
                },
            )
        if result.newly_available:
            self._emit(
                EventTypes.QUEST_AVAILABILITY_CHANGED,
                {
                    "player_id": player_id,
                    "quest_id": result.quest_id,
                    "newly_available": list(result.newly_available),
                },
            )
