"""ObjectiveWatcher — 게임플레이/온체인 이벤트를 목표 진행으로 연결.

engine 컴포넌트. EventBus의 입력 이벤트를 구독하고
QuestService 연산으로 변환한다. 진행/완료 이벤트 발행은 QuestService 몫.
"""

import logging
from typing import Any

from src.core.errors import NotFoundError, QuestEngineError
from src.core.event_bus import EventBus, GameEvent
from src.core.event_types import EventTypes
from src.core.quest.models import EventRecord

logger = logging.getLogger(__name__)


class ObjectiveWatcher:
    """입력 이벤트 → 목표 진행, (선택) 완료 즉시 보상 지급"""

    def __init__(
        self,
        event_bus: EventBus,
        quest_service: Any,
        auto_dispense: bool = False,
    ) -> None:
        """
        quest_service: QuestService 인스턴스.
            handle_game_action(), handle_chain_event(), dispense() 사용.
        auto_dispense: True면 quest_completed 수신 시 바로 보상 지급 시도.

        ObjectiveWatcher는 engine 컴포넌트이므로 quest_service를
        직접 참조해도 아키텍처 위반이 아님 (engine → service 방향).
        """
        self._bus = event_bus
        self._quest_service = quest_service
        self._auto_dispense = auto_dispense
        self._register_watchers()

    def _register_watchers(self) -> None:
        bus = self._bus
        bus.subscribe(EventTypes.ACTION_COMPLETED, self._on_action_completed)
        bus.subscribe(EventTypes.CHAIN_EVENT_RECEIVED, self._on_chain_event)
        if self._auto_dispense:
            bus.subscribe(EventTypes.QUEST_COMPLETED, self._on_quest_completed)

    # === 게임플레이 액션 ===

    def _on_action_completed(self, event: GameEvent) -> None:
        """action_completed → 태그가 일치하는 활성 목표 진행.

        event.data: {player_id, action_tag, amount?}
        """
        data = event.data
        player_id = data.get("player_id")
        action_tag = data.get("action_tag")
        if not player_id or not action_tag:
            logger.warning("action_completed missing player_id/action_tag: %s", data)
            return

        try:
            results = self._quest_service.handle_game_action(
                player_id, action_tag, int(data.get("amount", 1))
            )
        except NotFoundError:
            logger.info("action_completed for unknown player %s ignored", player_id)
            return
        logger.debug(
            "Action %s advanced %d objective(s) for %s",
            action_tag,
            len(results),
            player_id,
        )

    # === 온체인 이벤트 ===

    def _on_chain_event(self, event: GameEvent) -> None:
        """chain_event_received → 리액티브 퀘스트 검증.

        event.data: {player_id, signature, parameters, timestamp, unique_id}
        """
        data = event.data
        try:
            record = EventRecord(
                signature=data["signature"],
                parameters=dict(data.get("parameters", {})),
                timestamp=int(data["timestamp"]),
                unique_id=data["unique_id"],
                player_id=data["player_id"],
            )
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Malformed chain event dropped: %s (%s)", data, exc)
            return

        try:
            self._quest_service.handle_chain_event(record)
        except NotFoundError:
            logger.info("Chain event %s for unknown player ignored", record.unique_id)

    # === 자동 지급 ===

    def _on_quest_completed(self, event: GameEvent) -> None:
        player_id = event.data.get("player_id")
        quest_id = event.data.get("quest_id")
        if not player_id or not quest_id:
            return
        try:
            result = self._quest_service.dispense(player_id, quest_id)
        except QuestEngineError as exc:
            logger.warning("Auto-dispense failed for %s/%s: %s", player_id, quest_id, exc)
            return
        logger.info(
            "Auto-dispense %s/%s: %s", player_id, quest_id, result.status.value
        )
