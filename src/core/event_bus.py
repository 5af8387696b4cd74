"""EventBus - 서비스 간 이벤트 통신 인프라

규칙:
- 서비스는 다른 서비스를 직접 호출하지 않고 이벤트로 알린다
- 이벤트는 식별자(ID)와 작은 값만 전달한다
- 전파 깊이 최대 MAX_DEPTH 단계
- 한 전파 체인 안에서 동일 원인의 동일 이벤트 중복 발행 금지
- 체인 상태(깊이/중복 추적)는 스레드별. 서로 다른 플레이어 연산이
  동시에 발행해도 섞이지 않는다
"""

import threading
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Set

from src.core.logging import get_logger

logger = get_logger(__name__)

MAX_DEPTH = 5  # 한 체인 내 이벤트 전파 최대 깊이

# 같은 유형이라도 대상이 다르면 다른 이벤트로 본다
CHAIN_KEY_FIELDS = ("player_id", "quest_id", "objective_id", "character_id")


@dataclass
class GameEvent:
    """이벤트 데이터 컨테이너

    Args:
        event_type: 이벤트 유형 (예: "quest_completed", "level_up")
        data: 이벤트 데이터 (player_id, quest_id 등 ID 위주)
        source: 발행한 서비스 이름
    """

    event_type: str
    data: Dict[str, Any]
    source: str

    # 내부 추적용 (외부에서 설정하지 않음)
    _depth: int = field(default=0, repr=False)

    @property
    def chain_key(self) -> str:
        """중복 판정 키: source:event_type + 대상 ID들"""
        ids = [str(self.data.get(name, "")) for name in CHAIN_KEY_FIELDS]
        return ":".join([self.source, self.event_type, *ids])


# 핸들러 타입: GameEvent를 받는 callable
EventHandler = Callable[[GameEvent], None]


class _ChainState(threading.local):
    def __init__(self) -> None:
        self.depth: int = 0
        self.emitted: Set[str] = set()


class EventBus:
    """동기식 이벤트 버스

    사용 패턴:
        bus = EventBus()
        bus.subscribe("quest_completed", watcher.handle_quest_completed)
        bus.emit(GameEvent(event_type="quest_completed",
                           data={"player_id": "p1", "quest_id": "q1"},
                           source="quest_service"))
    """

    def __init__(self) -> None:
        self._handlers: Dict[str, List[EventHandler]] = defaultdict(list)
        self._chain = _ChainState()

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        """이벤트 구독 등록"""
        self._handlers[event_type].append(handler)
        logger.debug(f"EventBus 구독: {event_type} → {handler.__qualname__}")

    def unsubscribe(self, event_type: str, handler: EventHandler) -> None:
        """이벤트 구독 해제"""
        if event_type in self._handlers:
            try:
                self._handlers[event_type].remove(handler)
                logger.debug(
                    f"EventBus 구독 해제: {event_type} → {handler.__qualname__}"
                )
            except ValueError:
                logger.warning(f"핸들러 미등록: {event_type} → {handler.__qualname__}")

    def emit(self, event: GameEvent) -> None:
        """이벤트 발행. 등록된 핸들러를 동기 호출.

        깊이 0에서의 발행은 새 체인을 시작한다 (중복 추적 초기화).

        안전장치:
        1. 전파 깊이 MAX_DEPTH 초과 시 무시
        2. 같은 체인에서 동일 chain_key 중복 발행 시 무시
        """
        chain = self._chain
        if chain.depth == 0:
            chain.emitted.clear()

        if chain.depth >= MAX_DEPTH:
            logger.warning(
                f"EventBus 전파 깊이 초과 ({MAX_DEPTH}): "
                f"{event.source}:{event.event_type} 무시됨"
            )
            return

        chain_key = event.chain_key
        if chain_key in chain.emitted:
            logger.warning(f"EventBus 중복 이벤트 차단: {chain_key}")
            return

        chain.emitted.add(chain_key)
        event._depth = chain.depth

        handlers = list(self._handlers.get(event.event_type, []))
        if not handlers:
            logger.debug(f"EventBus: {event.event_type} 구독자 없음")
            return

        logger.info(
            f"EventBus 전파: {event.event_type} (source={event.source}, "
            f"depth={chain.depth}, handlers={len(handlers)})"
        )

        chain.depth += 1
        try:
            for handler in handlers:
                try:
                    handler(event)
                except Exception:
                    logger.exception(
                        f"EventBus 핸들러 에러: {handler.__qualname__} "
                        f"(event={event.event_type})"
                    )
        finally:
            chain.depth -= 1

    def reset_chain(self) -> None:
        """현재 스레드의 중복 추적 초기화."""
        self._chain.emitted.clear()
        self._chain.depth = 0

    def clear(self) -> None:
        """모든 구독 해제 (테스트용)"""
        self._handlers.clear()
        self.reset_chain()

    @property
    def handler_count(self) -> int:
        """등록된 총 핸들러 수"""
        return sum(len(h) for h in self._handlers.values())
