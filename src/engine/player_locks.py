"""플레이어별 재진입 잠금

서비스 연산(읽기-수정-저장) 전체를 해당 플레이어 잠금 안에서 실행한다.
서로 다른 플레이어는 잠금을 공유하지 않는다.
"""

import threading
from collections.abc import Iterator
from contextlib import contextmanager

from src.core.logging import get_logger

logger = get_logger(__name__)


class PlayerLockRegistry:
    """player_id → RLock. 잠금은 처음 요청될 때 만든다."""

    def __init__(self) -> None:
        self._locks: dict[str, threading.RLock] = {}
        self._guard = threading.Lock()

    def get(self, player_id: str) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(player_id)
            if lock is None:
                lock = threading.RLock()
                self._locks[player_id] = lock
            return lock

    @contextmanager
    def hold(self, player_id: str) -> Iterator[None]:
        lock = self.get(player_id)
        with lock:
            yield

    def __len__(self) -> int:
        return len(self._locks)
