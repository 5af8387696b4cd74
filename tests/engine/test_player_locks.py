"""플레이어 잠금 레지스트리 테스트"""

import threading

from src.engine.player_locks import PlayerLockRegistry


class TestPlayerLockRegistry:
    def test_same_player_same_lock(self):
        locks = PlayerLockRegistry()
        assert locks.get("p1") is locks.get("p1")
        assert locks.get("p1") is not locks.get("p2")
        assert len(locks) == 2

    def test_reentrant(self):
        locks = PlayerLockRegistry()
        with locks.hold("p1"):
            with locks.hold("p1"):
                pass

    def test_other_player_not_blocked(self):
        locks = PlayerLockRegistry()
        acquired = threading.Event()

        def other():
            with locks.hold("p2"):
                acquired.set()

        with locks.hold("p1"):
            thread = threading.Thread(target=other)
            thread.start()
            assert acquired.wait(timeout=5)
        thread.join(timeout=5)

    def test_same_player_serialized(self):
        locks = PlayerLockRegistry()
        order: list[str] = []
        started = threading.Event()

        def contender():
            started.set()
            with locks.hold("p1"):
                order.append("contender")

        with locks.hold("p1"):
            thread = threading.Thread(target=contender)
            thread.start()
            assert started.wait(timeout=5)
            order.append("holder")
        thread.join(timeout=5)

        assert order == ["holder", "contender"]
