"""Deterministic randomness oracle for tests and local development."""

import hashlib
import threading
from typing import Optional

from src.core.errors import OracleFailure
from src.services.oracle.base import RandomnessOracle

DEFAULT_SEED = "rush-quest-engine"


class MockRandomnessOracle(RandomnessOracle):
    """SHA-256 counter stream.

    The n-th word is sha256(f"{seed}:{n}") read as a big-endian integer,
    so the same seed always yields the same sequence of words.
    `fixed_words` bypasses the stream (handy for pinning a rarity in tests).
    """

    def __init__(
        self,
        seed: Optional[str] = None,
        fixed_words: Optional[list[int]] = None,
        max_words: int = 10,
    ):
        self.seed = seed or DEFAULT_SEED
        self.fixed_words = list(fixed_words) if fixed_words else None
        self.max_words = max_words
        self.request_count = 0
        self._counter = 0
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        """Return the oracle name."""
        return "mock"

    def is_available(self) -> bool:
        """Check if the oracle is available."""
        return True

    def request_random_words(self, count: int) -> list[int]:
        if count < 1 or count > self.max_words:
            raise OracleFailure(
                "Invalid word count", {"count": count, "max_words": self.max_words}
            )
        with self._lock:
            self.request_count += 1
            if self.fixed_words is not None:
                return [
                    self.fixed_words[i % len(self.fixed_words)] for i in range(count)
                ]
            words = []
            for _ in range(count):
                digest = hashlib.sha256(f"{self.seed}:{self._counter}".encode()).digest()
                words.append(int.from_bytes(digest, "big"))
                self._counter += 1
            return words
