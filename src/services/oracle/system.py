"""Randomness oracle backed by the operating system CSPRNG."""

import secrets

from src.core.errors import OracleFailure
from src.core.logging import get_logger
from src.services.oracle.base import RandomnessOracle

logger = get_logger(__name__)

WORD_BITS = 256


class SystemRandomnessOracle(RandomnessOracle):
    """Answers immediately from `secrets`. Stand-in for an on-chain VRF."""

    def __init__(self, max_words: int = 10):
        self.max_words = max_words

    @property
    def name(self) -> str:
        """Return the oracle name."""
        return "system"

    def is_available(self) -> bool:
        """Check if the oracle is available."""
        return True

    def request_random_words(self, count: int) -> list[int]:
        if count < 1 or count > self.max_words:
            raise OracleFailure(
                "Invalid word count", {"count": count, "max_words": self.max_words}
            )
        words = [secrets.randbits(WORD_BITS) for _ in range(count)]
        logger.debug("System oracle produced %d word(s)", count)
        return words
