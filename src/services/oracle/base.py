"""Abstract base class for randomness oracles."""

from abc import ABC, abstractmethod


class RandomnessOracle(ABC):
    """Abstract base class for randomness oracles.

    An oracle answers a request for `count` unbiased 256-bit words.
    Implementations raise OracleFailure when no answer can be produced;
    callers treat that as "try again later", never as a fallback roll.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the oracle name."""
        ...

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the oracle is available and configured."""
        ...

    @abstractmethod
    def request_random_words(self, count: int) -> list[int]:
        """Request random words.

        Args:
            count: Number of words to return (>= 1).

        Returns:
            List of `count` non-negative integers below 2**256.

        Raises:
            OracleFailure: The oracle could not answer.
        """
        ...
