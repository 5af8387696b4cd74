"""Factory for creating randomness oracle instances."""

from typing import Optional

from src.config import settings
from src.core.errors import ConfigurationError
from src.core.logging import get_logger
from src.services.oracle.base import RandomnessOracle
from src.services.oracle.mock import MockRandomnessOracle
from src.services.oracle.system import SystemRandomnessOracle

logger = get_logger(__name__)

KNOWN_PROVIDERS = ("mock", "system")


def get_randomness_oracle(provider_name: Optional[str] = None) -> RandomnessOracle:
    """Get a randomness oracle instance.

    Args:
        provider_name: Optional oracle name. If not specified,
                      uses ORACLE_PROVIDER from config.

    Returns:
        A RandomnessOracle instance.

    Raises:
        ConfigurationError: If the provider name is not recognized.
    """
    name = provider_name or settings.ORACLE_PROVIDER

    if name == "mock":
        logger.debug("Using MockRandomnessOracle")
        return MockRandomnessOracle(
            seed=settings.ORACLE_SEED, max_words=settings.ORACLE_MAX_WORDS
        )

    if name == "system":
        logger.debug("Using SystemRandomnessOracle")
        return SystemRandomnessOracle(max_words=settings.ORACLE_MAX_WORDS)

    # 알 수 없는 제공자는 기동 실패 (mock 대체 없음)
    logger.error("Unknown oracle provider '%s'", name)
    raise ConfigurationError(
        "Unknown randomness oracle provider",
        {"provider": name, "known": list(KNOWN_PROVIDERS)},
    )
