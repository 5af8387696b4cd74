"""Randomness oracle module."""

from src.services.oracle.base import RandomnessOracle
from src.services.oracle.factory import get_randomness_oracle
from src.services.oracle.mock import MockRandomnessOracle
from src.services.oracle.system import SystemRandomnessOracle

__all__ = [
    "RandomnessOracle",
    "MockRandomnessOracle",
    "SystemRandomnessOracle",
    "get_randomness_oracle",
]
