"""도메인 예외 → HTTP 상태 변환."""

from collections.abc import Iterator
from contextlib import contextmanager

from fastapi import HTTPException

from src.core.errors import ConcurrencyViolation, NotFoundError
from src.core.logging import get_logger

logger = get_logger(__name__)


@contextmanager
def http_errors() -> Iterator[None]:
    """with 블록 안의 NotFoundError → 404, ConcurrencyViolation → 409."""
    try:
        yield
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ConcurrencyViolation as e:
        logger.warning("Concurrent update rejected: %s", e)
        raise HTTPException(status_code=409, detail=str(e))
