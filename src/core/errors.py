"""엔진 도메인 예외

InvalidOperation / DuplicateDelivery는 예외가 아니라 결과 상태(OperationStatus)로
표현한다. 여기에는 호출자가 반드시 처리해야 하는 실패만 둔다.
"""

from typing import Any, Dict, Optional


class QuestEngineError(Exception):
    """엔진 예외 기반 클래스

    Args:
        message: 사람이 읽는 설명
        details: 로깅용 구조화 데이터
        is_retryable: 재시도 가능 여부 (None이면 클래스 기본값)
    """

    DEFAULT_RETRYABLE: bool = False

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        is_retryable: Optional[bool] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details or {}
        self.is_retryable = (
            self.DEFAULT_RETRYABLE if is_retryable is None else is_retryable
        )

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} ({self.details})"
        return self.message


class ContentError(QuestEngineError):
    """카탈로그 구성 오류. 로드 시점에 치명적이며 부분 로드는 없다."""


class OracleFailure(QuestEngineError):
    """난수 오라클 타임아웃/오류. 보상은 pending으로 남는다."""

    DEFAULT_RETRYABLE = True


class ConcurrencyViolation(QuestEngineError):
    """플레이어 상태 버전 불일치. 새로 읽은 상태로 재시도해야 한다."""

    DEFAULT_RETRYABLE = True


class NotFoundError(QuestEngineError):
    """플레이어/퀘스트/캐릭터 ID를 찾을 수 없음."""


class ConfigurationError(QuestEngineError):
    """설정값 오류 (예: 알 수 없는 오라클 제공자). 기동 시점에 치명적."""
