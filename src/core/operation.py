"""엔진 연산 결과 상태

모든 엔진 연산은 예외 대신 이 상태를 결과에 담아 돌려준다.
"""

from enum import Enum


class OperationStatus(str, Enum):
    APPLIED = "applied"
    INVALID = "invalid"  # 호출자 실수. 상태 변화 없음
    DUPLICATE = "duplicate"  # 중복 전달. 조용히 무시
    REJECTED = "rejected"  # 조건 불충족 (쿨다운, 파라미터 불일치 등)
    PENDING = "pending"  # 오라클 응답 대기
