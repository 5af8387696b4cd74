"""온체인 이벤트 검증 — 시그니처/파라미터/시간창/반복성/멱등성

처리 순서:
1. unique_id 중복 → 전체 거부
2. 시그니처가 일치하고 플레이어가 진행 중인(not_started 아님) 리액티브 퀘스트마다
   파라미터 → 상태(보상 대기/완료/재활성화) → 시간창 순으로 판정
3. 통과한 레코드는 목표 진행으로 전달
4. 한 퀘스트라도 받아들이면 unique_id 기록
"""

import logging
import operator
from typing import Any, Callable, Optional

from src.core.operation import OperationStatus
from src.core.quest.catalog import QuestCatalog
from src.core.quest.enums import (
    COUNTING_OBJECTIVE_TYPES,
    ComparisonOperator,
    QuestStatus,
)
from src.core.quest.models import (
    EventCriteria,
    EventRecord,
    ParameterCheck,
    QuestCompletionResult,
    QuestDefinition,
    QuestState,
)
from src.core.quest.objective_logic import (
    mark_pending_dispense,
    record_progress,
    restart_quest,
)
from src.core.quest.prerequisite_logic import in_cooldown, is_repeatable
from src.core.state import PlayerState

logger = logging.getLogger(__name__)

# 피드 타임스탬프가 서버 시각보다 앞서도 허용하는 폭 (초)
MAX_CLOCK_SKEW = 300

_OPERATORS: dict[ComparisonOperator, Callable[[Any, Any], bool]] = {
    ComparisonOperator.GT: operator.gt,
    ComparisonOperator.LT: operator.lt,
    ComparisonOperator.EQ: operator.eq,
    ComparisonOperator.NE: operator.ne,
    ComparisonOperator.GE: operator.ge,
    ComparisonOperator.LE: operator.le,
}

_missing_operators = set(ComparisonOperator) - set(_OPERATORS)
if _missing_operators:
    raise RuntimeError(f"comparison operators missing for: {_missing_operators}")


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        try:
            return int(value, 0)
        except ValueError:
            try:
                return float(value)
            except ValueError:
                return None
    return None


def check_parameter(check: ParameterCheck, parameters: dict[str, Any]) -> bool:
    """파라미터 하나 판정. 파라미터가 없으면 실패.

    양쪽이 수치로 해석되면 수치 비교 (디코딩된 uint256 문자열 포함),
    아니면 원값 비교. 비교 불가 타입은 실패.
    """
    if check.param_name not in parameters:
        return False
    actual = parameters[check.param_name]
    expected = check.value

    actual_num, expected_num = _as_number(actual), _as_number(expected)
    if actual_num is not None and expected_num is not None:
        actual, expected = actual_num, expected_num

    try:
        return bool(_OPERATORS[check.operator](actual, expected))
    except TypeError:
        return False


def matches_criteria(criteria: EventCriteria, record: EventRecord) -> bool:
    """시그니처 + 파라미터 검사 전부 통과."""
    if record.signature != criteria.event_signature:
        return False
    return all(check_parameter(c, record.parameters) for c in criteria.parameter_checks)


def _event_delta(record: EventRecord, param: Optional[str]) -> int:
    if param is None or param not in record.parameters:
        return 1
    value = _as_number(record.parameters[param])
    if value is None:
        raise ValueError(f"event parameter {param} is not numeric")
    if value < 0:
        raise ValueError(f"event parameter {param} is negative: {value}")
    return int(value)


def _apply_record(
    definition: QuestDefinition, state: QuestState, record: EventRecord
) -> tuple[QuestState, list[str]]:
    """통과한 레코드를 목표 진행으로 변환. 목표가 없으면 바로 완료."""
    if not definition.objectives:
        return mark_pending_dispense(state, record.timestamp), []

    advanced: list[str] = []
    for objective in definition.objectives:
        delta = None
        if objective.objective_type in COUNTING_OBJECTIVE_TYPES:
            delta = _event_delta(record, objective.event_param)
        state, result = record_progress(
            definition, state, objective.objective_id, record.timestamp, delta=delta
        )
        if result.status == OperationStatus.APPLIED:
            advanced.append(objective.objective_id)
    return state, advanced


def _reject(
    definition: QuestDefinition,
    record: EventRecord,
    status: OperationStatus,
    reason: str,
) -> QuestCompletionResult:
    logger.debug(
        "Event %s not applied to %s: %s", record.unique_id, definition.quest_id, reason
    )
    return QuestCompletionResult(
        status=status,
        quest_id=definition.quest_id,
        event_id=record.unique_id,
        reason=reason,
    )


def _evaluate_quest(
    definition: QuestDefinition, state: QuestState, record: EventRecord
) -> tuple[Optional[QuestState], QuestCompletionResult]:
    criteria = definition.event_criteria
    if criteria is None:
        return None, _reject(definition, record, OperationStatus.INVALID, "not_reactive")

    if not all(check_parameter(c, record.parameters) for c in criteria.parameter_checks):
        return None, _reject(
            definition, record, OperationStatus.REJECTED, "parameter_mismatch"
        )

    if state.status == QuestStatus.COMPLETED_PENDING_DISPENSE:
        return None, _reject(definition, record, OperationStatus.REJECTED, "reward_pending")

    if state.status == QuestStatus.COMPLETED:
        if not is_repeatable(definition):
            return None, _reject(
                definition, record, OperationStatus.DUPLICATE, "already_completed"
            )
        if in_cooldown(definition, state, record.timestamp):
            return None, _reject(definition, record, OperationStatus.REJECTED, "cooldown")
        state = restart_quest(definition, state, record.timestamp)
        logger.info("Reactive quest re-activated by event: %s", definition.quest_id)

    if criteria.time_window > 0 and state.activated_at is not None:
        if record.timestamp > state.activated_at + criteria.time_window:
            return None, _reject(
                definition, record, OperationStatus.REJECTED, "time_window_expired"
            )

    try:
        state, advanced = _apply_record(definition, state, record)
    except ValueError as exc:
        logger.warning("Event %s malformed for %s: %s", record.unique_id, definition.quest_id, exc)
        return None, _reject(definition, record, OperationStatus.REJECTED, "bad_event_param")

    return state, QuestCompletionResult(
        status=OperationStatus.APPLIED,
        quest_id=definition.quest_id,
        event_id=record.unique_id,
        objectives_advanced=advanced,
        quest_completed=state.status == QuestStatus.COMPLETED_PENDING_DISPENSE,
    )


def handle_event(
    catalog: QuestCatalog,
    player: PlayerState,
    record: EventRecord,
    now: Optional[int] = None,
) -> tuple[PlayerState, list[QuestCompletionResult]]:
    """이벤트 레코드 하나 처리. 같은 unique_id는 최대 한 번만 반영된다."""
    if record.player_id != player.player_id:
        return player, [
            QuestCompletionResult(
                status=OperationStatus.INVALID,
                quest_id=None,
                event_id=record.unique_id,
                reason="player_mismatch",
            )
        ]

    if record.unique_id in player.processed_event_ids:
        logger.info("Duplicate event delivery ignored: %s", record.unique_id)
        return player, [
            QuestCompletionResult(
                status=OperationStatus.DUPLICATE,
                quest_id=None,
                event_id=record.unique_id,
                reason="duplicate_event",
            )
        ]

    if now is not None and record.timestamp > now + MAX_CLOCK_SKEW:
        return player, [
            QuestCompletionResult(
                status=OperationStatus.INVALID,
                quest_id=None,
                event_id=record.unique_id,
                reason="future_timestamp",
            )
        ]

    updated = player.copy()
    results: list[QuestCompletionResult] = []

    for definition in catalog.reactive_quests(record.signature):
        state = updated.quest_state(definition.quest_id)
        if state.status == QuestStatus.NOT_STARTED:
            continue
        new_state, result = _evaluate_quest(definition, state, record)
        if new_state is not None:
            updated.quest_states[definition.quest_id] = new_state
        results.append(result)

    if not any(r.status == OperationStatus.APPLIED for r in results):
        return player, results

    updated.processed_event_ids.add(record.unique_id)
    logger.info(
        "Event %s accepted by %d quest(s)",
        record.unique_id,
        sum(1 for r in results if r.status == OperationStatus.APPLIED),
    )
    return updated, results
