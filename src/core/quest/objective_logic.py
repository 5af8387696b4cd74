"""Objective 관련 로직 — 활성화, 진행 기록, 완료 판정, 게임 액션 라우팅

전부 순수 함수. 입력 QuestState/PlayerState는 변경하지 않고 사본을 돌려준다.
"""

import copy
import logging
from typing import Optional

from src.core.operation import OperationStatus
from src.core.quest.catalog import QuestCatalog
from src.core.quest.enums import COUNTING_OBJECTIVE_TYPES, QuestStatus
from src.core.quest.models import (
    ActivationResult,
    ProgressResult,
    QuestDefinition,
    QuestProgressSummary,
    QuestState,
)
from src.core.quest.prerequisite_logic import in_cooldown, is_repeatable
from src.core.state import PlayerState

logger = logging.getLogger(__name__)


def _fresh_progress(definition: QuestDefinition) -> dict[str, int]:
    return {objective.objective_id: 0 for objective in definition.objectives}


def restart_quest(
    definition: QuestDefinition, state: QuestState, now: int
) -> QuestState:
    """진행도를 0으로 되돌리고 active로. 완료 이력은 유지."""
    updated = copy.deepcopy(state)
    updated.status = QuestStatus.ACTIVE
    updated.progress = _fresh_progress(definition)
    updated.activated_at = now
    return updated


def activate_quest(
    definition: QuestDefinition, state: QuestState, now: int
) -> tuple[QuestState, ActivationResult]:
    """not_started → active. 쿨다운이 지난 반복 퀘스트는 진행도 초기화 후 재시작.

    해금 조건 판정은 호출자 몫 (PrerequisiteResolver).
    """
    quest_id = definition.quest_id

    if state.status == QuestStatus.NOT_STARTED:
        logger.info("Quest activated: %s", quest_id)
        return restart_quest(definition, state, now), ActivationResult(
            status=OperationStatus.APPLIED, quest_id=quest_id
        )

    if state.status == QuestStatus.ACTIVE:
        return state, ActivationResult(
            status=OperationStatus.DUPLICATE, quest_id=quest_id, reason="already_active"
        )

    if state.status == QuestStatus.COMPLETED_PENDING_DISPENSE:
        return state, ActivationResult(
            status=OperationStatus.INVALID, quest_id=quest_id, reason="reward_pending"
        )

    # completed
    if not is_repeatable(definition):
        return state, ActivationResult(
            status=OperationStatus.INVALID, quest_id=quest_id, reason="not_repeatable"
        )
    if in_cooldown(definition, state, now):
        logger.debug("Quest %s still in cooldown at %d", quest_id, now)
        return state, ActivationResult(
            status=OperationStatus.REJECTED, quest_id=quest_id, reason="cooldown"
        )

    logger.info("Quest re-activated: %s (run %d)", quest_id, state.completion_count + 1)
    return restart_quest(definition, state, now), ActivationResult(
        status=OperationStatus.APPLIED, quest_id=quest_id
    )


def is_quest_complete(definition: QuestDefinition, state: QuestState) -> bool:
    """선택 목표를 제외한 모든 목표가 target 도달."""
    return all(
        state.progress.get(objective.objective_id, 0) >= objective.target
        for objective in definition.objectives
        if not objective.is_optional
    )


def mark_pending_dispense(state: QuestState, now: int) -> QuestState:
    updated = copy.deepcopy(state)
    updated.status = QuestStatus.COMPLETED_PENDING_DISPENSE
    updated.last_completed_at = now
    return updated


def record_progress(
    definition: QuestDefinition,
    state: QuestState,
    objective_id: str,
    now: int,
    delta: Optional[int] = None,
    action_tag: Optional[str] = None,
) -> tuple[QuestState, ProgressResult]:
    """목표 진행 기록.

    delta=None 이면 "발생" 신호. 누적형(collect, score)은 발생 1회를 delta 1로,
    나머지 유형은 delta 값과 무관하게 current = target.
    """
    quest_id = definition.quest_id

    if state.status != QuestStatus.ACTIVE:
        if state.status == QuestStatus.NOT_STARTED:
            status, reason = OperationStatus.INVALID, "not_active"
        else:
            status, reason = OperationStatus.DUPLICATE, "already_completed"
        logger.debug("Progress ignored on %s: %s", quest_id, reason)
        return state, ProgressResult(
            status=status, quest_id=quest_id, objective_id=objective_id, reason=reason
        )

    objective = definition.get_objective(objective_id)
    if objective is None:
        return state, ProgressResult(
            status=OperationStatus.INVALID,
            quest_id=quest_id,
            objective_id=objective_id,
            reason="unknown_objective",
        )

    if objective.action_tag is not None and action_tag is not None:
        if action_tag != objective.action_tag:
            return state, ProgressResult(
                status=OperationStatus.REJECTED,
                quest_id=quest_id,
                objective_id=objective_id,
                reason="action_tag_mismatch",
            )

    if delta is not None and delta < 0:
        return state, ProgressResult(
            status=OperationStatus.INVALID,
            quest_id=quest_id,
            objective_id=objective_id,
            reason="negative_delta",
        )

    current = state.progress.get(objective_id, 0)
    if current >= objective.target:
        return state, ProgressResult(
            status=OperationStatus.DUPLICATE,
            quest_id=quest_id,
            objective_id=objective_id,
            objective_completed=True,
            reason="objective_already_completed",
        )

    if objective.objective_type in COUNTING_OBJECTIVE_TYPES:
        step = 1 if delta is None else delta
        new_value = min(current + step, objective.target)
    else:
        new_value = objective.target

    updated = copy.deepcopy(state)
    updated.progress[objective_id] = new_value
    objective_completed = new_value >= objective.target

    quest_completed = is_quest_complete(definition, updated)
    if quest_completed:
        updated = mark_pending_dispense(updated, now)
        logger.info("Quest objectives complete: %s", quest_id)

    return updated, ProgressResult(
        status=OperationStatus.APPLIED,
        quest_id=quest_id,
        objective_id=objective_id,
        objective_completed=objective_completed,
        quest_completed=quest_completed,
    )


def quest_progress(
    definition: QuestDefinition, state: QuestState
) -> QuestProgressSummary:
    """필수 목표 기준 진행률."""
    required = [o for o in definition.objectives if not o.is_optional]
    completed = sum(
        1 for o in required if state.progress.get(o.objective_id, 0) >= o.target
    )
    total = len(required)
    percentage = 100.0 if total == 0 else round(completed / total * 100, 2)
    return QuestProgressSummary(
        quest_id=definition.quest_id,
        completed=completed,
        total=total,
        percentage=percentage,
        is_complete=completed == total,
    )


def route_game_action(
    catalog: QuestCatalog,
    player: PlayerState,
    action_tag: str,
    now: int,
    amount: int = 1,
) -> tuple[PlayerState, list[ProgressResult]]:
    """게임플레이 액션 태그를 활성 퀘스트의 해당 목표들로 분배.

    action_tag가 지정된 목표만 대상. 변경이 없으면 입력 상태를 그대로 돌려준다.
    """
    updated: Optional[PlayerState] = None
    results: list[ProgressResult] = []

    for quest_id in player.active_quests:
        definition = catalog.get_quest(quest_id)
        if definition is None:
            continue
        for objective in definition.objectives:
            if objective.action_tag != action_tag:
                continue
            source = updated if updated is not None else player
            quest_state = source.quest_state(quest_id)
            new_state, result = record_progress(
                definition,
                quest_state,
                objective.objective_id,
                now,
                delta=amount,
                action_tag=action_tag,
            )
            if result.status != OperationStatus.APPLIED:
                continue
            if updated is None:
                updated = player.copy()
            updated.quest_states[quest_id] = new_state
            results.append(result)

    return (updated if updated is not None else player), results
