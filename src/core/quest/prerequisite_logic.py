"""해금 판정 — 퀘스트/캐릭터 가용성, 반복 주기, 진화 단계

판정은 해금 조건 전부를 만족(AND)해야 통과.
character 조건은 해당 캐릭터의 해금 조건으로 재귀하며,
한 번의 판정 패스 안에서 결과를 메모한다 (다이아몬드 그래프 중복 평가 방지).
"""

import logging
from typing import Callable, Mapping, Optional

from src.core.errors import ContentError
from src.core.quest.catalog import QuestCatalog
from src.core.quest.enums import PrerequisiteType, QuestStatus, Repeatability
from src.core.quest.models import (
    PlayerContext,
    Prerequisite,
    QuestDefinition,
    QuestState,
)

logger = logging.getLogger(__name__)

# === 반복 주기 (초) ===
REPEATABILITY_PERIODS: dict[Repeatability, int] = {
    Repeatability.ONCE: 0,
    Repeatability.DAILY: 86400,
    Repeatability.WEEKLY: 604800,
    Repeatability.UNLIMITED: 0,
}


def is_repeatable(definition: QuestDefinition) -> bool:
    """is_repeatable 플래그, 리액티브 퀘스트는 once가 아닌 repeatability도 반복 가능."""
    if definition.is_repeatable:
        return True
    criteria = definition.event_criteria
    return criteria is not None and criteria.repeatability != Repeatability.ONCE


def repeat_period(definition: QuestDefinition) -> int:
    """재활성화까지 기다려야 하는 초. cooldown과 반복 주기 중 긴 쪽."""
    period = 0
    if definition.event_criteria is not None:
        period = REPEATABILITY_PERIODS[definition.event_criteria.repeatability]
    return max(definition.cooldown, period)


def in_cooldown(definition: QuestDefinition, state: QuestState, now: int) -> bool:
    if state.last_completed_at is None:
        return False
    return now - state.last_completed_at < repeat_period(definition)


class PrerequisiteResolver:
    """판정 1패스용 리졸버. 패스마다 새로 만든다 (메모 수명 = 패스)."""

    def __init__(self, catalog: QuestCatalog, context: PlayerContext):
        self.catalog = catalog
        self.context = context
        self._memo: dict[str, bool] = {}
        self._visiting: list[str] = []

    def is_available(self, target_id: str) -> bool:
        if target_id in self._memo:
            return self._memo[target_id]
        if target_id in self._visiting:
            cycle = self._visiting[self._visiting.index(target_id):] + [target_id]
            logger.error("Prerequisite cycle during resolution: %s", cycle)
            raise ContentError("Cyclic prerequisite graph", {"nodes": cycle})
        if not self.catalog.has_definition(target_id):
            raise KeyError(target_id)

        self._visiting.append(target_id)
        try:
            result = self._evaluate(target_id)
        finally:
            self._visiting.pop()
        self._memo[target_id] = result
        return result

    def _evaluate(self, target_id: str) -> bool:
        if target_id in self.context.unlocked_characters:
            return True

        quest = self.catalog.get_quest(target_id)
        if quest is not None and self.context.level < quest.level_requirement:
            return False

        owner = self.catalog.owner_character_of(target_id)
        return self.all_satisfied(self.catalog.prerequisites_of(target_id), owner)

    def all_satisfied(
        self,
        prerequisites: tuple[Prerequisite, ...],
        owner_character: Optional[str],
    ) -> bool:
        return all(
            _PREREQ_CHECKS[p.prereq_type](self, p, owner_character)
            for p in prerequisites
        )


# === 조건 유형별 판정 ===


def _check_level(resolver: PrerequisiteResolver, prereq: Prerequisite, _owner) -> bool:
    return resolver.context.level >= int(prereq.value)


def _check_achievement(
    resolver: PrerequisiteResolver, prereq: Prerequisite, _owner
) -> bool:
    return prereq.value in resolver.context.achievements


def _check_quest(resolver: PrerequisiteResolver, prereq: Prerequisite, _owner) -> bool:
    return prereq.value in resolver.context.completed_quests


def _check_relationship(
    resolver: PrerequisiteResolver, prereq: Prerequisite, owner: Optional[str]
) -> bool:
    character_id = prereq.character_id or owner
    if character_id is None:
        return False
    score = resolver.context.relationships.get(character_id, 0)
    return score >= int(prereq.value)


def _check_character(
    resolver: PrerequisiteResolver, prereq: Prerequisite, _owner
) -> bool:
    return resolver.is_available(str(prereq.value))


_PREREQ_CHECKS: dict[
    PrerequisiteType,
    Callable[[PrerequisiteResolver, Prerequisite, Optional[str]], bool],
] = {
    PrerequisiteType.LEVEL: _check_level,
    PrerequisiteType.ACHIEVEMENT: _check_achievement,
    PrerequisiteType.QUEST: _check_quest,
    PrerequisiteType.RELATIONSHIP: _check_relationship,
    PrerequisiteType.CHARACTER: _check_character,
}

_missing_checks = set(PrerequisiteType) - set(_PREREQ_CHECKS)
if _missing_checks:
    raise RuntimeError(f"prerequisite checks missing for: {_missing_checks}")


# === 공개 API ===


def is_available(
    catalog: QuestCatalog, target_id: str, context: PlayerContext
) -> bool:
    return PrerequisiteResolver(catalog, context).is_available(target_id)


def _quest_startable(
    definition: QuestDefinition, state: Optional[QuestState], now: int
) -> bool:
    if state is None or state.status == QuestStatus.NOT_STARTED:
        return True
    if state.status != QuestStatus.COMPLETED:
        # active / completed_pending_dispense
        return False
    if not is_repeatable(definition):
        return False
    return not in_cooldown(definition, state, now)


def list_available(
    catalog: QuestCatalog,
    context: PlayerContext,
    quest_states: Mapping[str, QuestState],
    now: int,
) -> list[str]:
    """시작 가능한 퀘스트 + 해금 가능한(또는 해금된) 캐릭터 ID.

    순서: 카탈로그 선언 순서, 퀘스트 먼저.
    """
    resolver = PrerequisiteResolver(catalog, context)
    available: list[str] = []

    for quest_id, definition in catalog.quests.items():
        if not _quest_startable(definition, quest_states.get(quest_id), now):
            continue
        if resolver.is_available(quest_id):
            available.append(quest_id)

    for character_id in catalog.characters:
        if resolver.is_available(character_id):
            available.append(character_id)

    return available


def current_evolution_stage(
    catalog: QuestCatalog, character_id: str, context: PlayerContext
) -> int:
    """요구 조건을 만족한 가장 높은 진화 단계. 단계는 순서대로만 오른다.

    진화 단계가 없거나 첫 단계부터 막히면 0.
    """
    character = catalog.get_character(character_id)
    if character is None:
        raise KeyError(character_id)

    resolver = PrerequisiteResolver(catalog, context)
    reached = 0
    for stage in sorted(character.evolution_stages, key=lambda s: s.stage):
        if not resolver.all_satisfied(stage.requirements, character_id):
            break
        reached = stage.stage
    return reached
