"""콘텐츠 카탈로그 로드 + 검증

퀘스트/캐릭터/레벨 보상/스킬 트리 정의를 dict(JSON)에서 읽어
읽기 전용 QuestCatalog를 만든다.

검증 실패는 전부 ContentError. 부분 로드는 없다:
모든 검증을 통과한 뒤에만 QuestCatalog 인스턴스를 반환한다.

검증 항목:
1. 퀘스트/캐릭터 ID 중복 (두 네임스페이스 합쳐서 유일)
2. 참조 무결성 (quest/character/achievement/relationship 대상)
3. 해금 조건 그래프 비순환 (위상 정렬)
4. 스킬 단계 테이블 순서 (required_level == 0, 1, 2, ...)
5. 레벨 보상 테이블 오름차순, 중복 없음
6. 희귀 롤 설정 범위 (선택: 오라클 word 한도)
"""

from __future__ import annotations

import json
import logging
from collections import deque
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Optional

from src.core.errors import ContentError
from src.core.progression.leveling import DEFAULT_LEVEL_REWARDS
from src.core.progression.models import (
    LevelReward,
    SkillBonus,
    SkillBranchKind,
    SkillTier,
)
from src.core.progression.skill_tree import DEFAULT_SKILL_TREE
from src.core.quest.enums import (
    ComparisonOperator,
    ObjectiveType,
    PrerequisiteType,
    Rarity,
    Repeatability,
    RewardType,
)
from src.core.quest.models import (
    DEFAULT_RARITY_TIERS,
    CharacterDefinition,
    EventCriteria,
    EvolutionStage,
    ObjectiveDefinition,
    ParameterCheck,
    Prerequisite,
    QuestDefinition,
    RarityRollConfig,
    Reward,
)

logger = logging.getLogger(__name__)

# 그래프 간선이 되는 해금 조건 유형
_GRAPH_PREREQ_TYPES = frozenset({PrerequisiteType.QUEST, PrerequisiteType.CHARACTER})


@dataclass(frozen=True)
class QuestCatalog:
    """읽기 전용 콘텐츠 카탈로그"""

    quests: dict[str, QuestDefinition] = field(default_factory=dict)
    characters: dict[str, CharacterDefinition] = field(default_factory=dict)
    achievements: frozenset[str] = frozenset()
    level_rewards: dict[int, LevelReward] = field(
        default_factory=lambda: dict(DEFAULT_LEVEL_REWARDS)
    )
    skill_tree: dict[SkillBranchKind, tuple[SkillTier, ...]] = field(
        default_factory=lambda: dict(DEFAULT_SKILL_TREE)
    )
    signature_index: dict[str, tuple[str, ...]] = field(default_factory=dict)

    def get_quest(self, quest_id: str) -> Optional[QuestDefinition]:
        return self.quests.get(quest_id)

    def get_character(self, character_id: str) -> Optional[CharacterDefinition]:
        return self.characters.get(character_id)

    def has_definition(self, target_id: str) -> bool:
        return target_id in self.quests or target_id in self.characters

    def definition_ids(self) -> list[str]:
        """퀘스트 → 캐릭터 순, 카탈로그 선언 순서."""
        return [*self.quests.keys(), *self.characters.keys()]

    def prerequisites_of(self, target_id: str) -> tuple[Prerequisite, ...]:
        if target_id in self.quests:
            return self.quests[target_id].prerequisites
        if target_id in self.characters:
            return self.characters[target_id].prerequisites
        return ()

    def owner_character_of(self, target_id: str) -> Optional[str]:
        """relationship 조건의 기본 대상 캐릭터."""
        if target_id in self.quests:
            return self.quests[target_id].character_id
        if target_id in self.characters:
            return target_id
        return None

    def reactive_quests(self, signature: str) -> list[QuestDefinition]:
        return [self.quests[qid] for qid in self.signature_index.get(signature, ())]


# === 파싱 ===


def _parse_prerequisite(raw: dict[str, Any]) -> Prerequisite:
    prereq_type = PrerequisiteType(raw["type"])
    value = raw["value"]
    if prereq_type in (PrerequisiteType.LEVEL, PrerequisiteType.RELATIONSHIP):
        value = int(value)
    else:
        value = str(value)
    return Prerequisite(
        prereq_type=prereq_type,
        value=value,
        character_id=raw.get("character_id"),
        description=raw.get("description", ""),
    )


def _parse_objective(raw: dict[str, Any]) -> ObjectiveDefinition:
    target = int(raw.get("target", 1))
    if target < 1:
        raise ValueError(f"objective target must be >= 1: {raw.get('id')}")
    return ObjectiveDefinition(
        objective_id=str(raw["id"]),
        objective_type=ObjectiveType(raw["type"]),
        target=target,
        is_optional=bool(raw.get("is_optional", False)),
        title=raw.get("title", ""),
        action_tag=raw.get("action_tag"),
        event_param=raw.get("event_param"),
    )


def _parse_rarity_roll(raw: dict[str, Any]) -> RarityRollConfig:
    chance = float(raw["rare_drop_chance"])
    if not 0 <= chance <= 100:
        raise ValueError(f"rare_drop_chance out of range: {chance}")
    num_words = int(raw.get("num_words", 1))
    if num_words < 1:
        raise ValueError(f"num_words must be >= 1: {num_words}")

    tiers = DEFAULT_RARITY_TIERS
    if "tiers" in raw:
        tiers = tuple(
            (Rarity(entry["rarity"]), float(entry["probability"]))
            for entry in raw["tiers"]
        )
    if not tiers:
        raise ValueError("rarity tier table is empty")
    if any(probability <= 0 for _, probability in tiers):
        raise ValueError("rarity tier probabilities must be positive")
    if sum(probability for _, probability in tiers) > 1.0 + 1e-9:
        raise ValueError("rarity tier probabilities exceed 1.0")

    return RarityRollConfig(
        rare_drop_chance=chance,
        num_words=num_words,
        tiers=tiers,
        base_rarity=Rarity(raw.get("base_rarity", Rarity.COMMON.value)),
    )


def _parse_reward(raw: dict[str, Any]) -> Reward:
    reward_type = RewardType(raw["type"])
    rarity_roll = None
    if raw.get("rarity_roll") is not None:
        if reward_type != RewardType.NFT:
            raise ValueError(f"rarity_roll only allowed on nft rewards: {reward_type}")
        rarity_roll = _parse_rarity_roll(raw["rarity_roll"])
    rarity = raw.get("rarity")
    amount = int(raw.get("amount", 0))
    if amount < 0:
        raise ValueError(f"reward amount must be >= 0: {amount}")
    return Reward(
        reward_type=reward_type,
        amount=amount,
        item=raw.get("item"),
        rarity=Rarity(rarity) if rarity is not None else None,
        rarity_roll=rarity_roll,
        description=raw.get("description", ""),
    )


def _parse_event_criteria(raw: dict[str, Any], is_repeatable: bool) -> EventCriteria:
    """repeatability 생략 시 퀘스트의 is_repeatable을 따른다 (true → unlimited)."""
    checks = tuple(
        ParameterCheck(
            param_name=str(check["param"]),
            operator=ComparisonOperator(check["operator"]),
            value=check["value"],
        )
        for check in raw.get("parameter_checks", [])
    )
    time_window = int(raw.get("time_window", 0))
    if time_window < 0:
        raise ValueError(f"time_window must be >= 0: {time_window}")
    default = Repeatability.UNLIMITED if is_repeatable else Repeatability.ONCE
    repeatability = Repeatability(raw.get("repeatability", default.value))
    if is_repeatable and repeatability == Repeatability.ONCE:
        raise ValueError("is_repeatable contradicts repeatability \"once\"")
    return EventCriteria(
        event_signature=str(raw["event_signature"]),
        parameter_checks=checks,
        time_window=time_window,
        repeatability=repeatability,
    )


def _fold_relationship_requirement(
    quest_id: str,
    character_id: Optional[str],
    requirement: Optional[int],
    prerequisites: list[Prerequisite],
) -> list[Prerequisite]:
    """최상위 relationship_requirement를 relationship 조건 하나로 합친다.

    같은 캐릭터에 대한 relationship 조건이 이미 있으면 중복 작성으로 보고
    경고 후 더 엄격한(큰) 값을 남긴다.
    """
    if requirement is None:
        return prerequisites
    if character_id is None:
        raise ValueError(
            f"quest {quest_id}: relationship_requirement needs a character_id"
        )

    threshold = int(requirement)
    remaining: list[Prerequisite] = []
    for prereq in prerequisites:
        same_target = (
            prereq.prereq_type == PrerequisiteType.RELATIONSHIP
            and (prereq.character_id or character_id) == character_id
        )
        if same_target:
            logger.warning(
                "Quest %s declares relationship_requirement and a relationship "
                "prerequisite for %s; keeping the stricter threshold",
                quest_id,
                character_id,
            )
            threshold = max(threshold, int(prereq.value))
            continue
        remaining.append(prereq)

    remaining.append(
        Prerequisite(
            prereq_type=PrerequisiteType.RELATIONSHIP,
            value=threshold,
            character_id=character_id,
            description="relationship requirement",
        )
    )
    return remaining


def _parse_quest(raw: dict[str, Any]) -> QuestDefinition:
    quest_id = str(raw["id"])
    character_id = raw.get("character_id")
    prerequisites = [_parse_prerequisite(p) for p in raw.get("prerequisites", [])]
    prerequisites = _fold_relationship_requirement(
        quest_id, character_id, raw.get("relationship_requirement"), prerequisites
    )

    objectives = tuple(_parse_objective(o) for o in raw.get("objectives", []))
    objective_ids = [o.objective_id for o in objectives]
    if len(objective_ids) != len(set(objective_ids)):
        raise ValueError(f"quest {quest_id}: duplicate objective ids")

    is_repeatable = bool(raw.get("is_repeatable", False))
    criteria = None
    if raw.get("event_criteria") is not None:
        try:
            criteria = _parse_event_criteria(raw["event_criteria"], is_repeatable)
        except ValueError as exc:
            raise ValueError(f"quest {quest_id}: {exc}") from exc

    cooldown = int(raw.get("cooldown", 0))
    if cooldown < 0:
        raise ValueError(f"quest {quest_id}: cooldown must be >= 0")

    return QuestDefinition(
        quest_id=quest_id,
        character_id=character_id,
        title=raw.get("title", ""),
        level_requirement=int(raw.get("level_requirement", 1)),
        prerequisites=tuple(prerequisites),
        objectives=objectives,
        rewards=tuple(_parse_reward(r) for r in raw.get("rewards", [])),
        relationship_changes={
            str(k): int(v) for k, v in raw.get("relationship_changes", {}).items()
        },
        is_repeatable=is_repeatable,
        cooldown=cooldown,
        event_criteria=criteria,
        unlocks_characters=tuple(raw.get("unlocks_characters", [])),
        unlocks_stories=tuple(raw.get("unlocks_stories", [])),
        unlocks_features=tuple(raw.get("unlocks_features", [])),
    )


def _parse_character(raw: dict[str, Any]) -> CharacterDefinition:
    stages = tuple(
        EvolutionStage(
            stage=int(stage["stage"]),
            name=stage.get("name", ""),
            requirements=tuple(
                _parse_prerequisite(p) for p in stage.get("requirements", [])
            ),
        )
        for stage in raw.get("evolution_stages", [])
    )
    return CharacterDefinition(
        character_id=str(raw["id"]),
        name=raw.get("name", ""),
        prerequisites=tuple(
            _parse_prerequisite(p) for p in raw.get("prerequisites", [])
        ),
        evolution_stages=stages,
    )


def _parse_level_rewards(raw: list[dict[str, Any]]) -> dict[int, LevelReward]:
    rewards: dict[int, LevelReward] = {}
    previous = 0
    for entry in raw:
        level = int(entry["level"])
        if level <= previous:
            raise ValueError(
                f"level reward table must be strictly ascending: {level} after {previous}"
            )
        previous = level
        rewards[level] = LevelReward(
            level=level,
            rush_tokens=int(entry.get("rush_tokens", 0)),
            mastery_points=int(entry.get("mastery_points", 0)),
            nft_rewards=tuple(entry.get("nft_rewards", [])),
            cosmetic_rewards=tuple(entry.get("cosmetic_rewards", [])),
        )
    return rewards


def _parse_skill_tree(
    raw: dict[str, list[dict[str, Any]]],
) -> dict[SkillBranchKind, tuple[SkillTier, ...]]:
    tree = dict(DEFAULT_SKILL_TREE)
    for branch_name, tiers_raw in raw.items():
        branch = SkillBranchKind(branch_name)
        tiers = []
        for index, entry in enumerate(tiers_raw):
            required_level = int(entry.get("required_level", index))
            if required_level != index:
                raise ValueError(
                    f"skill branch {branch.value}: tier {index} must require "
                    f"level {index}, got {required_level}"
                )
            cost = int(entry["cost"])
            if cost < 0:
                raise ValueError(f"skill branch {branch.value}: negative cost")
            bonus = entry["bonus"]
            tiers.append(
                SkillTier(
                    required_level=required_level,
                    name=entry.get("name", ""),
                    cost=cost,
                    bonus=SkillBonus(
                        kind=bonus.get("kind", "multiplier"),
                        magnitude=float(bonus["magnitude"]),
                        description=bonus.get("description", ""),
                    ),
                )
            )
        tree[branch] = tuple(tiers)
    return tree


# === 검증 ===


def _prereq_problems(
    owner_id: str,
    owner_character: Optional[str],
    prerequisites: Iterable[Prerequisite],
    quests: dict[str, QuestDefinition],
    characters: dict[str, CharacterDefinition],
    achievements: frozenset[str],
) -> list[str]:
    problems: list[str] = []
    for prereq in prerequisites:
        kind = prereq.prereq_type
        if kind == PrerequisiteType.QUEST and prereq.value not in quests:
            problems.append(f"{owner_id}: unknown quest '{prereq.value}'")
        elif kind == PrerequisiteType.CHARACTER and prereq.value not in characters:
            problems.append(f"{owner_id}: unknown character '{prereq.value}'")
        elif kind == PrerequisiteType.ACHIEVEMENT and prereq.value not in achievements:
            problems.append(f"{owner_id}: unknown achievement '{prereq.value}'")
        elif kind == PrerequisiteType.RELATIONSHIP:
            target = prereq.character_id or owner_character
            if target is None:
                problems.append(f"{owner_id}: relationship prerequisite without character")
            elif target not in characters:
                problems.append(f"{owner_id}: unknown character '{target}'")
    return problems


def _reference_problems(
    quests: dict[str, QuestDefinition],
    characters: dict[str, CharacterDefinition],
    achievements: frozenset[str],
) -> list[str]:
    problems: list[str] = []

    for quest in quests.values():
        if quest.character_id is not None and quest.character_id not in characters:
            problems.append(f"{quest.quest_id}: unknown character '{quest.character_id}'")
        problems.extend(
            _prereq_problems(
                quest.quest_id,
                quest.character_id,
                quest.prerequisites,
                quests,
                characters,
                achievements,
            )
        )
        for character_id in quest.relationship_changes:
            if character_id not in characters:
                problems.append(
                    f"{quest.quest_id}: relationship change for unknown '{character_id}'"
                )
        unlock_targets = list(quest.unlocks_characters) + [
            r.item
            for r in quest.rewards
            if r.reward_type == RewardType.CHARACTER_UNLOCK and r.item is not None
        ]
        for character_id in unlock_targets:
            if character_id not in characters:
                problems.append(f"{quest.quest_id}: unlocks unknown '{character_id}'")

    for character in characters.values():
        problems.extend(
            _prereq_problems(
                character.character_id,
                character.character_id,
                character.prerequisites,
                quests,
                characters,
                achievements,
            )
        )
        for stage in character.evolution_stages:
            problems.extend(
                _prereq_problems(
                    f"{character.character_id}#stage{stage.stage}",
                    character.character_id,
                    stage.requirements,
                    quests,
                    characters,
                    achievements,
                )
            )

    return problems


def find_prerequisite_cycle(
    dependencies: dict[str, list[str]],
) -> list[str]:
    """Kahn 위상 정렬. 정렬되지 못하고 남은 노드(순환 참여/의존) 반환.

    dependencies: node → 그 노드가 의존하는 노드 목록
    """
    indegree: dict[str, int] = {node: 0 for node in dependencies}
    dependents: dict[str, list[str]] = {node: [] for node in dependencies}
    for node, deps in dependencies.items():
        for dep in deps:
            if dep not in indegree:
                continue
            indegree[node] += 1
            dependents[dep].append(node)

    queue = deque(node for node, degree in indegree.items() if degree == 0)
    resolved = 0
    while queue:
        node = queue.popleft()
        resolved += 1
        for dependent in dependents[node]:
            indegree[dependent] -= 1
            if indegree[dependent] == 0:
                queue.append(dependent)

    if resolved == len(indegree):
        return []
    return sorted(node for node, degree in indegree.items() if degree > 0)


def _dependency_graph(
    quests: dict[str, QuestDefinition],
    characters: dict[str, CharacterDefinition],
) -> dict[str, list[str]]:
    graph: dict[str, list[str]] = {}
    for target_id, prerequisites in [
        *((q.quest_id, q.prerequisites) for q in quests.values()),
        *((c.character_id, c.prerequisites) for c in characters.values()),
    ]:
        graph[target_id] = [
            str(p.value) for p in prerequisites if p.prereq_type in _GRAPH_PREREQ_TYPES
        ]
    return graph


def _signature_index(quests: dict[str, QuestDefinition]) -> dict[str, tuple[str, ...]]:
    index: dict[str, list[str]] = {}
    for quest in quests.values():
        if quest.event_criteria is None:
            continue
        index.setdefault(quest.event_criteria.event_signature, []).append(quest.quest_id)
    return {signature: tuple(ids) for signature, ids in index.items()}


def _oversized_rolls(
    quests: dict[str, QuestDefinition], max_roll_words: int
) -> list[str]:
    return [
        f"{quest.quest_id}#{index}"
        for quest in quests.values()
        for index, reward in enumerate(quest.rewards)
        if reward.rarity_roll is not None and reward.rarity_roll.num_words > max_roll_words
    ]


# === 공개 API ===


def load_catalog(
    data: dict[str, Any], max_roll_words: Optional[int] = None
) -> QuestCatalog:
    """dict → 검증된 QuestCatalog. 실패 시 ContentError.

    max_roll_words: 오라클이 한 번에 줄 수 있는 word 수. 주어지면 희귀 롤의
        num_words가 이를 넘는 보상을 거부한다.
    """
    try:
        quest_list = [_parse_quest(q) for q in data.get("quests", [])]
        character_list = [_parse_character(c) for c in data.get("characters", [])]
        achievements = frozenset(str(a) for a in data.get("achievements", []))
        level_rewards = (
            _parse_level_rewards(data["level_rewards"])
            if "level_rewards" in data
            else dict(DEFAULT_LEVEL_REWARDS)
        )
        skill_tree = _parse_skill_tree(data.get("skill_tree", {}))
    except (KeyError, ValueError, TypeError) as exc:
        logger.error("Catalog parse failed: %s", exc)
        raise ContentError("Malformed catalog entry", {"error": str(exc)}) from exc

    all_ids = [q.quest_id for q in quest_list] + [c.character_id for c in character_list]
    duplicates = sorted({i for i in all_ids if all_ids.count(i) > 1})
    if duplicates:
        logger.error("Catalog has duplicate ids: %s", duplicates)
        raise ContentError("Duplicate definition ids", {"ids": duplicates})

    quests = {q.quest_id: q for q in quest_list}
    characters = {c.character_id: c for c in character_list}

    problems = _reference_problems(quests, characters, achievements)
    if problems:
        logger.error("Catalog has dangling references: %s", problems)
        raise ContentError("Dangling references in catalog", {"problems": problems})

    cycle = find_prerequisite_cycle(_dependency_graph(quests, characters))
    if cycle:
        logger.error("Catalog prerequisite graph has a cycle: %s", cycle)
        raise ContentError("Cyclic prerequisite graph", {"nodes": cycle})

    if max_roll_words is not None:
        oversized = _oversized_rolls(quests, max_roll_words)
        if oversized:
            logger.error(
                "Rarity rolls need more than %d words: %s", max_roll_words, oversized
            )
            raise ContentError(
                "Rarity roll exceeds oracle word limit",
                {"rewards": oversized, "max_words": max_roll_words},
            )

    catalog = QuestCatalog(
        quests=quests,
        characters=characters,
        achievements=achievements,
        level_rewards=level_rewards,
        skill_tree=skill_tree,
        signature_index=_signature_index(quests),
    )
    logger.info(
        "Catalog loaded: %d quests, %d characters, %d achievements",
        len(quests),
        len(characters),
        len(achievements),
    )
    return catalog


def load_catalog_file(
    path: str | Path, max_roll_words: Optional[int] = None
) -> QuestCatalog:
    """JSON 파일 → QuestCatalog."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        logger.error("Catalog file unreadable: %s (%s)", path, exc)
        raise ContentError("Catalog file unreadable", {"path": str(path)}) from exc
    return load_catalog(data, max_roll_words=max_roll_words)
