"""플레이어 상태 집합체

엔진 연산은 전부 PlayerState를 입력받아 새 PlayerState와 결과를 돌려준다.
영속화는 호출자(서비스 계층) 책임.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field

from src.core.progression.models import (
    PlayerProgression,
    SkillBranch,
    SkillBranchKind,
    new_skill_tree,
)
from src.core.quest.enums import QuestStatus
from src.core.quest.models import PlayerContext, QuestState, RewardGrant


@dataclass
class PlayerState:
    player_id: str
    progression: PlayerProgression = field(default_factory=PlayerProgression)
    skills: dict[SkillBranchKind, SkillBranch] = field(default_factory=new_skill_tree)
    relationships: dict[str, int] = field(default_factory=dict)
    quest_states: dict[str, QuestState] = field(default_factory=dict)
    achievements: set[str] = field(default_factory=set)
    unlocked_characters: set[str] = field(default_factory=set)
    unlocked_stories: set[str] = field(default_factory=set)
    unlocked_features: set[str] = field(default_factory=set)
    processed_event_ids: set[str] = field(default_factory=set)
    reward_grants: dict[str, RewardGrant] = field(default_factory=dict)

    # 낙관적 잠금용. 저장소가 저장 성공 시 증가시킨다.
    version: int = 0

    def copy(self) -> PlayerState:
        return copy.deepcopy(self)

    def quest_state(self, quest_id: str) -> QuestState:
        """없으면 not_started 기본값 (저장하지 않음)."""
        return self.quest_states.get(quest_id) or QuestState(quest_id=quest_id)

    @property
    def completed_quests(self) -> frozenset[str]:
        """보상 지급까지 끝난 적이 있는 퀘스트 ID."""
        return frozenset(
            quest_id
            for quest_id, state in self.quest_states.items()
            if state.completion_count > 0
        )

    @property
    def active_quests(self) -> list[str]:
        return [
            quest_id
            for quest_id, state in self.quest_states.items()
            if state.status == QuestStatus.ACTIVE
        ]

    def to_context(self) -> PlayerContext:
        return PlayerContext(
            level=self.progression.current_level,
            achievements=frozenset(self.achievements),
            completed_quests=self.completed_quests,
            relationships=dict(self.relationships),
            unlocked_characters=frozenset(self.unlocked_characters),
        )
