"""플레이어 상태 저장소 Service — PlayerState ↔ DB

load: 스냅샷 읽기. save: 낙관적 잠금 (version 불일치 → ConcurrencyViolation).
자식 테이블은 저장 시 플레이어 단위로 통째로 교체한다.
"""

import logging
from typing import Any, Callable, Optional, TypeVar

from sqlalchemy import delete, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from src.core.errors import ConcurrencyViolation, NotFoundError
from src.core.progression.models import (
    PlayerProgression,
    SkillBonus,
    SkillBranch,
    SkillBranchKind,
    new_skill_tree,
)
from src.core.quest.enums import (
    GrantSource,
    GrantStatus,
    QuestStatus,
    Rarity,
    RewardType,
)
from src.core.quest.models import GrantedReward, QuestState, RarityRoll, RewardGrant
from src.core.state import PlayerState
from src.db.models import (
    PlayerModel,
    PlayerUnlockModel,
    ProcessedEventModel,
    QuestStateModel,
    RelationshipScoreModel,
    RewardGrantModel,
    SkillBranchModel,
)
from src.engine.player_locks import PlayerLockRegistry

logger = logging.getLogger(__name__)

T = TypeVar("T")

# unlock_type → PlayerState 속성
UNLOCK_FIELDS: dict[str, str] = {
    "achievement": "achievements",
    "character": "unlocked_characters",
    "story": "unlocked_stories",
    "feature": "unlocked_features",
}

_CHILD_MODELS = (
    SkillBranchModel,
    RelationshipScoreModel,
    QuestStateModel,
    ProcessedEventModel,
    RewardGrantModel,
    PlayerUnlockModel,
)


# === 직렬화 ===


def _granted_to_json(reward: GrantedReward) -> dict[str, Any]:
    return {
        "reward_type": reward.reward_type.value,
        "amount": reward.amount,
        "item": reward.item,
        "rarity": reward.rarity.value if reward.rarity else None,
        "source": reward.source.value,
        "quest_id": reward.quest_id,
        "level": reward.level,
    }


def _granted_from_json(data: dict[str, Any]) -> GrantedReward:
    return GrantedReward(
        reward_type=RewardType(data["reward_type"]),
        amount=data.get("amount", 0),
        item=data.get("item"),
        rarity=Rarity(data["rarity"]) if data.get("rarity") else None,
        source=GrantSource(data.get("source", GrantSource.QUEST.value)),
        quest_id=data.get("quest_id"),
        level=data.get("level"),
    )


def _grant_to_row(player_id: str, grant: RewardGrant) -> RewardGrantModel:
    return RewardGrantModel(
        player_id=player_id,
        grant_key=grant.grant_key,
        quest_id=grant.quest_id,
        completion_seq=grant.completion_seq,
        status=grant.status.value,
        rolls={
            str(index): {
                "words": [str(w) for w in roll.words],
                "rarity": roll.rarity.value,
            }
            for index, roll in grant.rolls.items()
        },
        granted=[_granted_to_json(g) for g in grant.granted],
        dispensed_at=grant.dispensed_at,
    )


def _grant_from_row(row: RewardGrantModel) -> RewardGrant:
    return RewardGrant(
        grant_key=row.grant_key,
        quest_id=row.quest_id,
        completion_seq=row.completion_seq,
        status=GrantStatus(row.status),
        rolls={
            int(index): RarityRoll(
                words=[int(w) for w in roll["words"]],
                rarity=Rarity(roll["rarity"]),
            )
            for index, roll in (row.rolls or {}).items()
        },
        granted=[_granted_from_json(g) for g in (row.granted or [])],
        dispensed_at=row.dispensed_at,
    )


def _state_from_model(model: PlayerModel) -> PlayerState:
    skills = new_skill_tree()
    for row in model.skill_branches:
        kind = SkillBranchKind(row.branch)
        skills[kind] = SkillBranch(
            kind=kind,
            level=row.level,
            max_level=row.max_level,
            bonuses=[
                SkillBonus(
                    kind=b["kind"],
                    magnitude=b["magnitude"],
                    description=b.get("description", ""),
                )
                for b in (row.bonuses or [])
            ],
        )

    state = PlayerState(
        player_id=model.player_id,
        progression=PlayerProgression(
            current_level=model.current_level,
            total_experience=model.total_experience,
            level_experience=model.level_experience,
            prestige_count=model.prestige_count,
            mastery_points=model.mastery_points,
        ),
        skills=skills,
        relationships={r.character_id: r.score for r in model.relationship_scores},
        quest_states={
            q.quest_id: QuestState(
                quest_id=q.quest_id,
                status=QuestStatus(q.status),
                progress=dict(q.progress or {}),
                activated_at=q.activated_at,
                last_completed_at=q.last_completed_at,
                completion_count=q.completion_count,
            )
            for q in model.quest_states
        },
        processed_event_ids={e.event_id for e in model.processed_events},
        reward_grants={g.grant_key: _grant_from_row(g) for g in model.reward_grants},
        version=model.version,
    )
    for unlock in model.unlocks:
        field_name = UNLOCK_FIELDS.get(unlock.unlock_type)
        if field_name is None:
            logger.warning(
                "Unknown unlock type %s for player %s", unlock.unlock_type, model.player_id
            )
            continue
        getattr(state, field_name).add(unlock.target_id)
    return state


def _child_rows(state: PlayerState) -> list[Any]:
    pid = state.player_id
    rows: list[Any] = [
        SkillBranchModel(
            player_id=pid,
            branch=kind.value,
            level=branch.level,
            max_level=branch.max_level,
            bonuses=[
                {"kind": b.kind, "magnitude": b.magnitude, "description": b.description}
                for b in branch.bonuses
            ],
        )
        for kind, branch in state.skills.items()
    ]
    rows.extend(
        RelationshipScoreModel(player_id=pid, character_id=cid, score=score)
        for cid, score in state.relationships.items()
    )
    rows.extend(
        QuestStateModel(
            player_id=pid,
            quest_id=q.quest_id,
            status=q.status.value,
            progress=dict(q.progress),
            activated_at=q.activated_at,
            last_completed_at=q.last_completed_at,
            completion_count=q.completion_count,
        )
        for q in state.quest_states.values()
    )
    rows.extend(
        ProcessedEventModel(player_id=pid, event_id=event_id)
        for event_id in sorted(state.processed_event_ids)
    )
    rows.extend(_grant_to_row(pid, g) for g in state.reward_grants.values())
    for unlock_type, field_name in UNLOCK_FIELDS.items():
        rows.extend(
            PlayerUnlockModel(player_id=pid, unlock_type=unlock_type, target_id=target)
            for target in sorted(getattr(state, field_name))
        )
    return rows


class PlayerStateService:
    """PlayerState 로드/저장

    요청 스레드마다 독립 세션이 필요하므로 세션 팩토리를 받는다.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        locks: Optional[PlayerLockRegistry] = None,
    ):
        self._session_factory = session_factory
        self.locks = locks or PlayerLockRegistry()

    def load(self, player_id: str) -> Optional[PlayerState]:
        with self._session_factory() as db:
            model = db.get(PlayerModel, player_id)
            if model is None:
                return None
            return _state_from_model(model)

    def exists(self, player_id: str) -> bool:
        with self._session_factory() as db:
            return db.get(PlayerModel, player_id) is not None

    def create(self, player_id: str) -> PlayerState:
        """신규 플레이어 (version 0). 이미 있으면 기존 상태 반환."""
        state = PlayerState(player_id=player_id)
        with self._session_factory() as db:
            db.add(PlayerModel(player_id=player_id, version=0))
            db.add_all(_child_rows(state))
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                logger.debug("Player %s created concurrently; loading", player_id)
                existing = self.load(player_id)
                if existing is None:
                    raise
                return existing
        logger.info("Player created: %s", player_id)
        return state

    def get_or_create(self, player_id: str) -> PlayerState:
        return self.load(player_id) or self.create(player_id)

    def save(self, state: PlayerState) -> PlayerState:
        """version이 읽은 시점과 같을 때만 저장. 저장된 사본(version+1) 반환."""
        progression = state.progression
        with self._session_factory() as db:
            result = db.execute(
                update(PlayerModel)
                .where(
                    PlayerModel.player_id == state.player_id,
                    PlayerModel.version == state.version,
                )
                .values(
                    current_level=progression.current_level,
                    total_experience=progression.total_experience,
                    level_experience=progression.level_experience,
                    prestige_count=progression.prestige_count,
                    mastery_points=progression.mastery_points,
                    version=state.version + 1,
                )
            )
            if result.rowcount != 1:
                db.rollback()
                logger.warning(
                    "Version conflict saving player %s (expected %d)",
                    state.player_id,
                    state.version,
                )
                raise ConcurrencyViolation(
                    "Player state changed since it was read",
                    {"player_id": state.player_id, "expected_version": state.version},
                )

            for model in _CHILD_MODELS:
                db.execute(delete(model).where(model.player_id == state.player_id))
            db.add_all(_child_rows(state))
            db.commit()

        saved = state.copy()
        saved.version = state.version + 1
        return saved

    def transact(
        self,
        player_id: str,
        operation: Callable[[PlayerState], tuple[PlayerState, T]],
    ) -> tuple[PlayerState, T]:
        """플레이어 잠금 안에서 load → operation → (변경 시) save.

        operation이 입력 상태를 그대로 돌려주면 저장하지 않는다.
        반환: (최종 상태, operation 결과)
        """
        with self.locks.hold(player_id):
            state = self.load(player_id)
            if state is None:
                raise NotFoundError("Unknown player", {"player_id": player_id})
            updated, result = operation(state)
            if updated is not state:
                updated = self.save(updated)
            return updated, result
