"""보상 지급 — 고정 보상, 레벨업 2차 보상, 희귀도 롤, 관계/해금 파급

지급은 3단계로 나뉜다 (오라클 호출은 서비스 계층):
1. required_rolls: 아직 난수가 없는 희귀 롤 보상 index → 필요한 word 수
2. record_rolls: 오라클 응답 word를 지급 기록에 저장하고 희귀도 확정
3. dispense: 난수가 모두 있으면 보상 확정 + 퀘스트 completed

지급 기록(RewardGrant)은 (quest_id, 완료 회차)당 하나. 저장된 word가 있으면
재시도해도 같은 희귀도가 나오고 오라클을 다시 부르지 않는다.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence

from src.core.operation import OperationStatus
from src.core.progression.leveling import add_experience
from src.core.quest.catalog import QuestCatalog
from src.core.quest.enums import (
    GrantSource,
    GrantStatus,
    QuestStatus,
    Rarity,
    RewardType,
)
from src.core.quest.models import (
    DispenseResult,
    GrantedReward,
    QuestDefinition,
    RarityRoll,
    RarityRollConfig,
    Reward,
    RewardGrant,
)
from src.core.quest.prerequisite_logic import list_available
from src.core.relationship.calculations import apply_relationship_changes
from src.core.state import PlayerState

logger = logging.getLogger(__name__)

# word 하나에서 쓰는 버킷 해상도 (만분율)
ROLL_RESOLUTION = 10000


def grant_key(quest_id: str, completion_seq: int) -> str:
    return f"{quest_id}#{completion_seq}"


def _pending_key(player: PlayerState, quest_id: str) -> str:
    return grant_key(quest_id, player.quest_state(quest_id).completion_count + 1)


def map_rarity(config: RarityRollConfig, words: Sequence[int]) -> Rarity:
    """난수 word → 희귀도. 같은 word면 항상 같은 결과.

    word[0] % 10000 < chance * 100 이면 희귀 드롭, 아니면 base_rarity.
    드롭 시 등급은 두 번째 word (없으면 word[0] // 10000)를 만분율로 잘라
    누적 확률 테이블에 버킷팅한다. 테이블 합이 1 미만이면 남는 구간은 마지막 등급.
    """
    if not words:
        raise ValueError("at least one random word is required")

    first = int(words[0])
    if first % ROLL_RESOLUTION >= config.rare_drop_chance * 100:
        return config.base_rarity

    second = int(words[1]) if len(words) > 1 else first // ROLL_RESOLUTION
    point = (second % ROLL_RESOLUTION) / ROLL_RESOLUTION

    cumulative = 0.0
    for rarity, probability in config.tiers:
        cumulative += probability
        if point < cumulative:
            return rarity
    return config.tiers[-1][0]


def _roll_rewards(definition: QuestDefinition) -> dict[int, Reward]:
    return {
        index: reward
        for index, reward in enumerate(definition.rewards)
        if reward.rarity_roll is not None
    }


def required_rolls(
    catalog: QuestCatalog, player: PlayerState, quest_id: str
) -> dict[int, int]:
    """보상 index → 필요한 word 수. 이미 저장된 롤은 제외.

    퀘스트가 보상 대기 상태가 아니면 빈 dict.
    """
    definition = catalog.get_quest(quest_id)
    if definition is None:
        return {}
    if player.quest_state(quest_id).status != QuestStatus.COMPLETED_PENDING_DISPENSE:
        return {}

    grant = player.reward_grants.get(_pending_key(player, quest_id))
    recorded = grant.rolls if grant is not None else {}
    return {
        index: reward.rarity_roll.num_words
        for index, reward in _roll_rewards(definition).items()
        if index not in recorded
    }


def _open_grant(player: PlayerState, quest_id: str) -> RewardGrant:
    """보상 대기 회차의 지급 기록. 없으면 만든다 (player는 사본이어야 함)."""
    seq = player.quest_state(quest_id).completion_count + 1
    key = grant_key(quest_id, seq)
    grant = player.reward_grants.get(key)
    if grant is None:
        grant = RewardGrant(grant_key=key, quest_id=quest_id, completion_seq=seq)
        player.reward_grants[key] = grant
    return grant


def open_grant(player: PlayerState, quest_id: str) -> PlayerState:
    """지급 기록만 pending으로 열어둔 사본 (오라클 실패 시 저장용)."""
    updated = player.copy()
    _open_grant(updated, quest_id)
    return updated


def record_rolls(
    catalog: QuestCatalog,
    player: PlayerState,
    quest_id: str,
    words_by_index: dict[int, Sequence[int]],
) -> PlayerState:
    """오라클 응답 저장. 이미 저장된 index는 덮어쓰지 않는다."""
    definition = catalog.get_quest(quest_id)
    if definition is None:
        raise KeyError(quest_id)

    roll_rewards = _roll_rewards(definition)
    updated = player.copy()
    grant = _open_grant(updated, quest_id)
    for index, words in words_by_index.items():
        if index in grant.rolls:
            continue
        reward = roll_rewards.get(index)
        if reward is None:
            raise ValueError(f"reward {index} of {quest_id} has no rarity roll")
        config = reward.rarity_roll
        if len(words) < config.num_words:
            raise ValueError(
                f"reward {index} of {quest_id} needs {config.num_words} words"
            )
        word_list = [int(w) for w in words[: config.num_words]]
        grant.rolls[index] = RarityRoll(words=word_list, rarity=map_rarity(config, word_list))
        logger.info(
            "Rarity rolled for %s reward %d: %s",
            grant.grant_key,
            index,
            grant.rolls[index].rarity.value,
        )
    return updated


# === 보상 유형별 지급 ===


@dataclass
class _DispenseWork:
    catalog: QuestCatalog
    player: PlayerState  # 작업용 사본
    grant: RewardGrant
    quest_id: str
    granted: list[GrantedReward] = field(default_factory=list)


def _grant_experience(work: _DispenseWork, index: int, reward: Reward) -> None:
    progression, level_up = add_experience(
        work.player.progression, reward.amount, work.catalog.level_rewards
    )
    work.player.progression = progression
    work.granted.append(
        GrantedReward(
            reward_type=RewardType.EXPERIENCE,
            amount=reward.amount,
            quest_id=work.quest_id,
        )
    )
    for level_reward in level_up.triggered_rewards:
        level = level_reward.level
        if level_reward.rush_tokens:
            work.granted.append(
                GrantedReward(
                    reward_type=RewardType.TOKEN,
                    amount=level_reward.rush_tokens,
                    source=GrantSource.LEVEL_UP,
                    level=level,
                )
            )
        if level_reward.mastery_points:
            work.granted.append(
                GrantedReward(
                    reward_type=RewardType.MASTERY_POINTS,
                    amount=level_reward.mastery_points,
                    source=GrantSource.LEVEL_UP,
                    level=level,
                )
            )
        for item in level_reward.nft_rewards:
            work.granted.append(
                GrantedReward(
                    reward_type=RewardType.NFT,
                    amount=1,
                    item=item,
                    source=GrantSource.LEVEL_UP,
                    level=level,
                )
            )
        for item in level_reward.cosmetic_rewards:
            work.granted.append(
                GrantedReward(
                    reward_type=RewardType.COSMETIC,
                    amount=1,
                    item=item,
                    source=GrantSource.LEVEL_UP,
                    level=level,
                )
            )


def _grant_plain(work: _DispenseWork, index: int, reward: Reward) -> None:
    work.granted.append(
        GrantedReward(
            reward_type=reward.reward_type,
            amount=reward.amount,
            item=reward.item,
            rarity=reward.rarity,
            quest_id=work.quest_id,
        )
    )


def _grant_nft(work: _DispenseWork, index: int, reward: Reward) -> None:
    rarity = reward.rarity
    if reward.rarity_roll is not None:
        rarity = work.grant.rolls[index].rarity
    work.granted.append(
        GrantedReward(
            reward_type=RewardType.NFT,
            amount=max(reward.amount, 1),
            item=reward.item,
            rarity=rarity,
            quest_id=work.quest_id,
        )
    )


def _grant_unlock(target: str) -> Callable[[_DispenseWork, int, Reward], None]:
    def handler(work: _DispenseWork, index: int, reward: Reward) -> None:
        if reward.item is not None:
            getattr(work.player, target).add(reward.item)
        _grant_plain(work, index, reward)

    return handler


def _grant_mastery(work: _DispenseWork, index: int, reward: Reward) -> None:
    work.player.progression.mastery_points += reward.amount
    _grant_plain(work, index, reward)


_GRANT_HANDLERS: dict[RewardType, Callable[[_DispenseWork, int, Reward], None]] = {
    RewardType.EXPERIENCE: _grant_experience,
    RewardType.TOKEN: _grant_plain,
    RewardType.NFT: _grant_nft,
    RewardType.CHARACTER_UNLOCK: _grant_unlock("unlocked_characters"),
    RewardType.STORY_UNLOCK: _grant_unlock("unlocked_stories"),
    RewardType.FEATURE_UNLOCK: _grant_unlock("unlocked_features"),
    RewardType.COSMETIC: _grant_plain,
    RewardType.MASTERY_POINTS: _grant_mastery,
}

_missing_handlers = set(RewardType) - set(_GRANT_HANDLERS)
if _missing_handlers:
    raise RuntimeError(f"reward handlers missing for: {_missing_handlers}")


def _previous_result(
    player: PlayerState, quest_id: str
) -> Optional[DispenseResult]:
    """직전 회차가 이미 지급됐으면 그 결과를 그대로 재구성."""
    seq = player.quest_state(quest_id).completion_count
    if seq == 0:
        return None
    grant = player.reward_grants.get(grant_key(quest_id, seq))
    if grant is None or grant.status != GrantStatus.DISPENSED:
        return None
    return DispenseResult(
        status=OperationStatus.DUPLICATE,
        quest_id=quest_id,
        granted=list(grant.granted),
        rarities={index: roll.rarity for index, roll in grant.rolls.items()},
        reason="already_dispensed",
    )


def dispense(
    catalog: QuestCatalog,
    player: PlayerState,
    quest_id: str,
    now: int,
) -> tuple[PlayerState, DispenseResult]:
    """보상 대기 퀘스트의 보상 확정.

    희귀 롤 word가 빠져 있으면 지급 기록만 pending으로 열고 PENDING 반환
    (보상 없음, 퀘스트는 completed_pending_dispense 유지).
    """
    definition = catalog.get_quest(quest_id)
    if definition is None:
        return player, DispenseResult(
            status=OperationStatus.INVALID, quest_id=quest_id, reason="unknown_quest"
        )

    quest_state = player.quest_state(quest_id)
    if quest_state.status != QuestStatus.COMPLETED_PENDING_DISPENSE:
        previous = _previous_result(player, quest_id)
        if previous is not None and quest_state.status == QuestStatus.COMPLETED:
            logger.debug("Dispense repeated for %s; returning stored grant", quest_id)
            return player, previous
        return player, DispenseResult(
            status=OperationStatus.INVALID, quest_id=quest_id, reason="not_completed"
        )

    updated = player.copy()
    grant = _open_grant(updated, quest_id)

    missing = [i for i in _roll_rewards(definition) if i not in grant.rolls]
    if missing:
        logger.info("Dispense of %s pending randomness for rewards %s", quest_id, missing)
        return updated, DispenseResult(
            status=OperationStatus.PENDING,
            quest_id=quest_id,
            reason="awaiting_randomness",
        )

    available_before = set(
        list_available(catalog, player.to_context(), player.quest_states, now)
    )

    work = _DispenseWork(catalog=catalog, player=updated, grant=grant, quest_id=quest_id)
    for index, reward in enumerate(definition.rewards):
        _GRANT_HANDLERS[reward.reward_type](work, index, reward)

    updated.relationships, _ = apply_relationship_changes(
        updated.relationships, definition.relationship_changes, reason=f"quest:{quest_id}"
    )
    updated.unlocked_characters.update(definition.unlocks_characters)
    updated.unlocked_stories.update(definition.unlocks_stories)
    updated.unlocked_features.update(definition.unlocks_features)

    finished = updated.quest_states.get(quest_id) or quest_state
    finished.status = QuestStatus.COMPLETED
    finished.completion_count = grant.completion_seq
    updated.quest_states[quest_id] = finished

    grant.status = GrantStatus.DISPENSED
    grant.granted = list(work.granted)
    grant.dispensed_at = now

    available = list_available(catalog, updated.to_context(), updated.quest_states, now)
    newly_available = [i for i in available if i not in available_before]

    logger.info(
        "Rewards dispensed for %s: %d grants, %d newly available",
        grant.grant_key,
        len(work.granted),
        len(newly_available),
    )
    return updated, DispenseResult(
        status=OperationStatus.APPLIED,
        quest_id=quest_id,
        granted=list(work.granted),
        rarities={index: roll.rarity for index, roll in grant.rolls.items()},
        relationship_changes=dict(definition.relationship_changes),
        available=available,
        newly_available=newly_available,
    )
