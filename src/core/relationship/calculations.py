"""관계 점수 변동 계산

전부 순수 함수 — 입력 dict는 변경하지 않는다.
"""

from typing import Mapping

from src.core.relationship.models import RelationshipChange


def get_relationship_score(scores: Mapping[str, int], character_id: str) -> int:
    """기록이 없으면 0."""
    return int(scores.get(character_id, 0))


def apply_relationship_changes(
    scores: Mapping[str, int],
    changes: Mapping[str, int],
    reason: str = "",
) -> tuple[dict[str, int], list[RelationshipChange]]:
    """캐릭터별 delta를 가산 적용. delta 0은 건너뛴다."""
    updated = dict(scores)
    applied: list[RelationshipChange] = []
    for character_id, delta in changes.items():
        if delta == 0:
            continue
        old = get_relationship_score(updated, character_id)
        updated[character_id] = old + int(delta)
        applied.append(
            RelationshipChange(
                character_id=character_id,
                old_score=old,
                new_score=updated[character_id],
                reason=reason,
            )
        )
    return updated, applied


def apply_dialogue_choice(
    scores: Mapping[str, int],
    character_id: str,
    delta: int,
) -> tuple[dict[str, int], list[RelationshipChange]]:
    """대화 선택지 결과 반영."""
    return apply_relationship_changes(
        scores, {character_id: delta}, reason="dialogue_choice"
    )
