"""관계 시스템 Core 패키지 — 공개 API"""

from src.core.relationship.calculations import (
    apply_dialogue_choice,
    apply_relationship_changes,
    get_relationship_score,
)
from src.core.relationship.models import RelationshipChange

__all__ = [
    "RelationshipChange",
    "apply_dialogue_choice",
    "apply_relationship_changes",
    "get_relationship_score",
]
