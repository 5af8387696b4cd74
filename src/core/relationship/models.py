"""관계 그래프 도메인 모델

(플레이어, 캐릭터) → 정수 점수. 상하한 없음, 가산으로만 변한다.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class RelationshipChange:
    """점수 변동 1건 (이벤트 발행/응답용)"""

    character_id: str
    old_score: int
    new_score: int
    reason: str = ""

    @property
    def delta(self) -> int:
        return self.new_score - self.old_score
