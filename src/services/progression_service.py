"""진행도 Service — 플레이어 등록, 경험치/프레스티지/스킬, 업적

Service → Core, Service → 저장소 허용.
Service → Service 금지, EventBus 경유.
"""

from src.core.errors import NotFoundError
from src.core.event_bus import EventBus, GameEvent
from src.core.event_types import EventTypes
from src.core.logging import get_logger
from src.core.operation import OperationStatus
from src.core.progression.leveling import add_experience, prestige
from src.core.progression.models import (
    LevelUpResult,
    SkillBranchKind,
    SkillUpgradeResult,
)
from src.core.progression.skill_tree import get_skill_bonus, upgrade_skill
from src.core.quest.catalog import QuestCatalog
from src.core.state import PlayerState
from src.services.player_state_service import PlayerStateService

logger = get_logger(__name__)

SOURCE = "progression_service"


class ProgressionService:
    """레벨/경험치 원장 + 스킬 트리 + 업적"""

    def __init__(
        self,
        catalog: QuestCatalog,
        store: PlayerStateService,
        event_bus: EventBus,
    ) -> None:
        self._catalog = catalog
        self._store = store
        self._bus = event_bus

    def _emit(self, event_type: str, data: dict) -> None:
        self._bus.emit(GameEvent(event_type=event_type, data=data, source=SOURCE))

    # ── 조회 ─────────────────────────────────────────────────

    def register_player(self, player_id: str) -> PlayerState:
        """신규 플레이어 생성. 이미 있으면 그대로 반환."""
        return self._store.get_or_create(player_id)

    def get_player(self, player_id: str) -> PlayerState:
        state = self._store.load(player_id)
        if state is None:
            raise NotFoundError("Unknown player", {"player_id": player_id})
        return state

    def get_skill_bonus(self, player_id: str, branch: SkillBranchKind) -> float:
        return get_skill_bonus(self.get_player(player_id).skills, branch)

    # ── 경험치 / 프레스티지 ──────────────────────────────────

    def add_experience(self, player_id: str, amount: int) -> LevelUpResult:
        def operation(state: PlayerState) -> tuple[PlayerState, LevelUpResult]:
            progression, result = add_experience(
                state.progression, amount, self._catalog.level_rewards
            )
            if result.status != OperationStatus.APPLIED:
                return state, result
            updated = state.copy()
            updated.progression = progression
            return updated, result

        _, result = self._store.transact(player_id, operation)
        if result.leveled_up:
            self._emit(
                EventTypes.LEVEL_UP,
                {
                    "player_id": player_id,
                    "new_level": result.new_level,
                    "rewards": [r.level for r in result.triggered_rewards],
                },
            )
        return result

    def prestige(self, player_id: str) -> bool:
        def operation(state: PlayerState) -> tuple[PlayerState, bool]:
            progression, skills, ok = prestige(state.progression, state.skills)
            if not ok:
                return state, False
            updated = state.copy()
            updated.progression = progression
            updated.skills = skills
            return updated, True

        final, ok = self._store.transact(player_id, operation)
        if ok:
            logger.info(
                "Player %s prestiged (%d)", player_id, final.progression.prestige_count
            )
            self._emit(
                EventTypes.PRESTIGE,
                {
                    "player_id": player_id,
                    "prestige_count": final.progression.prestige_count,
                },
            )
        return ok

    # ── 스킬 트리 ────────────────────────────────────────────

    def upgrade_skill(
        self, player_id: str, branch: SkillBranchKind, tier_index: int
    ) -> SkillUpgradeResult:
        def operation(state: PlayerState) -> tuple[PlayerState, SkillUpgradeResult]:
            progression, skills, result = upgrade_skill(
                state.progression,
                state.skills,
                branch,
                tier_index,
                self._catalog.skill_tree,
            )
            if result.status != OperationStatus.APPLIED:
                return state, result
            updated = state.copy()
            updated.progression = progression
            updated.skills = skills
            return updated, result

        _, result = self._store.transact(player_id, operation)
        if result.status == OperationStatus.APPLIED:
            self._emit(
                EventTypes.SKILL_UPGRADED,
                {
                    "player_id": player_id,
                    "branch": branch.value,
                    "new_level": result.new_level,
                },
            )
        return result

    # ── 업적 ─────────────────────────────────────────────────

    def grant_achievement(self, player_id: str, achievement_id: str) -> bool:
        """업적 기록. 이미 있으면 False (변경 없음)."""
        if achievement_id not in self._catalog.achievements:
            raise NotFoundError("Unknown achievement", {"achievement_id": achievement_id})

        def operation(state: PlayerState) -> tuple[PlayerState, bool]:
            if achievement_id in state.achievements:
                return state, False
            updated = state.copy()
            updated.achievements.add(achievement_id)
            return updated, True

        _, added = self._store.transact(player_id, operation)
        if added:
            self._emit(
                EventTypes.QUEST_AVAILABILITY_CHANGED,
                {"player_id": player_id, "achievement_id": achievement_id},
            )
        return added
