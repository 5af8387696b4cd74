"""이벤트 유형 상수

서비스가 발행하는 이벤트와 ObjectiveWatcher가 구독하는 게임플레이 이벤트.
"""


class EventTypes:
    """이벤트 유형 문자열 상수"""

    # === Quest events ===
    QUEST_ACTIVATED = "quest_activated"
    QUEST_COMPLETED = "quest_completed"  # 목표 달성, 보상 대기 진입
    QUEST_AVAILABILITY_CHANGED = "quest_availability_changed"

    # === Objective events (ObjectiveWatcher) ===
    OBJECTIVE_PROGRESSED = "objective_progressed"
    OBJECTIVE_COMPLETED = "objective_completed"

    # === Reward events ===
    REWARD_DISPENSED = "reward_dispensed"
    REWARD_PENDING = "reward_pending"

    # === Progression events ===
    LEVEL_UP = "level_up"
    PRESTIGE = "prestige"
    SKILL_UPGRADED = "skill_upgraded"

    # relationship
    RELATIONSHIP_CHANGED = "relationship_changed"

    # === Action events (gameplay/feed → ObjectiveWatcher) ===
    ACTION_COMPLETED = "action_completed"
    CHAIN_EVENT_RECEIVED = "chain_event_received"
