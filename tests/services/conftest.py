"""Service 테스트 공용 픽스처 — 인메모리 SQLite + 샘플 카탈로그"""

from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from src.core.event_bus import EventBus, GameEvent
from src.core.quest.catalog import QuestCatalog, load_catalog_file
from src.db.models import Base
from src.services.player_state_service import PlayerStateService

SAMPLE_CATALOG = Path(__file__).parents[2] / "src" / "data" / "quest_catalog.json"


class FakeClock:
    """고정 시계. advance()로만 흐른다."""

    def __init__(self, now: int = 1_700_000_000) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


class EventRecorder:
    """구독한 이벤트를 (event_type, data)로 기록"""

    def __init__(self, bus: EventBus, *event_types: str) -> None:
        self.events: list[tuple[str, dict]] = []
        for event_type in event_types:
            bus.subscribe(event_type, self._record)

    def _record(self, event: GameEvent) -> None:
        self.events.append((event.event_type, dict(event.data)))

    def types(self) -> list[str]:
        return [event_type for event_type, _ in self.events]

    def of(self, event_type: str) -> list[dict]:
        return [data for t, data in self.events if t == event_type]


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine, autocommit=False, autoflush=False)
    engine.dispose()


@pytest.fixture()
def store(session_factory) -> PlayerStateService:
    return PlayerStateService(session_factory)


@pytest.fixture(scope="session")
def catalog() -> QuestCatalog:
    return load_catalog_file(SAMPLE_CATALOG)


@pytest.fixture()
def bus() -> EventBus:
    return EventBus()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def record_events(bus):
    """record_events(EventTypes.X, ...) → EventRecorder"""

    def factory(*event_types: str) -> EventRecorder:
        return EventRecorder(bus, *event_types)

    return factory
