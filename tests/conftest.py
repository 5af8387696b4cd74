"""Shared test fixtures."""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from src.core.event_bus import EventBus
from src.core.quest.catalog import load_catalog_file
from src.db.database import get_db
from src.db.models import Base
from src.main import app
from src.services.oracle.mock import MockRandomnessOracle
from src.services.player_state_service import PlayerStateService
from src.services.progression_service import ProgressionService
from src.services.quest_service import QuestService
from src.services.relationship_service import RelationshipService

SAMPLE_CATALOG = Path(__file__).parents[1] / "src" / "data" / "quest_catalog.json"

# 여러 세션이 같은 인메모리 DB를 보도록 연결 하나를 공유
TEST_ENGINE = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSession = sessionmaker(bind=TEST_ENGINE, autocommit=False, autoflush=False)


def _override_get_db():
    db = TestSession()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = _override_get_db


@pytest.fixture()
def client() -> TestClient:
    """FastAPI TestClient wired to an in-memory SQLite database.

    lifespan을 돌리지 않으므로 app.state의 서비스는 여기서 직접 조립한다.
    오라클은 고정 word(희귀 드롭 → legendary)를 돌려준다.
    """
    Base.metadata.create_all(TEST_ENGINE)
    catalog = load_catalog_file(SAMPLE_CATALOG)
    event_bus = EventBus()
    store = PlayerStateService(TestSession)

    app.state.catalog = catalog
    app.state.event_bus = event_bus
    app.state.player_state_service = store
    app.state.quest_service = QuestService(
        catalog, store, MockRandomnessOracle(fixed_words=[2499, 150]), event_bus
    )
    app.state.progression_service = ProgressionService(catalog, store, event_bus)
    app.state.relationship_service = RelationshipService(catalog, store, event_bus)

    yield TestClient(app)

    event_bus.clear()
    Base.metadata.drop_all(TEST_ENGINE)


@pytest.fixture()
def db_session() -> Session:
    """Raw database session for direct DB assertions."""
    session = TestSession()
    try:
        yield session
    finally:
        session.close()
