"""FastAPI application entrypoint."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from src.api.health import router as health_router
from src.api.progression import router as progression_router
from src.api.quests import router as quests_router
from src.api.relationships import router as relationships_router
from src.config import settings
from src.core.errors import ConfigurationError, ContentError
from src.core.event_bus import EventBus
from src.core.logging import get_logger, setup_logging
from src.core.quest.catalog import load_catalog_file
from src.db.database import SessionLocal, engine as db_engine
from src.db.models import Base
from src.engine.objective_watcher import ObjectiveWatcher
from src.engine.player_locks import PlayerLockRegistry
from src.services.oracle import get_randomness_oracle
from src.services.player_state_service import PlayerStateService
from src.services.progression_service import ProgressionService
from src.services.quest_service import QuestService
from src.services.relationship_service import RelationshipService

setup_logging(settings.LOG_LEVEL)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup and shutdown events."""
    # DB 테이블 생성
    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=db_engine)
    logger.info("Database tables created.")

    # 콘텐츠 카탈로그 로드 (검증 실패 시 기동 중단)
    logger.info(f"Loading content catalog from {settings.CONTENT_PATH}...")
    try:
        catalog = load_catalog_file(
            settings.CONTENT_PATH, max_roll_words=settings.ORACLE_MAX_WORDS
        )
    except ContentError:
        logger.critical("Content catalog rejected; aborting startup")
        raise
    app.state.catalog = catalog

    # 난수 오라클
    try:
        oracle = get_randomness_oracle()
    except ConfigurationError:
        logger.critical("Randomness oracle misconfigured; aborting startup")
        raise
    logger.info(f"Randomness oracle initialized: {oracle.name}")

    # 저장소 + 서비스
    event_bus = EventBus()
    store = PlayerStateService(SessionLocal, PlayerLockRegistry())
    app.state.event_bus = event_bus
    app.state.player_state_service = store

    app.state.quest_service = QuestService(
        catalog=catalog, store=store, oracle=oracle, event_bus=event_bus
    )
    app.state.progression_service = ProgressionService(
        catalog=catalog, store=store, event_bus=event_bus
    )
    app.state.relationship_service = RelationshipService(
        catalog=catalog, store=store, event_bus=event_bus
    )
    app.state.objective_watcher = ObjectiveWatcher(
        event_bus, app.state.quest_service
    )
    logger.info("Services initialized.")

    yield

    # 종료 시 정리
    logger.info("Shutting down...")
    event_bus.clear()


app = FastAPI(title="Rush Quest Engine", lifespan=lifespan)

app.include_router(health_router)
app.include_router(progression_router)
app.include_router(quests_router)
app.include_router(relationships_router)
