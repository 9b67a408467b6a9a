"""FastAPI application entrypoint."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.badges import router as badges_router
from src.api.health import router as health_router
from src.api.quests import router as quests_router
from src.api.users import auth_router, users_router
from src.config import settings
from src.core import __version__
from src.core.locks import KeyedLock
from src.core.logging import get_logger, setup_logging
from src.db.database import SessionLocal, engine as db_engine
from src.db.models import Base
from src.services.quest_service import QuestService

setup_logging(settings.LOG_LEVEL)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup and shutdown events."""
    # DB 테이블 생성
    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=db_engine)
    logger.info("Database tables created.")

    # 퀘스트/뱃지 카탈로그 시드
    if settings.SEED_ON_STARTUP:
        logger.info("Seeding catalog from %s...", settings.SEED_DATA_PATH)
        db_session = SessionLocal()
        try:
            QuestService(db_session).sync_catalog(settings.SEED_DATA_PATH)
        finally:
            db_session.close()

    # (user_id, quest_id) 단위 진행 잠금
    app.state.progress_locks = KeyedLock()
    logger.info("StacksQuest API ready.")

    yield

    logger.info("Shutting down...")
    db_engine.dispose()


app = FastAPI(title="StacksQuest API", version=__version__, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router)
app.include_router(auth_router)
app.include_router(users_router)
app.include_router(quests_router)
app.include_router(badges_router)
