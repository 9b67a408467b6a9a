"""Shared test fixtures."""

import copy
from collections import defaultdict
from contextlib import contextmanager
from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event as sa_event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from src.config import settings
from src.core.locks import KeyedLock
from src.core.quest import (
    ProgressStatus,
    Quest,
    QuestReward,
    QuestStep,
    RewardType,
    UserProgress,
)
from src.db.database import get_db
from src.db.models import Base
from src.main import app
from src.services.quest_service import QuestService


def _make_engine():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @sa_event.listens_for(engine, "connect")
    def _set_fk(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)
    return engine


@pytest.fixture()
def db_engine():
    """인메모리 SQLite (FK 활성)"""
    engine = _make_engine()
    yield engine
    engine.dispose()


@pytest.fixture()
def db_session(db_engine) -> Session:
    """Raw database session for direct DB assertions."""
    session = sessionmaker(bind=db_engine, autocommit=False, autoflush=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def seeded_session(db_session) -> Session:
    """시드 카탈로그(뱃지 5, 퀘스트 3)가 들어간 세션"""
    QuestService(db_session).sync_catalog(settings.SEED_DATA_PATH)
    return db_session


@pytest.fixture()
def client(db_engine) -> TestClient:
    """FastAPI TestClient wired to a seeded in-memory SQLite database."""
    session_factory = sessionmaker(bind=db_engine, autocommit=False, autoflush=False)

    seed_db = session_factory()
    QuestService(seed_db).sync_catalog(settings.SEED_DATA_PATH)
    seed_db.close()

    def _override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _override_get_db
    app.state.progress_locks = KeyedLock()
    yield TestClient(app)
    app.dependency_overrides.clear()


# ── 인메모리 저장소 (엔진 단위 테스트용) ─────────────────────


class InMemoryProgressionRepository:
    """ProgressionRepository 테스트 구현

    transaction/savepoint는 상태 스냅샷으로 흉내 낸다.
    fail_badges에 든 뱃지는 add_badge에서 예외를 던진다.
    """

    def __init__(self) -> None:
        self.quests: dict[str, Quest] = {}
        self.progress: dict[tuple[str, str], UserProgress] = {}
        self.badges: dict[tuple[str, str], datetime] = {}
        self.profiles: dict[str, dict[str, int]] = defaultdict(
            lambda: {"quests_completed": 0, "experience": 0}
        )
        self.fail_badges: set[str] = set()
        self.commits = 0
        self.rollbacks = 0

    def add_quest(self, quest: Quest) -> None:
        self.quests[quest.quest_id] = quest

    def get_quest(self, quest_id):
        quest = self.quests.get(quest_id)
        return copy.deepcopy(quest) if quest is not None else None

    def get_progress(self, user_id, quest_id, for_update=False):
        progress = self.progress.get((user_id, quest_id))
        return copy.deepcopy(progress) if progress is not None else None

    def list_progress(self, user_id):
        records = [
            copy.deepcopy(p) for (uid, _), p in self.progress.items() if uid == user_id
        ]
        for record in records:
            record.quest = self.get_quest(record.quest_id)
        return sorted(records, key=lambda p: p.started_at, reverse=True)

    def completed_quest_ids(self, user_id, quest_ids):
        return {
            qid
            for qid in quest_ids
            if (user_id, qid) in self.progress
            and self.progress[(user_id, qid)].status == ProgressStatus.COMPLETED.value
        }

    def add_progress(self, progress):
        key = (progress.user_id, progress.quest_id)
        if key in self.progress:
            return False
        self.progress[key] = copy.deepcopy(progress)
        return True

    def update_progress(self, progress):
        key = (progress.user_id, progress.quest_id)
        if key not in self.progress:
            raise LookupError(key)
        stored = copy.deepcopy(progress)
        stored.quest = None
        self.progress[key] = stored

    def has_badge(self, user_id, badge_id):
        return (user_id, badge_id) in self.badges

    def add_badge(self, user_id, badge_id, earned_at):
        if badge_id in self.fail_badges:
            raise RuntimeError(f"mint failed for {badge_id}")
        if (user_id, badge_id) in self.badges:
            return False
        self.badges[(user_id, badge_id)] = earned_at
        return True

    def increment_profile(self, user_id, quests_completed=0, experience=0):
        profile = self.profiles[user_id]
        profile["quests_completed"] += quests_completed
        profile["experience"] += experience

    def _snapshot(self):
        return copy.deepcopy((self.progress, self.badges, dict(self.profiles)))

    def _restore(self, snapshot) -> None:
        self.progress, self.badges, profiles = snapshot
        self.profiles.clear()
        self.profiles.update(profiles)

    @contextmanager
    def transaction(self):
        snapshot = self._snapshot()
        try:
            yield
        except Exception:
            self._restore(snapshot)
            self.rollbacks += 1
            raise
        self.commits += 1

    @contextmanager
    def savepoint(self):
        snapshot = self._snapshot()
        try:
            yield
        except Exception:
            self._restore(snapshot)
            raise


class FixedClock:
    """호출마다 1초씩 증가하는 시계"""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 1, 1, 12, 0, 0)

    def __call__(self) -> datetime:
        current = self.now
        self.now = current + timedelta(seconds=1)
        return current


def make_quest(
    quest_id: str = "quest-1",
    steps: int = 2,
    prerequisites: list[str] | None = None,
    rewards: list[QuestReward] | None = None,
    is_active: bool = True,
) -> Quest:
    return Quest(
        quest_id=quest_id,
        title=f"Quest {quest_id}",
        prerequisites=prerequisites or [],
        is_active=is_active,
        steps=[QuestStep(step_number=n, title=f"Step {n}") for n in range(1, steps + 1)],
        rewards=(
            rewards
            if rewards is not None
            else [
                QuestReward(
                    reward_type=RewardType.NFT_BADGE.value, badge_id=f"{quest_id}-badge"
                ),
                QuestReward(reward_type=RewardType.EXPERIENCE.value, amount=50),
            ]
        ),
    )


@pytest.fixture()
def fake_repo() -> InMemoryProgressionRepository:
    return InMemoryProgressionRepository()


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture()
def quest_factory():
    """make_quest(quest_id, steps, prerequisites, rewards, is_active)"""
    return make_quest
