"""SQLAlchemy 구현의 ProgressionRepository

ORM ↔ Core 변환은 이 모듈 안에서만 일어난다.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Iterable

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from src.core.quest.enums import ProgressStatus
from src.core.quest.models import Quest, QuestReward, QuestStep, UserProgress
from src.core.timeutil import utc_now
from src.db.models import (
    QuestModel,
    UserBadgeModel,
    UserProfileModel,
    UserProgressModel,
)

logger = logging.getLogger(__name__)


# === ORM → Core 변환 ===


def quest_to_core(orm: QuestModel) -> Quest:
    return Quest(
        quest_id=orm.id,
        title=orm.title,
        description=orm.description,
        category=orm.category,
        difficulty=orm.difficulty,
        estimated_time=orm.estimated_time or 0,
        prerequisites=list(orm.prerequisites or []),
        is_active=bool(orm.is_active),
        created_at=orm.created_at,
        steps=[
            QuestStep(
                step_number=s.step_number,
                title=s.title,
                description=s.description,
                step_type=s.step_type,
                requirements=list(s.requirements or []),
                hints=list(s.hints or []),
            )
            for s in sorted(orm.steps, key=lambda s: s.step_number)
        ],
        rewards=[
            QuestReward(
                reward_type=r.reward_type,
                badge_id=r.badge_id,
                amount=r.amount,
                description=r.description,
            )
            for r in sorted(orm.rewards, key=lambda r: r.position)
        ],
    )


def progress_to_core(orm: UserProgressModel, with_quest: bool = False) -> UserProgress:
    return UserProgress(
        user_id=orm.user_id,
        quest_id=orm.quest_id,
        status=orm.status,
        current_step=orm.current_step,
        completed_steps=list(orm.completed_steps or []),
        started_at=orm.started_at,
        completed_at=orm.completed_at,
        quest=quest_to_core(orm.quest) if with_quest and orm.quest else None,
    )


class SqlProgressionRepository:
    """Session 하나에 묶인 저장소. 요청마다 새로 만든다."""

    def __init__(self, db: Session):
        self._db = db

    # === Quest ===

    def get_quest(self, quest_id: str) -> Quest | None:
        orm = (
            self._db.query(QuestModel)
            .options(selectinload(QuestModel.steps), selectinload(QuestModel.rewards))
            .filter(QuestModel.id == quest_id)
            .first()
        )
        if orm is None:
            return None
        return quest_to_core(orm)

    # === Progress ===

    def _progress_orm(
        self, user_id: str, quest_id: str, for_update: bool = False
    ) -> UserProgressModel | None:
        query = self._db.query(UserProgressModel).filter(
            UserProgressModel.user_id == user_id,
            UserProgressModel.quest_id == quest_id,
        )
        if for_update:
            query = query.with_for_update()
        return query.first()

    def get_progress(
        self, user_id: str, quest_id: str, for_update: bool = False
    ) -> UserProgress | None:
        orm = self._progress_orm(user_id, quest_id, for_update=for_update)
        if orm is None:
            return None
        return progress_to_core(orm)

    def list_progress(self, user_id: str) -> list[UserProgress]:
        orms = (
            self._db.query(UserProgressModel)
            .options(
                selectinload(UserProgressModel.quest).selectinload(QuestModel.steps),
                selectinload(UserProgressModel.quest).selectinload(QuestModel.rewards),
            )
            .filter(UserProgressModel.user_id == user_id)
            .order_by(UserProgressModel.started_at.desc(), UserProgressModel.id.desc())
            .all()
        )
        return [progress_to_core(o, with_quest=True) for o in orms]

    def completed_quest_ids(self, user_id: str, quest_ids: Iterable[str]) -> set[str]:
        ids = list(quest_ids)
        if not ids:
            return set()
        rows = (
            self._db.query(UserProgressModel.quest_id)
            .filter(
                UserProgressModel.user_id == user_id,
                UserProgressModel.quest_id.in_(ids),
                UserProgressModel.status == ProgressStatus.COMPLETED.value,
            )
            .all()
        )
        return {row[0] for row in rows}

    def add_progress(self, progress: UserProgress) -> bool:
        try:
            with self._db.begin_nested():
                self._db.add(
                    UserProgressModel(
                        user_id=progress.user_id,
                        quest_id=progress.quest_id,
                        status=progress.status,
                        current_step=progress.current_step,
                        completed_steps=list(progress.completed_steps),
                        started_at=progress.started_at,
                        completed_at=progress.completed_at,
                    )
                )
                self._db.flush()
        except IntegrityError:
            # uq_progress_user_quest: 다른 프로세스가 먼저 시작함
            if self._progress_orm(progress.user_id, progress.quest_id) is None:
                raise
            return False
        return True

    def update_progress(self, progress: UserProgress) -> None:
        orm = self._progress_orm(progress.user_id, progress.quest_id)
        if orm is None:
            raise LookupError(
                f"Progress not found: {progress.user_id}/{progress.quest_id}"
            )
        orm.status = progress.status
        orm.current_step = progress.current_step
        # JSON 컬럼은 새 리스트를 할당해야 변경이 감지된다
        orm.completed_steps = list(progress.completed_steps)
        orm.completed_at = progress.completed_at
        self._db.flush()

    # === Badge ===

    def has_badge(self, user_id: str, badge_id: str) -> bool:
        return (
            self._db.query(UserBadgeModel.id)
            .filter(
                UserBadgeModel.user_id == user_id,
                UserBadgeModel.badge_id == badge_id,
            )
            .first()
            is not None
        )

    def add_badge(self, user_id: str, badge_id: str, earned_at: datetime) -> bool:
        try:
            with self._db.begin_nested():
                self._db.add(
                    UserBadgeModel(user_id=user_id, badge_id=badge_id, earned_at=earned_at)
                )
                self._db.flush()
        except IntegrityError:
            # uq_user_badge: 동시 지급 경합에서 진 쪽. 그 외 제약 위반은 전파
            if not self.has_badge(user_id, badge_id):
                raise
            logger.info("Badge %s already held by user %s", badge_id, user_id)
            return False
        return True

    # === Profile ===

    def increment_profile(
        self, user_id: str, quests_completed: int = 0, experience: int = 0
    ) -> None:
        now = utc_now()
        updated = (
            self._db.query(UserProfileModel)
            .filter(UserProfileModel.user_id == user_id)
            .update(
                {
                    UserProfileModel.total_quests_completed: (
                        UserProfileModel.total_quests_completed + quests_completed
                    ),
                    UserProfileModel.experience: (
                        UserProfileModel.experience + experience
                    ),
                    UserProfileModel.updated_at: now,
                },
                synchronize_session="fetch",
            )
        )
        if updated == 0:
            logger.warning("Profile missing for user %s, creating one", user_id)
            self._db.add(
                UserProfileModel(
                    user_id=user_id,
                    level=1,
                    experience=experience,
                    total_quests_completed=quests_completed,
                    created_at=now,
                    updated_at=now,
                )
            )
            self._db.flush()

    # === 트랜잭션 범위 ===

    @contextmanager
    def transaction(self) -> Iterator[None]:
        try:
            yield
            self._db.commit()
        except Exception:
            self._db.rollback()
            raise

    @contextmanager
    def savepoint(self) -> Iterator[None]:
        with self._db.begin_nested():
            yield
