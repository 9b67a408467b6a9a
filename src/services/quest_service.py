"""퀘스트 카탈로그 Service — 조회 + 시드 동기화

진행 상태 변경은 QuestProgressionService 담당. 여기서는 읽기만 한다.
"""

import logging
from pathlib import Path

from sqlalchemy.orm import Session, selectinload

from src.core.badge.models import Badge
from src.core.quest.catalog import load_catalog
from src.core.quest.enums import DIFFICULTY_ORDER
from src.core.quest.models import Quest, QuestListing, UserProgress
from src.core.timeutil import utc_now
from src.db.models import (
    BadgeModel,
    QuestModel,
    QuestRewardModel,
    QuestStepModel,
    UserProgressModel,
)
from src.db.repository import progress_to_core, quest_to_core

logger = logging.getLogger(__name__)


class QuestService:
    """퀘스트 카탈로그 조회"""

    def __init__(self, db: Session):
        self._db = db

    # === 조회 ===

    def list_quests(self, user_id: str | None = None) -> list[QuestListing]:
        """활성 퀘스트 목록. 난이도 → 등록순 정렬."""
        orms = (
            self._db.query(QuestModel)
            .options(selectinload(QuestModel.steps), selectinload(QuestModel.rewards))
            .filter(QuestModel.is_active.is_(True))
            .all()
        )
        orms.sort(key=lambda q: (DIFFICULTY_ORDER.get(q.difficulty, 99), q.created_at))

        progress_by_quest = self._progress_by_quest(user_id) if user_id else {}
        return [
            QuestListing(quest=quest_to_core(o), progress=progress_by_quest.get(o.id))
            for o in orms
        ]

    def get_quest(self, quest_id: str, user_id: str | None = None) -> QuestListing | None:
        """퀘스트 단건 조회. 없거나 비활성이면 None."""
        orm = (
            self._db.query(QuestModel)
            .options(selectinload(QuestModel.steps), selectinload(QuestModel.rewards))
            .filter(QuestModel.id == quest_id)
            .first()
        )
        if orm is None or not orm.is_active:
            return None

        progress = None
        if user_id:
            progress = self._progress_by_quest(user_id, [quest_id]).get(quest_id)
        return QuestListing(quest=quest_to_core(orm), progress=progress)

    def _progress_by_quest(
        self, user_id: str, quest_ids: list[str] | None = None
    ) -> dict[str, UserProgress]:
        query = self._db.query(UserProgressModel).filter(
            UserProgressModel.user_id == user_id
        )
        if quest_ids is not None:
            query = query.filter(UserProgressModel.quest_id.in_(quest_ids))
        return {o.quest_id: progress_to_core(o) for o in query.all()}

    # === 시드 동기화 ===

    def sync_catalog(self, path: str | Path) -> tuple[int, int]:
        """카탈로그 JSON → DB. 서버 시작 시 호출.

        이미 존재하는 뱃지/퀘스트는 건드리지 않는다.
        반환: (추가된 뱃지 수, 추가된 퀘스트 수)
        """
        existing = [row[0] for row in self._db.query(BadgeModel.id).all()]
        badges, quests = load_catalog(path, known_badge_ids=existing)
        now = utc_now()

        badge_count = 0
        for badge in badges:
            if self._db.get(BadgeModel, badge.badge_id) is None:
                self._db.add(self._badge_to_orm(badge, now))
                badge_count += 1
        # 보상 FK가 뱃지를 참조하므로 먼저 기록
        self._db.flush()

        quest_count = 0
        for quest in quests:
            if self._db.get(QuestModel, quest.quest_id) is None:
                self._db.add(self._quest_to_orm(quest, now))
                quest_count += 1

        self._db.commit()
        logger.info("Synced %d badges and %d quests to DB", badge_count, quest_count)
        return badge_count, quest_count

    # === 변환 ===

    @staticmethod
    def _badge_to_orm(badge: Badge, now) -> BadgeModel:
        return BadgeModel(
            id=badge.badge_id,
            name=badge.name,
            description=badge.description,
            image_url=badge.image_url,
            category=badge.category,
            rarity=badge.rarity,
            requirements=list(badge.requirements),
            contract_token_id=badge.contract_token_id,
            is_active=badge.is_active,
            created_at=badge.created_at or now,
        )

    @staticmethod
    def _quest_to_orm(quest: Quest, now) -> QuestModel:
        return QuestModel(
            id=quest.quest_id,
            title=quest.title,
            description=quest.description,
            category=quest.category,
            difficulty=quest.difficulty,
            estimated_time=quest.estimated_time,
            prerequisites=list(quest.prerequisites),
            is_active=quest.is_active,
            created_at=quest.created_at or now,
            steps=[
                QuestStepModel(
                    step_number=s.step_number,
                    title=s.title,
                    description=s.description,
                    step_type=s.step_type,
                    requirements=list(s.requirements),
                    hints=list(s.hints),
                )
                for s in quest.steps
            ],
            rewards=[
                QuestRewardModel(
                    position=i,
                    reward_type=r.reward_type,
                    amount=r.amount,
                    badge_id=r.badge_id,
                    description=r.description,
                )
                for i, r in enumerate(quest.rewards)
            ],
        )
