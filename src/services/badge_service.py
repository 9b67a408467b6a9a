"""뱃지 Service — 카탈로그, 사용자 보유 뱃지, 통계 (읽기 전용)

뱃지 지급은 QuestProgressionService.award_quest_rewards 에서만 일어난다.
"""

from collections import defaultdict

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from src.core.badge.models import (
    Badge,
    BadgeListing,
    BadgeStats,
    PopularBadge,
    RecentAward,
)
from src.core.quest.enums import RARITY_ORDER, RewardType
from src.db.models import (
    BadgeModel,
    QuestModel,
    QuestRewardModel,
    UserBadgeModel,
    UserModel,
)

POPULAR_BADGE_LIMIT = 5
RECENT_AWARD_LIMIT = 10


class BadgeService:
    """뱃지 조회"""

    def __init__(self, db: Session):
        self._db = db

    def list_badges(self, user_id: str | None = None) -> list[BadgeListing]:
        """활성 뱃지 목록. 희귀도 → 카테고리 → 등록순."""
        orms = self._db.query(BadgeModel).filter(BadgeModel.is_active.is_(True)).all()
        orms.sort(
            key=lambda b: (RARITY_ORDER.get(b.rarity, 99), b.category, b.created_at)
        )
        earned = self._earned_by_badge(user_id) if user_id else {}
        refs = self._quest_refs([o.id for o in orms])
        return [self._listing(o, earned.get(o.id), refs.get(o.id, [])) for o in orms]

    def get_badge(self, badge_id: str, user_id: str | None = None) -> BadgeListing | None:
        """뱃지 단건. 없거나 비활성이면 None."""
        orm = self._db.get(BadgeModel, badge_id)
        if orm is None or not orm.is_active:
            return None
        earned = self._earned_by_badge(user_id, [badge_id]) if user_id else {}
        refs = self._quest_refs([badge_id])
        return self._listing(orm, earned.get(badge_id), refs.get(badge_id, []))

    def get_user_badges(self, user_id: str) -> list[BadgeListing]:
        """사용자 보유 뱃지, 최근 획득 순."""
        rows = (
            self._db.query(UserBadgeModel)
            .options(selectinload(UserBadgeModel.badge))
            .filter(UserBadgeModel.user_id == user_id)
            .order_by(UserBadgeModel.earned_at.desc(), UserBadgeModel.id.desc())
            .all()
        )
        refs = self._quest_refs([r.badge_id for r in rows])
        return [self._listing(r.badge, r, refs.get(r.badge_id, [])) for r in rows]

    def get_badge_stats(self) -> BadgeStats:
        stats = BadgeStats()
        active = self._db.query(BadgeModel).filter(BadgeModel.is_active.is_(True))

        stats.total_badges = active.count()
        stats.total_earned_badges = self._db.query(UserBadgeModel).count()

        for category, count in (
            self._db.query(BadgeModel.category, func.count(BadgeModel.id))
            .filter(BadgeModel.is_active.is_(True))
            .group_by(BadgeModel.category)
            .all()
        ):
            stats.badges_by_category[category] = count

        for rarity, count in (
            self._db.query(BadgeModel.rarity, func.count(BadgeModel.id))
            .filter(BadgeModel.is_active.is_(True))
            .group_by(BadgeModel.rarity)
            .all()
        ):
            stats.badges_by_rarity[rarity] = count

        earned_count = func.count(UserBadgeModel.id).label("earned_count")
        for badge, count in (
            self._db.query(BadgeModel, earned_count)
            .join(UserBadgeModel, UserBadgeModel.badge_id == BadgeModel.id)
            .group_by(BadgeModel.id)
            .order_by(earned_count.desc(), BadgeModel.id)
            .limit(POPULAR_BADGE_LIMIT)
            .all()
        ):
            stats.popular_badges.append(
                PopularBadge(
                    badge_id=badge.id,
                    name=badge.name,
                    image_url=badge.image_url,
                    rarity=badge.rarity,
                    earned_count=count,
                )
            )

        for user_badge, badge, user in (
            self._db.query(UserBadgeModel, BadgeModel, UserModel)
            .join(BadgeModel, UserBadgeModel.badge_id == BadgeModel.id)
            .join(UserModel, UserBadgeModel.user_id == UserModel.id)
            .order_by(UserBadgeModel.earned_at.desc(), UserBadgeModel.id.desc())
            .limit(RECENT_AWARD_LIMIT)
            .all()
        ):
            stats.recent_awards.append(
                RecentAward(
                    badge_id=badge.id,
                    badge_name=badge.name,
                    badge_image_url=badge.image_url,
                    badge_rarity=badge.rarity,
                    user_id=user.id,
                    username=user.username,
                    user_address=user.stacks_address,
                    earned_at=user_badge.earned_at,
                )
            )

        return stats

    # === 내부 ===

    def _earned_by_badge(
        self, user_id: str, badge_ids: list[str] | None = None
    ) -> dict[str, UserBadgeModel]:
        query = self._db.query(UserBadgeModel).filter(UserBadgeModel.user_id == user_id)
        if badge_ids is not None:
            query = query.filter(UserBadgeModel.badge_id.in_(badge_ids))
        return {row.badge_id: row for row in query.all()}

    def _quest_refs(self, badge_ids: list[str]) -> dict[str, list[tuple[str, str]]]:
        """badge_id → 이 뱃지를 보상으로 주는 (quest_id, title) 목록"""
        if not badge_ids:
            return {}
        rows = (
            self._db.query(QuestRewardModel.badge_id, QuestModel.id, QuestModel.title)
            .join(QuestModel, QuestRewardModel.quest_id == QuestModel.id)
            .filter(
                QuestRewardModel.reward_type == RewardType.NFT_BADGE.value,
                QuestRewardModel.badge_id.in_(badge_ids),
            )
            .all()
        )
        refs: dict[str, list[tuple[str, str]]] = defaultdict(list)
        for badge_id, quest_id, title in rows:
            refs[badge_id].append((quest_id, title))
        return refs

    @staticmethod
    def _listing(
        orm: BadgeModel,
        earned: UserBadgeModel | None,
        quest_refs: list[tuple[str, str]],
    ) -> BadgeListing:
        return BadgeListing(
            badge=Badge(
                badge_id=orm.id,
                name=orm.name,
                description=orm.description,
                image_url=orm.image_url,
                category=orm.category,
                rarity=orm.rarity,
                requirements=list(orm.requirements or []),
                contract_token_id=orm.contract_token_id,
                is_active=bool(orm.is_active),
                created_at=orm.created_at,
                quest_refs=quest_refs,
            ),
            is_earned=earned is not None,
            earned_at=earned.earned_at if earned is not None else None,
            transaction_id=earned.transaction_id if earned is not None else None,
        )
