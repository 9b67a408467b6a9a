"""뱃지 도메인 모델 (DB 무관)"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass
class Badge:
    """NFT 뱃지 정의"""

    badge_id: str
    name: str
    description: str = ""
    image_url: str = ""
    category: str = "ACHIEVEMENT"  # BadgeCategory 값
    rarity: str = "COMMON"  # BadgeRarity 값
    requirements: list[str] = field(default_factory=list)
    contract_token_id: Optional[int] = None
    is_active: bool = True
    created_at: Optional[datetime] = None

    # 보상으로 이 뱃지를 주는 퀘스트 (quest_id, title)
    quest_refs: list[tuple[str, str]] = field(default_factory=list)


@dataclass
class BadgeListing:
    """사용자 기준 뱃지 조회 결과"""

    badge: Badge
    is_earned: bool = False
    earned_at: Optional[datetime] = None
    transaction_id: Optional[str] = None


@dataclass
class PopularBadge:
    badge_id: str
    name: str
    image_url: str
    rarity: str
    earned_count: int


@dataclass
class RecentAward:
    badge_id: str
    badge_name: str
    badge_image_url: str
    badge_rarity: str
    user_id: str
    username: Optional[str]
    user_address: str
    earned_at: datetime


@dataclass
class BadgeStats:
    total_badges: int = 0
    total_earned_badges: int = 0
    badges_by_category: dict[str, int] = field(default_factory=dict)
    badges_by_rarity: dict[str, int] = field(default_factory=dict)
    popular_badges: list[PopularBadge] = field(default_factory=list)
    recent_awards: list[RecentAward] = field(default_factory=list)
