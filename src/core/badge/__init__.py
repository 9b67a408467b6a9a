"""뱃지 Core — 순수 Python, DB 무관"""

from .models import Badge, BadgeListing, BadgeStats, PopularBadge, RecentAward

__all__ = [
    "Badge",
    "BadgeListing",
    "BadgeStats",
    "PopularBadge",
    "RecentAward",
]
