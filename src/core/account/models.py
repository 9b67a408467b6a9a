"""계정 도메인 모델 (DB 무관)"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from src.core.account.enums import AccountError


@dataclass
class UserProfile:
    """사용자 누적 카운터 + 표시 정보"""

    user_id: str
    display_name: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    level: int = 1
    experience: int = 0
    total_quests_completed: int = 0


@dataclass
class User:
    user_id: str
    stacks_address: str
    username: Optional[str] = None
    email: Optional[str] = None
    created_at: Optional[datetime] = None
    profile: Optional[UserProfile] = None


@dataclass
class AccountResult:
    """로그인/가입 결과"""

    success: bool
    user: Optional[User] = None
    created: bool = False
    error: Optional[AccountError] = None
    message: str = ""
