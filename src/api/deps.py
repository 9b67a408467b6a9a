"""Request-scoped service dependencies.

Services are built per request on top of the request's DB session.
Process-wide objects (the progress lock registry) live on ``app.state``.
"""

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from src.config import settings
from src.core.locks import KeyedLock
from src.db.database import get_db
from src.db.repository import SqlProgressionRepository
from src.services.badge_service import BadgeService
from src.services.progression_service import QuestProgressionService
from src.services.quest_service import QuestService
from src.services.user_service import UserService


def get_progress_locks(request: Request) -> KeyedLock:
    """KeyedLock 인스턴스 반환 (의존성 주입)"""
    locks: KeyedLock = request.app.state.progress_locks
    return locks


def get_progression_service(
    db: Session = Depends(get_db),
    locks: KeyedLock = Depends(get_progress_locks),
) -> QuestProgressionService:
    return QuestProgressionService(
        SqlProgressionRepository(db),
        locks,
        completion_xp=settings.QUEST_COMPLETION_XP,
    )


def get_quest_service(db: Session = Depends(get_db)) -> QuestService:
    return QuestService(db)


def get_badge_service(db: Session = Depends(get_db)) -> BadgeService:
    return BadgeService(db)


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    return UserService(db)


def require_user(user_id: str, users: UserService) -> None:
    """알 수 없는 사용자면 404"""
    if users.get_user(user_id) is None:
        raise HTTPException(status_code=404, detail="User not found")
