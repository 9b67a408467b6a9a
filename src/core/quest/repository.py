"""진행 엔진이 사용하는 저장소 인터페이스

엔진은 이 프로토콜만 알고, 구현(SQLAlchemy / 테스트용 인메모리)은 주입받는다.
"""

from contextlib import AbstractContextManager
from datetime import datetime
from typing import Iterable, Protocol

from .models import Quest, UserProgress


class ProgressionRepository(Protocol):
    """UserProgress / Quest / UserBadge / UserProfile 접근"""

    def get_quest(self, quest_id: str) -> Quest | None:
        """퀘스트 + 단계(번호순) + 보상(목록 순서)"""
        ...

    def get_progress(
        self, user_id: str, quest_id: str, for_update: bool = False
    ) -> UserProgress | None:
        """for_update=True 이면 트랜잭션 종료까지 행 잠금 (지원 DB 한정)"""
        ...

    def list_progress(self, user_id: str) -> list[UserProgress]:
        """사용자 전체 진행 기록, started_at 내림차순, 퀘스트 조인"""
        ...

    def completed_quest_ids(self, user_id: str, quest_ids: Iterable[str]) -> set[str]:
        ...

    def add_progress(self, progress: UserProgress) -> bool:
        """진행 기록 생성. (user_id, quest_id) 유일 제약에 막히면 False"""
        ...

    def update_progress(self, progress: UserProgress) -> None:
        ...

    def has_badge(self, user_id: str, badge_id: str) -> bool:
        ...

    def add_badge(self, user_id: str, badge_id: str, earned_at: datetime) -> bool:
        """뱃지 생성. (user_id, badge_id) 유일 제약에 막히면 False"""
        ...

    def increment_profile(
        self, user_id: str, quests_completed: int = 0, experience: int = 0
    ) -> None:
        ...

    def transaction(self) -> AbstractContextManager[None]:
        """정상 종료 시 commit, 예외 시 rollback 후 재발생"""
        ...

    def savepoint(self) -> AbstractContextManager[None]:
        """중첩 범위. 예외 시 이 범위의 변경만 되돌린다"""
        ...
