"""퀘스트 도메인 모델 (DB 무관)"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from src.core.quest.enums import ProgressionError, ProgressStatus, RewardType


@dataclass
class QuestStep:
    """퀘스트 단계. 엔진은 step_number만 해석한다."""

    step_number: int
    title: str = ""
    description: str = ""
    step_type: str = "TUTORIAL"  # StepType 값
    requirements: list[dict[str, Any]] = field(default_factory=list)
    hints: list[str] = field(default_factory=list)


@dataclass
class QuestReward:
    """완료 보상. reward_type에 따라 badge_id 또는 amount 사용"""

    reward_type: str  # RewardType 값
    badge_id: Optional[str] = None
    amount: Optional[int] = None
    description: str = ""

    @property
    def is_badge(self) -> bool:
        return self.reward_type == RewardType.NFT_BADGE.value

    @property
    def is_experience(self) -> bool:
        return self.reward_type == RewardType.EXPERIENCE.value


@dataclass
class Quest:
    """퀘스트 정의"""

    quest_id: str
    title: str = ""
    description: str = ""
    category: str = "BASICS"  # QuestCategory 값
    difficulty: str = "BEGINNER"  # QuestDifficulty 값
    estimated_time: int = 0  # 분
    prerequisites: list[str] = field(default_factory=list)
    is_active: bool = True
    created_at: Optional[datetime] = None

    steps: list[QuestStep] = field(default_factory=list)  # step_number 오름차순
    rewards: list[QuestReward] = field(default_factory=list)  # 지급 순서

    @property
    def step_count(self) -> int:
        return len(self.steps)

    @property
    def step_numbers(self) -> set[int]:
        return {s.step_number for s in self.steps}

    def get_step(self, step_number: int) -> Optional[QuestStep]:
        for step in self.steps:
            if step.step_number == step_number:
                return step
        return None


@dataclass
class UserProgress:
    """(user_id, quest_id) 당 하나. 레코드 부재 = 시작 전"""

    user_id: str
    quest_id: str
    status: str = ProgressStatus.IN_PROGRESS.value
    current_step: int = 1
    completed_steps: list[int] = field(default_factory=list)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    # 조회 시 조인되는 퀘스트 정의
    quest: Optional[Quest] = None

    @property
    def is_completed(self) -> bool:
        return self.status == ProgressStatus.COMPLETED.value


@dataclass
class QuestListing:
    """카탈로그 조회 결과. user_id 없이 조회하면 progress는 None"""

    quest: Quest
    progress: Optional[UserProgress] = None


@dataclass
class UserBadge:
    user_id: str
    badge_id: str
    earned_at: Optional[datetime] = None
    transaction_id: Optional[str] = None


@dataclass
class RewardFailure:
    """개별 보상 지급 실패 기록"""

    reward: QuestReward
    reason: str
    error: ProgressionError = ProgressionError.REWARD_ISSUANCE_FAILED


@dataclass
class RewardReport:
    """보상 일괄 지급 결과. 호출자 결과와 별도로 전달되는 부가 채널"""

    badges_awarded: list[str] = field(default_factory=list)
    badges_already_held: list[str] = field(default_factory=list)
    experience_awarded: int = 0
    skipped: list[QuestReward] = field(default_factory=list)
    failures: list[RewardFailure] = field(default_factory=list)

    @property
    def has_failures(self) -> bool:
        return bool(self.failures)


@dataclass
class ProgressionResult:
    """진행 엔진 연산 결과

    success=False 이면 error에 실패 유형이 담긴다.
    rewards는 퀘스트가 이번 호출로 완료된 경우에만 채워진다.
    """

    success: bool
    progress: Optional[UserProgress] = None
    error: Optional[ProgressionError] = None
    message: str = ""
    quest_completed: bool = False
    rewards: Optional[RewardReport] = None

    @classmethod
    def ok(cls, progress: UserProgress, message: str, **kwargs) -> ProgressionResult:
        return cls(success=True, progress=progress, message=message, **kwargs)

    @classmethod
    def fail(cls, error: ProgressionError, message: str) -> ProgressionResult:
        return cls(success=False, error=error, message=message)
