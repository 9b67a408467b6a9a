"""API request/response schemas.

모든 응답은 {success, message, data} 형태.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, EmailStr, Field

from src.core.account import User
from src.core.badge import BadgeListing, BadgeStats
from src.core.quest import (
    Quest,
    QuestListing,
    QuestReward,
    QuestStep,
    RewardReport,
    UserProgress,
)

# === Request Schemas ===


class LoginRequest(BaseModel):
    """지갑 주소 로그인 요청 (없으면 생성)"""

    stacks_address: str = Field(
        ..., min_length=1, max_length=128, description="Stacks 지갑 주소"
    )


class RegisterRequest(BaseModel):
    """사용자 등록 요청"""

    stacks_address: str = Field(..., min_length=1, max_length=128)
    username: Optional[str] = Field(None, min_length=3, max_length=30)
    email: Optional[EmailStr] = None


class StartQuestRequest(BaseModel):
    user_id: str = Field(..., min_length=1, description="사용자 ID")


class CompleteStepRequest(BaseModel):
    """단계 완료 요청. data는 해석하지 않고 그대로 전달"""

    user_id: str = Field(..., min_length=1, description="사용자 ID")
    data: dict[str, Any] = Field(default_factory=dict, description="부가 데이터")


# === Data Schemas ===


class StepInfo(BaseModel):
    step_number: int
    title: str
    description: str
    step_type: str
    requirements: list[dict[str, Any]] = []
    hints: list[str] = []


class RewardInfo(BaseModel):
    reward_type: str
    badge_id: Optional[str] = None
    amount: Optional[int] = None
    description: str = ""


class QuestInfo(BaseModel):
    """퀘스트 정의"""

    quest_id: str
    title: str
    description: str
    category: str
    difficulty: str
    estimated_time: int
    prerequisites: list[str] = []
    steps: list[StepInfo] = []
    rewards: list[RewardInfo] = []


class ProgressInfo(BaseModel):
    """사용자 진행 상태"""

    user_id: str
    quest_id: str
    status: str
    current_step: int
    completed_steps: list[int] = []
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    quest: Optional[QuestInfo] = None


class QuestWithProgress(QuestInfo):
    user_progress: Optional[ProgressInfo] = None


class RewardFailureInfo(BaseModel):
    reward_type: str
    badge_id: Optional[str] = None
    reason: str


class RewardReportInfo(BaseModel):
    badges_awarded: list[str] = []
    badges_already_held: list[str] = []
    experience_awarded: int = 0
    failures: list[RewardFailureInfo] = []


class StepCompletionInfo(BaseModel):
    progress: ProgressInfo
    quest_completed: bool
    rewards: Optional[RewardReportInfo] = None


class BadgeQuestRef(BaseModel):
    quest_id: str
    title: str


class BadgeInfo(BaseModel):
    """뱃지 + 사용자 보유 여부"""

    badge_id: str
    name: str
    description: str
    image_url: str
    category: str
    rarity: str
    requirements: list[str] = []
    contract_token_id: Optional[int] = None
    quests: list[BadgeQuestRef] = []
    is_earned: bool = False
    earned_at: Optional[datetime] = None
    transaction_id: Optional[str] = None


class PopularBadgeInfo(BaseModel):
    badge_id: str
    name: str
    image_url: str
    rarity: str
    earned_count: int


class RecentAwardInfo(BaseModel):
    badge_id: str
    badge_name: str
    badge_image_url: str
    badge_rarity: str
    user_id: str
    username: Optional[str] = None
    user_address: str
    earned_at: datetime


class BadgeStatsInfo(BaseModel):
    total_badges: int
    total_earned_badges: int
    badges_by_category: dict[str, int] = {}
    badges_by_rarity: dict[str, int] = {}
    popular_badges: list[PopularBadgeInfo] = []
    recent_awards: list[RecentAwardInfo] = []


class ProfileInfo(BaseModel):
    display_name: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    level: int
    experience: int
    total_quests_completed: int


class UserInfo(BaseModel):
    user_id: str
    stacks_address: str
    username: Optional[str] = None
    email: Optional[str] = None
    created_at: Optional[datetime] = None
    profile: Optional[ProfileInfo] = None


class UserProfileInfo(UserInfo):
    """프로필 화면용: 진행 기록 + 획득 뱃지 포함"""

    quest_progress: list[ProgressInfo] = []
    badges: list[BadgeInfo] = []


# === Response Schemas ===


class ApiResponse(BaseModel):
    """공통 응답 봉투"""

    success: bool
    message: str = ""


class QuestListResponse(ApiResponse):
    data: list[QuestWithProgress] = []


class QuestResponse(ApiResponse):
    data: QuestWithProgress


class ProgressResponse(ApiResponse):
    data: ProgressInfo


class ProgressListResponse(ApiResponse):
    data: list[ProgressInfo] = []


class StepCompletionResponse(ApiResponse):
    data: StepCompletionInfo


class BadgeListResponse(ApiResponse):
    data: list[BadgeInfo] = []


class BadgeResponse(ApiResponse):
    data: BadgeInfo


class BadgeStatsResponse(ApiResponse):
    data: BadgeStatsInfo


class UserResponse(ApiResponse):
    data: UserInfo


class UserProfileResponse(ApiResponse):
    data: UserProfileInfo


class ErrorResponse(BaseModel):
    """에러 응답"""

    detail: str


# === Core → Schema 변환 ===


def step_info(step: QuestStep) -> StepInfo:
    return StepInfo(
        step_number=step.step_number,
        title=step.title,
        description=step.description,
        step_type=step.step_type,
        requirements=step.requirements,
        hints=step.hints,
    )


def reward_info(reward: QuestReward) -> RewardInfo:
    return RewardInfo(
        reward_type=reward.reward_type,
        badge_id=reward.badge_id,
        amount=reward.amount,
        description=reward.description,
    )


def quest_info(quest: Quest) -> QuestInfo:
    return QuestInfo(
        quest_id=quest.quest_id,
        title=quest.title,
        description=quest.description,
        category=quest.category,
        difficulty=quest.difficulty,
        estimated_time=quest.estimated_time,
        prerequisites=quest.prerequisites,
        steps=[step_info(s) for s in quest.steps],
        rewards=[reward_info(r) for r in quest.rewards],
    )


def progress_info(progress: UserProgress) -> ProgressInfo:
    return ProgressInfo(
        user_id=progress.user_id,
        quest_id=progress.quest_id,
        status=progress.status,
        current_step=progress.current_step,
        completed_steps=progress.completed_steps,
        started_at=progress.started_at,
        completed_at=progress.completed_at,
        quest=quest_info(progress.quest) if progress.quest is not None else None,
    )


def quest_with_progress(listing: QuestListing) -> QuestWithProgress:
    return QuestWithProgress(
        **quest_info(listing.quest).model_dump(),
        user_progress=(
            progress_info(listing.progress) if listing.progress is not None else None
        ),
    )


def reward_report_info(report: RewardReport) -> RewardReportInfo:
    return RewardReportInfo(
        badges_awarded=report.badges_awarded,
        badges_already_held=report.badges_already_held,
        experience_awarded=report.experience_awarded,
        failures=[
            RewardFailureInfo(
                reward_type=f.reward.reward_type,
                badge_id=f.reward.badge_id,
                reason=f.reason,
            )
            for f in report.failures
        ],
    )


def badge_info(listing: BadgeListing) -> BadgeInfo:
    badge = listing.badge
    return BadgeInfo(
        badge_id=badge.badge_id,
        name=badge.name,
        description=badge.description,
        image_url=badge.image_url,
        category=badge.category,
        rarity=badge.rarity,
        requirements=badge.requirements,
        contract_token_id=badge.contract_token_id,
        quests=[BadgeQuestRef(quest_id=q, title=t) for q, t in badge.quest_refs],
        is_earned=listing.is_earned,
        earned_at=listing.earned_at,
        transaction_id=listing.transaction_id,
    )


def badge_stats_info(stats: BadgeStats) -> BadgeStatsInfo:
    return BadgeStatsInfo(
        total_badges=stats.total_badges,
        total_earned_badges=stats.total_earned_badges,
        badges_by_category=stats.badges_by_category,
        badges_by_rarity=stats.badges_by_rarity,
        popular_badges=[
            PopularBadgeInfo(
                badge_id=p.badge_id,
                name=p.name,
                image_url=p.image_url,
                rarity=p.rarity,
                earned_count=p.earned_count,
            )
            for p in stats.popular_badges
        ],
        recent_awards=[
            RecentAwardInfo(
                badge_id=r.badge_id,
                badge_name=r.badge_name,
                badge_image_url=r.badge_image_url,
                badge_rarity=r.badge_rarity,
                user_id=r.user_id,
                username=r.username,
                user_address=r.user_address,
                earned_at=r.earned_at,
            )
            for r in stats.recent_awards
        ],
    )


def user_info(user: User) -> UserInfo:
    profile = None
    if user.profile is not None:
        profile = ProfileInfo(
            display_name=user.profile.display_name,
            bio=user.profile.bio,
            avatar_url=user.profile.avatar_url,
            level=user.profile.level,
            experience=user.profile.experience,
            total_quests_completed=user.profile.total_quests_completed,
        )
    return UserInfo(
        user_id=user.user_id,
        stacks_address=user.stacks_address,
        username=user.username,
        email=user.email,
        created_at=user.created_at,
        profile=profile,
    )


def user_profile_info(
    user: User,
    progress: list[UserProgress],
    badges: list[BadgeListing],
) -> UserProfileInfo:
    return UserProfileInfo(
        **user_info(user).model_dump(),
        quest_progress=[progress_info(p) for p in progress],
        badges=[badge_info(b) for b in badges],
    )
