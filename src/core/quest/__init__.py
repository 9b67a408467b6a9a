"""퀘스트 시스템 Core 패키지"""

from src.core.quest.enums import (
    DIFFICULTY_ORDER,
    ProgressionError,
    ProgressStatus,
    QuestCategory,
    QuestDifficulty,
    RewardType,
    StepType,
)
from src.core.quest.models import (
    ProgressionResult,
    Quest,
    QuestListing,
    QuestReward,
    QuestStep,
    RewardFailure,
    RewardReport,
    UserProgress,
)
from src.core.quest.progression_logic import (
    ERROR_MESSAGES,
    apply_step_completion,
    check_start,
    check_step_completion,
    new_progress,
    prerequisites_met,
)
from src.core.quest.repository import ProgressionRepository

__all__ = [
    # enums
    "QuestCategory",
    "QuestDifficulty",
    "StepType",
    "ProgressStatus",
    "RewardType",
    "ProgressionError",
    "DIFFICULTY_ORDER",
    # models
    "QuestStep",
    "QuestReward",
    "Quest",
    "UserProgress",
    "QuestListing",
    "RewardFailure",
    "RewardReport",
    "ProgressionResult",
    # logic
    "ERROR_MESSAGES",
    "prerequisites_met",
    "check_start",
    "new_progress",
    "check_step_completion",
    "apply_step_completion",
    # persistence
    "ProgressionRepository",
]
