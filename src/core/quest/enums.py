"""퀘스트 관련 열거형 (quest / progress / reward / badge)"""

from enum import Enum


class QuestCategory(str, Enum):
    BASICS = "BASICS"
    WALLET = "WALLET"
    TRANSACTIONS = "TRANSACTIONS"
    SMART_CONTRACTS = "SMART_CONTRACTS"
    NFTS = "NFTS"
    DEFI = "DEFI"
    ADVANCED = "ADVANCED"


class QuestDifficulty(str, Enum):
    BEGINNER = "BEGINNER"
    INTERMEDIATE = "INTERMEDIATE"
    ADVANCED = "ADVANCED"
    EXPERT = "EXPERT"


# catalog sort order, easiest first
DIFFICULTY_ORDER: dict[str, int] = {
    d.value: i for i, d in enumerate(QuestDifficulty)
}


class StepType(str, Enum):
    TUTORIAL = "TUTORIAL"
    PRACTICAL = "PRACTICAL"
    QUIZ = "QUIZ"
    TRANSACTION = "TRANSACTION"


class ProgressStatus(str, Enum):
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


class RewardType(str, Enum):
    NFT_BADGE = "NFT_BADGE"
    EXPERIENCE = "EXPERIENCE"
    TOKENS = "TOKENS"


class BadgeCategory(str, Enum):
    ACHIEVEMENT = "ACHIEVEMENT"
    SKILL = "SKILL"
    SPECIAL = "SPECIAL"
    MILESTONE = "MILESTONE"


class BadgeRarity(str, Enum):
    COMMON = "COMMON"
    UNCOMMON = "UNCOMMON"
    RARE = "RARE"
    EPIC = "EPIC"
    LEGENDARY = "LEGENDARY"


RARITY_ORDER: dict[str, int] = {r.value: i for i, r in enumerate(BadgeRarity)}


class ProgressionError(str, Enum):
    """진행 엔진의 논리적 실패 유형 (전송 계층 무관)"""

    NOT_FOUND = "NOT_FOUND"
    ALREADY_STARTED = "ALREADY_STARTED"
    PREREQUISITES_NOT_MET = "PREREQUISITES_NOT_MET"
    NOT_STARTED = "NOT_STARTED"
    ALREADY_COMPLETED = "ALREADY_COMPLETED"
    STEP_NOT_FOUND = "STEP_NOT_FOUND"
    STEP_ALREADY_COMPLETED = "STEP_ALREADY_COMPLETED"
    PREVIOUS_STEPS_REQUIRED = "PREVIOUS_STEPS_REQUIRED"
    REWARD_ISSUANCE_FAILED = "REWARD_ISSUANCE_FAILED"
