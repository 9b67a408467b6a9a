"""퀘스트 진행 엔진 — 시작, 단계 완료, 보상 지급

판정 규칙은 Core(progression_logic)에, 저장은 주입된 저장소에 위임한다.
엔진은 호출 사이에 상태를 갖지 않으며, (user_id, quest_id) 단위로
"조회 → 검증 → 기록"을 직렬화한다.
"""

import logging
from datetime import datetime
from typing import Any, Callable

from src.core.locks import KeyedLock
from src.core.quest.enums import ProgressionError, RewardType
from src.core.quest.models import (
    ProgressionResult,
    Quest,
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
)
from src.core.quest.repository import ProgressionRepository
from src.core.timeutil import utc_now

logger = logging.getLogger(__name__)

# 퀘스트 완료 기본 경험치 (EXPERIENCE 보상과 별도로 항상 지급)
DEFAULT_COMPLETION_XP = 100


class QuestProgressionService:
    """퀘스트 진행 상태 머신

    [없음] --start--> IN_PROGRESS --마지막 단계--> COMPLETED (보상 1회)
    """

    def __init__(
        self,
        repository: ProgressionRepository,
        locks: KeyedLock,
        completion_xp: int = DEFAULT_COMPLETION_XP,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._repo = repository
        self._locks = locks
        self._completion_xp = completion_xp
        self._clock = clock

    # === 시작 ===

    def start_quest(self, user_id: str, quest_id: str) -> ProgressionResult:
        """퀘스트 시작. 중복 시작은 ALREADY_STARTED (멱등 아님)."""
        with self._locks.hold((user_id, quest_id)):
            with self._repo.transaction():
                quest = self._repo.get_quest(quest_id)
                existing = self._repo.get_progress(user_id, quest_id, for_update=True)
                completed = (
                    self._repo.completed_quest_ids(user_id, quest.prerequisites)
                    if quest is not None and existing is None
                    else set()
                )

                error = check_start(quest, existing, completed)
                if error is not None:
                    logger.info(
                        "Start rejected: user=%s quest=%s error=%s",
                        user_id,
                        quest_id,
                        error.value,
                    )
                    return ProgressionResult.fail(error, ERROR_MESSAGES[error])

                progress = new_progress(user_id, quest_id, self._clock())
                if not self._repo.add_progress(progress):
                    error = ProgressionError.ALREADY_STARTED
                    return ProgressionResult.fail(error, ERROR_MESSAGES[error])

        logger.info("User %s started quest %s", user_id, quest_id)
        progress.quest = quest
        return ProgressionResult.ok(progress, "Quest started successfully")

    # === 단계 완료 ===

    def complete_step(
        self,
        user_id: str,
        quest_id: str,
        step_number: int,
        payload: dict[str, Any] | None = None,
    ) -> ProgressionResult:
        """단계 완료 처리.

        payload(트랜잭션 ID 등)는 해석하지 않는다. 단계별 요구사항 검증은
        호출 측 책임이다.
        """
        with self._locks.hold((user_id, quest_id)):
            with self._repo.transaction():
                progress = self._repo.get_progress(user_id, quest_id, for_update=True)
                quest = self._repo.get_quest(quest_id) if progress is not None else None

                error = check_step_completion(progress, quest, step_number)
                if error is not None:
                    logger.info(
                        "Step rejected: user=%s quest=%s step=%s error=%s",
                        user_id,
                        quest_id,
                        step_number,
                        error.value,
                    )
                    return ProgressionResult.fail(error, ERROR_MESSAGES[error])

                if payload:
                    logger.debug(
                        "Step payload accepted as-is: user=%s quest=%s step=%s keys=%s",
                        user_id,
                        quest_id,
                        step_number,
                        sorted(payload),
                    )

                updated, is_complete = apply_step_completion(
                    progress, quest, step_number, self._clock()
                )
                self._repo.update_progress(updated)

                report = None
                if is_complete:
                    # 보상 실패는 전이를 되돌리지 않는다 (각 보상은 savepoint로 격리)
                    report = self.award_quest_rewards(user_id, quest)
                    self._repo.increment_profile(
                        user_id, quests_completed=1, experience=self._completion_xp
                    )

        if is_complete:
            logger.info("User %s completed quest %s", user_id, quest_id)
        updated.quest = quest
        return ProgressionResult.ok(
            updated,
            "Quest completed!" if is_complete else "Step completed successfully",
            quest_completed=is_complete,
            rewards=report,
        )

    # === 보상 ===

    def award_quest_rewards(self, user_id: str, quest: Quest) -> RewardReport:
        """보상 일괄 지급 (best-effort).

        보상마다 독립적으로 시도하고, 실패는 모아서 경고로 남긴다.
        EXPERIENCE는 중복 방지가 없으므로 완료 전이당 한 번만 호출해야 한다.
        """
        report = RewardReport()
        now = self._clock()

        for reward in quest.rewards:
            try:
                with self._repo.savepoint():
                    if reward.reward_type == RewardType.NFT_BADGE.value:
                        if not reward.badge_id:
                            raise ValueError("badge reward without badge_id")
                        if self._repo.has_badge(user_id, reward.badge_id):
                            report.badges_already_held.append(reward.badge_id)
                        elif self._repo.add_badge(user_id, reward.badge_id, now):
                            report.badges_awarded.append(reward.badge_id)
                            logger.info(
                                "Awarded NFT badge %s to user %s",
                                reward.badge_id,
                                user_id,
                            )
                        else:
                            report.badges_already_held.append(reward.badge_id)

                    elif reward.reward_type == RewardType.EXPERIENCE.value:
                        if not reward.amount:
                            report.skipped.append(reward)
                            continue
                        self._repo.increment_profile(user_id, experience=reward.amount)
                        report.experience_awarded += reward.amount
                        logger.info("Awarded %s XP to user %s", reward.amount, user_id)

                    else:
                        # TOKENS 등은 온체인에서 지급
                        report.skipped.append(reward)
            except Exception as e:
                report.failures.append(RewardFailure(reward=reward, reason=str(e)))
                logger.warning(
                    "Reward issuance failed: user=%s quest=%s reward=%s error=%s",
                    user_id,
                    quest.quest_id,
                    reward.reward_type,
                    e,
                )

        return report

    # === 조회 ===

    def get_user_progress(self, user_id: str) -> list[UserProgress]:
        """사용자 진행 기록 전체, 최근 시작 순"""
        return self._repo.list_progress(user_id)
