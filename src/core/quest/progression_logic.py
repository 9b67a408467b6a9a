"""퀘스트 진행 판정 — 시작 조건, 단계 완료 검증, 상태 전이 (DB 무관)"""

from dataclasses import replace
from datetime import datetime
from typing import Iterable

from .enums import ProgressionError, ProgressStatus
from .models import Quest, UserProgress

# === 실패 메시지 (API 응답 detail 문구) ===
ERROR_MESSAGES: dict[ProgressionError, str] = {
    ProgressionError.NOT_FOUND: "Quest not found or not available",
    ProgressionError.ALREADY_STARTED: "Quest already started",
    ProgressionError.PREREQUISITES_NOT_MET: "Prerequisites not met",
    ProgressionError.NOT_STARTED: "Quest not started",
    ProgressionError.ALREADY_COMPLETED: "Quest already completed",
    ProgressionError.STEP_NOT_FOUND: "Step not found",
    ProgressionError.STEP_ALREADY_COMPLETED: "Step already completed",
    ProgressionError.PREVIOUS_STEPS_REQUIRED: "Previous steps must be completed first",
    ProgressionError.REWARD_ISSUANCE_FAILED: "Reward issuance failed",
}


def prerequisites_met(quest: Quest, completed_quest_ids: Iterable[str]) -> bool:
    """선행 퀘스트 전부 완료 여부. 선행 목록이 비어 있으면 항상 True."""
    completed = set(completed_quest_ids)
    return all(qid in completed for qid in quest.prerequisites)


def check_start(
    quest: Quest | None,
    existing: UserProgress | None,
    completed_quest_ids: Iterable[str],
) -> ProgressionError | None:
    """퀘스트 시작 검증. 순서: 존재/활성 → 중복 시작 → 선행 조건"""
    if quest is None or not quest.is_active:
        return ProgressionError.NOT_FOUND
    # 중복 시작은 no-op이 아니라 에러
    if existing is not None:
        return ProgressionError.ALREADY_STARTED
    if not prerequisites_met(quest, completed_quest_ids):
        return ProgressionError.PREREQUISITES_NOT_MET
    return None


def new_progress(user_id: str, quest_id: str, now: datetime) -> UserProgress:
    return UserProgress(
        user_id=user_id,
        quest_id=quest_id,
        status=ProgressStatus.IN_PROGRESS.value,
        current_step=1,
        completed_steps=[],
        started_at=now,
        completed_at=None,
    )


def check_step_completion(
    progress: UserProgress | None,
    quest: Quest | None,
    step_number: int,
) -> ProgressionError | None:
    """단계 완료 검증. 첫 번째 실패가 결과가 된다 (순서 고정)."""
    if progress is None:
        return ProgressionError.NOT_STARTED
    if progress.is_completed:
        return ProgressionError.ALREADY_COMPLETED
    if quest is None or quest.get_step(step_number) is None:
        return ProgressionError.STEP_NOT_FOUND
    if step_number in progress.completed_steps:
        return ProgressionError.STEP_ALREADY_COMPLETED

    # 순차 완료: 이전 단계 1..n-1 전부 완료되어 있어야 함
    if step_number > 1:
        earlier = [s for s in progress.completed_steps if s < step_number]
        if len(earlier) != step_number - 1:
            return ProgressionError.PREVIOUS_STEPS_REQUIRED

    return None


def apply_step_completion(
    progress: UserProgress,
    quest: Quest,
    step_number: int,
    now: datetime,
) -> tuple[UserProgress, bool]:
    """검증을 통과한 단계를 반영한 새 진행 상태와 완료 여부 반환.

    입력 progress는 변경하지 않는다.
    """
    completed_steps = [*progress.completed_steps, step_number]
    is_complete = len(completed_steps) == quest.step_count

    updated = replace(
        progress,
        completed_steps=completed_steps,
        current_step=step_number if is_complete else step_number + 1,
        status=(
            ProgressStatus.COMPLETED.value
            if is_complete
            else ProgressStatus.IN_PROGRESS.value
        ),
        completed_at=now if is_complete else progress.completed_at,
    )
    return updated, is_complete
