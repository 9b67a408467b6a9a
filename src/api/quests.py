"""Quest API endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Path
from sqlalchemy.exc import SQLAlchemyError

from src.api.deps import (
    get_progression_service,
    get_quest_service,
    get_user_service,
    require_user,
)
from src.api.schemas import (
    CompleteStepRequest,
    ErrorResponse,
    ProgressListResponse,
    ProgressResponse,
    QuestListResponse,
    QuestResponse,
    StartQuestRequest,
    StepCompletionInfo,
    StepCompletionResponse,
    progress_info,
    quest_with_progress,
    reward_report_info,
)
from src.core.logging import get_logger
from src.core.quest import ProgressionError, ProgressionResult
from src.services.progression_service import QuestProgressionService
from src.services.quest_service import QuestService
from src.services.user_service import UserService

logger = get_logger(__name__)

router = APIRouter(prefix="/quests", tags=["quests"])

# 404로 응답하는 진행 에러. 나머지는 전부 400
_NOT_FOUND_ERRORS = {ProgressionError.NOT_FOUND, ProgressionError.STEP_NOT_FOUND}


def _raise_for(result: ProgressionResult) -> None:
    """실패한 진행 결과를 HTTP 에러로 변환"""
    if result.success:
        return
    status_code = 404 if result.error in _NOT_FOUND_ERRORS else 400
    raise HTTPException(status_code=status_code, detail=result.message)


@router.get("", response_model=QuestListResponse)
def list_quests(
    user_id: Optional[str] = None,
    quests: QuestService = Depends(get_quest_service),
) -> QuestListResponse:
    """활성 퀘스트 목록. user_id가 있으면 진행 상태 포함"""
    try:
        listings = quests.list_quests(user_id)
    except SQLAlchemyError as e:
        logger.error("Failed to fetch quests: %s", e)
        raise HTTPException(status_code=500, detail="Failed to fetch quests")

    return QuestListResponse(
        success=True,
        data=[quest_with_progress(listing) for listing in listings],
    )


@router.get("/progress/{user_id}", response_model=ProgressListResponse)
def get_user_progress(
    user_id: str,
    engine: QuestProgressionService = Depends(get_progression_service),
) -> ProgressListResponse:
    """사용자 진행 기록 전체, 최근 시작 순"""
    try:
        records = engine.get_user_progress(user_id)
    except SQLAlchemyError as e:
        logger.error("Failed to fetch user progress: %s", e)
        raise HTTPException(status_code=500, detail="Failed to fetch user progress")

    return ProgressListResponse(
        success=True,
        data=[progress_info(p) for p in records],
    )


@router.get(
    "/{quest_id}",
    response_model=QuestResponse,
    responses={404: {"model": ErrorResponse}},
)
def get_quest(
    quest_id: str,
    user_id: Optional[str] = None,
    quests: QuestService = Depends(get_quest_service),
) -> QuestResponse:
    try:
        listing = quests.get_quest(quest_id, user_id)
    except SQLAlchemyError as e:
        logger.error("Failed to fetch quest %s: %s", quest_id, e)
        raise HTTPException(status_code=500, detail="Failed to fetch quest")

    if listing is None:
        raise HTTPException(status_code=404, detail="Quest not found")

    return QuestResponse(success=True, data=quest_with_progress(listing))


@router.post(
    "/{quest_id}/start",
    response_model=ProgressResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
def start_quest(
    quest_id: str,
    request: StartQuestRequest,
    engine: QuestProgressionService = Depends(get_progression_service),
    users: UserService = Depends(get_user_service),
) -> ProgressResponse:
    """
    퀘스트 시작

    선행 퀘스트를 모두 완료해야 하며, 이미 시작한 퀘스트는 다시 시작할 수 없습니다.
    """
    require_user(request.user_id, users)
    try:
        result = engine.start_quest(request.user_id, quest_id)
    except SQLAlchemyError as e:
        logger.error("Failed to start quest %s: %s", quest_id, e)
        raise HTTPException(status_code=500, detail="Failed to start quest")

    _raise_for(result)
    return ProgressResponse(
        success=True,
        message=result.message,
        data=progress_info(result.progress),
    )


@router.post(
    "/{quest_id}/steps/{step_number}/complete",
    response_model=StepCompletionResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
def complete_step(
    quest_id: str,
    request: CompleteStepRequest,
    step_number: int = Path(..., ge=1),
    engine: QuestProgressionService = Depends(get_progression_service),
    users: UserService = Depends(get_user_service),
) -> StepCompletionResponse:
    """
    퀘스트 단계 완료

    단계는 순서대로 완료해야 합니다. 마지막 단계를 완료하면 보상이 지급됩니다.
    """
    require_user(request.user_id, users)
    try:
        result = engine.complete_step(
            request.user_id, quest_id, step_number, payload=request.data
        )
    except SQLAlchemyError as e:
        logger.error("Failed to complete step %s of %s: %s", step_number, quest_id, e)
        raise HTTPException(status_code=500, detail="Failed to complete quest step")

    _raise_for(result)
    return StepCompletionResponse(
        success=True,
        message=result.message,
        data=StepCompletionInfo(
            progress=progress_info(result.progress),
            quest_completed=result.quest_completed,
            rewards=(
                reward_report_info(result.rewards)
                if result.rewards is not None
                else None
            ),
        ),
    )
