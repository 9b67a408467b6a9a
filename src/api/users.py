"""Auth and user API endpoints.

Token issuance is handled outside this service; login only resolves
(or creates) the user record for a wallet address.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError

from src.api.deps import (
    get_badge_service,
    get_progression_service,
    get_user_service,
)
from src.api.schemas import (
    ErrorResponse,
    LoginRequest,
    RegisterRequest,
    UserProfileResponse,
    UserResponse,
    user_info,
    user_profile_info,
)
from src.core.logging import get_logger
from src.services.badge_service import BadgeService
from src.services.progression_service import QuestProgressionService
from src.services.user_service import UserService

logger = get_logger(__name__)

auth_router = APIRouter(prefix="/auth", tags=["auth"])
users_router = APIRouter(prefix="/users", tags=["users"])


@auth_router.post("/login", response_model=UserResponse)
def login(
    request: LoginRequest,
    users: UserService = Depends(get_user_service),
) -> UserResponse:
    """
    지갑 주소 로그인

    처음 보는 주소면 사용자와 프로필을 새로 만듭니다.
    """
    try:
        result = users.login(request.stacks_address)
    except SQLAlchemyError as e:
        logger.error("Failed to log in %s: %s", request.stacks_address, e)
        raise HTTPException(status_code=500, detail="Failed to log in")

    return UserResponse(success=True, message=result.message, data=user_info(result.user))


@auth_router.post(
    "/register",
    response_model=UserResponse,
    responses={400: {"model": ErrorResponse}},
)
def register(
    request: RegisterRequest,
    users: UserService = Depends(get_user_service),
) -> UserResponse:
    try:
        result = users.register(
            request.stacks_address,
            username=request.username,
            email=request.email,
        )
    except SQLAlchemyError as e:
        logger.error("Failed to register %s: %s", request.stacks_address, e)
        raise HTTPException(status_code=500, detail="Failed to register user")

    if not result.success:
        raise HTTPException(status_code=400, detail=result.message)

    return UserResponse(success=True, message=result.message, data=user_info(result.user))


@users_router.get(
    "/{user_id}/profile",
    response_model=UserProfileResponse,
    responses={404: {"model": ErrorResponse}},
)
def get_profile(
    user_id: str,
    users: UserService = Depends(get_user_service),
    progression: QuestProgressionService = Depends(get_progression_service),
    badges: BadgeService = Depends(get_badge_service),
) -> UserProfileResponse:
    """사용자 + 프로필 + 퀘스트 진행 기록 + 획득 뱃지"""
    try:
        user = users.get_user(user_id)
        if user is None:
            raise HTTPException(status_code=404, detail="User not found")
        progress = progression.get_user_progress(user_id)
        earned = badges.get_user_badges(user_id)
    except SQLAlchemyError as e:
        logger.error("Failed to fetch user %s: %s", user_id, e)
        raise HTTPException(status_code=500, detail="Failed to fetch user")

    return UserProfileResponse(
        success=True, data=user_profile_info(user, progress, earned)
    )
