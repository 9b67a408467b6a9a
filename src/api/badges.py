"""Badge API endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError

from src.api.deps import get_badge_service
from src.api.schemas import (
    BadgeListResponse,
    BadgeResponse,
    BadgeStatsResponse,
    ErrorResponse,
    badge_info,
    badge_stats_info,
)
from src.core.logging import get_logger
from src.services.badge_service import BadgeService

logger = get_logger(__name__)

router = APIRouter(prefix="/badges", tags=["badges"])


@router.get("", response_model=BadgeListResponse)
def list_badges(
    user_id: Optional[str] = None,
    badges: BadgeService = Depends(get_badge_service),
) -> BadgeListResponse:
    """활성 뱃지 목록. user_id가 있으면 보유 여부 포함"""
    try:
        listings = badges.list_badges(user_id)
    except SQLAlchemyError as e:
        logger.error("Failed to fetch badges: %s", e)
        raise HTTPException(status_code=500, detail="Failed to fetch badges")

    return BadgeListResponse(success=True, data=[badge_info(b) for b in listings])


@router.get("/stats", response_model=BadgeStatsResponse)
def get_badge_stats(
    badges: BadgeService = Depends(get_badge_service),
) -> BadgeStatsResponse:
    try:
        stats = badges.get_badge_stats()
    except SQLAlchemyError as e:
        logger.error("Failed to fetch badge stats: %s", e)
        raise HTTPException(status_code=500, detail="Failed to fetch badge stats")

    return BadgeStatsResponse(success=True, data=badge_stats_info(stats))


@router.get("/user/{user_id}", response_model=BadgeListResponse)
def get_user_badges(
    user_id: str,
    badges: BadgeService = Depends(get_badge_service),
) -> BadgeListResponse:
    """사용자 보유 뱃지, 최근 획득 순"""
    try:
        listings = badges.get_user_badges(user_id)
    except SQLAlchemyError as e:
        logger.error("Failed to fetch badges of user %s: %s", user_id, e)
        raise HTTPException(status_code=500, detail="Failed to fetch user badges")

    return BadgeListResponse(success=True, data=[badge_info(b) for b in listings])


@router.get(
    "/{badge_id}",
    response_model=BadgeResponse,
    responses={404: {"model": ErrorResponse}},
)
def get_badge(
    badge_id: str,
    user_id: Optional[str] = None,
    badges: BadgeService = Depends(get_badge_service),
) -> BadgeResponse:
    try:
        listing = badges.get_badge(badge_id, user_id)
    except SQLAlchemyError as e:
        logger.error("Failed to fetch badge %s: %s", badge_id, e)
        raise HTTPException(status_code=500, detail="Failed to fetch badge")

    if listing is None:
        raise HTTPException(status_code=404, detail="Badge not found")

    return BadgeResponse(success=True, data=badge_info(listing))
