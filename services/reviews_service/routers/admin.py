"""Admin review moderation endpoints."""

import uuid
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.reviews_service.routers._helpers import to_admin_review, to_coach_rating
from services.reviews_service.schemas import (
    AdminDeleteReviewRequest,
    AdminDeleteReviewResponse,
    AdminReviewResponse,
    CoachRatingResponse,
)
from services.reviews_service.services.reviews import (
    admin_recompute_coach_rating,
    delete_review,
    list_all_reviews,
)
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/admin/reviews", tags=["admin-reviews"])


@router.get("", response_model=list[AdminReviewResponse])
async def list_reviews(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """All published reviews, newest first."""
    reviews = await list_all_reviews(db, limit=limit, offset=skip)
    return [to_admin_review(review) for review in reviews]


@router.delete("/{review_id}", response_model=AdminDeleteReviewResponse)
async def delete_review_admin(
    review_id: uuid.UUID,
    payload: Optional[AdminDeleteReviewRequest] = Body(None),
    admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Remove a review, re-open its invite and recompute the coach's rating."""
    coach = await delete_review(
        db,
        review_id=review_id,
        admin_user_id=admin.user_id,
        reason=payload.reason if payload else None,
    )
    return AdminDeleteReviewResponse(success=True, coach=to_coach_rating(coach))


@router.post("/coaches/{coach_id}/recompute", response_model=CoachRatingResponse)
async def recompute_coach_rating(
    coach_id: uuid.UUID,
    admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    coach = await admin_recompute_coach_rating(
        db, coach_profile_id=coach_id, admin_user_id=admin.user_id
    )
    return to_coach_rating(coach)
