"""Public testimonial endpoints (no authentication)."""

import uuid

from fastapi import APIRouter, Depends
from libs.db.session import get_async_db
from services.reviews_service.routers._helpers import to_public_review
from services.reviews_service.schemas import PublicReviewResponse
from services.reviews_service.services.reviews import list_reviews_for_coach
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/coaches", tags=["public-reviews"])


@router.get("/{coach_id}/reviews", response_model=list[PublicReviewResponse])
async def get_coach_reviews(
    coach_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_db),
):
    """Published reviews for a coach, newest first."""
    reviews = await list_reviews_for_coach(db, coach_profile_id=coach_id)
    return [to_public_review(review) for review in reviews]
