"""Unprompted review endpoints for the drafting ensemble."""

import uuid

from fastapi import APIRouter, Depends, status
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.reviews_service.schemas import (
    EnsembleReviewResponse,
    EnsembleReviewSubmitRequest,
    EnsembleReviewUpdateRequest,
)
from services.reviews_service.services import ensemble_reviews as draft_service
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/reviews/ensemble", tags=["ensemble-reviews"])


@router.post(
    "", response_model=EnsembleReviewResponse, status_code=status.HTTP_201_CREATED
)
async def submit_ensemble_review(
    payload: EnsembleReviewSubmitRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Submit an unprompted review; the coach decides whether to publish it."""
    return await draft_service.submit_ensemble_review(
        db,
        caller_user_id=current_user.user_id,
        owned_ensemble_ids=current_user.ensemble_profile_ids,
        ensemble_profile_id=payload.ensemble_profile_id,
        coach_profile_id=payload.coach_profile_id,
        content=payload,
    )


@router.get("", response_model=list[EnsembleReviewResponse])
async def list_my_ensemble_reviews(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await draft_service.list_my_ensemble_reviews(
        db, owned_ensemble_ids=current_user.ensemble_profile_ids
    )


@router.get("/{review_id}", response_model=EnsembleReviewResponse)
async def get_my_ensemble_review(
    review_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await draft_service.get_my_ensemble_review(
        db, review_id=review_id, owned_ensemble_ids=current_user.ensemble_profile_ids
    )


@router.put("/{review_id}", response_model=EnsembleReviewResponse)
async def update_ensemble_review(
    review_id: uuid.UUID,
    payload: EnsembleReviewUpdateRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Edit a draft while it is still pending."""
    return await draft_service.update_ensemble_review(
        db,
        review_id=review_id,
        owned_ensemble_ids=current_user.ensemble_profile_ids,
        content=payload,
    )


@router.delete("/{review_id}")
async def recall_ensemble_review(
    review_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Withdraw a pending draft."""
    await draft_service.recall_ensemble_review(
        db, review_id=review_id, owned_ensemble_ids=current_user.ensemble_profile_ids
    )
    return {"success": True}
