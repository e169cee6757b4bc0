"""Solicited review submission and eligibility endpoints."""

import uuid

from fastapi import APIRouter, Depends, Query, status
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.reviews_service.routers._helpers import to_eligibility_response
from services.reviews_service.schemas import (
    EligibilityResponse,
    ReviewFromInviteRequest,
    ReviewResponse,
)
from services.reviews_service.services.eligibility import check_eligibility
from services.reviews_service.services.reviews import create_review_from_invite
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/reviews", tags=["reviews"])


@router.post("", response_model=ReviewResponse, status_code=status.HTTP_201_CREATED)
async def submit_review_from_invite(
    payload: ReviewFromInviteRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Answer an invite with a review that is published immediately."""
    return await create_review_from_invite(
        db,
        invite_id=payload.invite_id,
        caller_email=current_user.email,
        owned_ensemble_ids=current_user.ensemble_profile_ids,
        content=payload,
    )


@router.get("/eligibility", response_model=EligibilityResponse)
async def get_eligibility(
    coach_id: uuid.UUID = Query(...),
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Whether any of the caller's ensembles may review this coach now."""
    result = await check_eligibility(
        db,
        owned_ensemble_ids=current_user.ensemble_profile_ids,
        coach_profile_id=coach_id,
    )
    return to_eligibility_response(result)
