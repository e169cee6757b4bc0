"""Coach-side endpoints for unprompted reviews awaiting a decision."""

import uuid
from typing import Union

from fastapi import APIRouter, Depends
from libs.auth.dependencies import require_coach
from libs.auth.models import AuthUser
from libs.common.emails.client import get_email_client
from libs.db.session import get_async_db
from services.reviews_service.models import EnsembleReview
from services.reviews_service.schemas import (
    BlindEnsembleReview,
    DecisionRequest,
    DecisionResponse,
    EnsembleReviewResponse,
    PendingCountResponse,
)
from services.reviews_service.services import approval
from services.reviews_service.services.profiles import get_coach_profile
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/reviews/coach", tags=["coach-reviews"])


@router.get("/pending", response_model=list[BlindEnsembleReview])
async def list_pending_reviews(
    current_user: AuthUser = Depends(require_coach),
    db: AsyncSession = Depends(get_async_db),
):
    """Undecided reviews about the caller: reviewer and session only."""
    rows = await approval.list_pending_for_coach(
        db, coach_profile_id=current_user.coach_profile_id
    )
    return [BlindEnsembleReview.model_validate(row) for row in rows]


@router.get("/pending/count", response_model=PendingCountResponse)
async def count_pending_reviews(
    current_user: AuthUser = Depends(require_coach),
    db: AsyncSession = Depends(get_async_db),
):
    count = await approval.count_pending_for_coach(
        db, coach_profile_id=current_user.coach_profile_id
    )
    return PendingCountResponse(count=count)


@router.get(
    "/ensemble-reviews/{review_id}",
    response_model=Union[EnsembleReviewResponse, BlindEnsembleReview],
)
async def get_ensemble_review(
    review_id: uuid.UUID,
    current_user: AuthUser = Depends(require_coach),
    db: AsyncSession = Depends(get_async_db),
):
    """Full content once decided; the blind view while pending."""
    result = await approval.get_ensemble_review_for_coach(
        db, review_id=review_id, coach_profile_id=current_user.coach_profile_id
    )
    if isinstance(result, EnsembleReview):
        return EnsembleReviewResponse.model_validate(result)
    return BlindEnsembleReview.model_validate(result)


@router.post("/ensemble-reviews/{review_id}/decision", response_model=DecisionResponse)
async def decide_ensemble_review(
    review_id: uuid.UUID,
    payload: DecisionRequest,
    current_user: AuthUser = Depends(require_coach),
    db: AsyncSession = Depends(get_async_db),
):
    """Approve (publish) or reject an unprompted review."""
    draft, review = await approval.decide(
        db,
        review_id=review_id,
        action=payload.action,
        coach_profile_id=current_user.coach_profile_id,
    )
    coach = await get_coach_profile(db, current_user.coach_profile_id)

    email_client = get_email_client()
    await email_client.send_template(
        template_type="ensemble_review_decision",
        to_email=draft.ensemble_profile.contact_email,
        template_data={
            "coach_name": coach.display_name,
            "ensemble_name": draft.ensemble_profile.ensemble_name,
            "decision": draft.status.value,
        },
    )

    return DecisionResponse(
        id=draft.id,
        status=draft.status,
        approved_at=draft.approved_at,
        review_id=review.id if review else None,
    )
