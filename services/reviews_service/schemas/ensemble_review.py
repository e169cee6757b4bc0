"""Unprompted (ensemble-initiated) review schemas.

Two read shapes exist on purpose: the drafter sees everything they wrote,
while the coach sees ``BlindEnsembleReview`` until a decision is recorded.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict
from services.reviews_service.models.enums import (
    EnsembleReviewStatus,
    ReviewDecision,
    SessionFormat,
)
from services.reviews_service.schemas.review import ReviewContent


class EnsembleReviewSubmitRequest(ReviewContent):
    coach_profile_id: uuid.UUID
    ensemble_profile_id: uuid.UUID


class EnsembleReviewUpdateRequest(ReviewContent):
    pass


class EnsembleReviewResponse(BaseModel):
    id: uuid.UUID
    ensemble_profile_id: uuid.UUID
    coach_profile_id: uuid.UUID
    rating: int
    review_text: Optional[str] = None
    session_month: int
    session_year: int
    session_format: SessionFormat
    validated_skills: list[str]
    status: EnsembleReviewStatus
    approved_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BlindEnsembleReview(BaseModel):
    """What a coach may see of an undecided review: who, and which session."""

    id: uuid.UUID
    ensemble_profile_id: uuid.UUID
    ensemble_name: str
    coach_profile_id: uuid.UUID
    session_month: int
    session_year: int
    session_format: SessionFormat
    status: EnsembleReviewStatus
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DecisionRequest(BaseModel):
    action: ReviewDecision


class DecisionResponse(BaseModel):
    id: uuid.UUID
    status: EnsembleReviewStatus
    approved_at: Optional[datetime] = None
    review_id: Optional[uuid.UUID] = None


class PendingCountResponse(BaseModel):
    count: int
