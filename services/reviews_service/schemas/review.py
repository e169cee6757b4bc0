"""Canonical review request/response schemas."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from services.reviews_service.models.enums import SessionFormat

MAX_REVIEW_TEXT_LENGTH = 5000


class ReviewContent(BaseModel):
    """Fields shared by every review submission path."""

    rating: int = Field(..., ge=1, le=5)
    review_text: Optional[str] = Field(None, max_length=MAX_REVIEW_TEXT_LENGTH)
    session_month: int = Field(..., ge=1, le=12)
    session_year: int = Field(..., ge=2000, le=2100)
    session_format: SessionFormat
    validated_skills: list[str] = Field(default_factory=list)

    @field_validator("review_text")
    @classmethod
    def blank_text_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None

    @field_validator("validated_skills")
    @classmethod
    def clean_skill_names(cls, v: list[str]) -> list[str]:
        # Keep first-seen order; names are matched case-sensitively later.
        cleaned: list[str] = []
        for name in v:
            name = name.strip()
            if name and name not in cleaned:
                cleaned.append(name)
        return cleaned


class ReviewFromInviteRequest(ReviewContent):
    """Solicited review submitted against a coach's invite."""

    invite_id: uuid.UUID


class ReviewResponse(BaseModel):
    id: uuid.UUID
    invite_id: uuid.UUID
    reviewer_id: uuid.UUID
    coach_profile_id: uuid.UUID
    rating: int
    review_text: Optional[str] = None
    session_month: int
    session_year: int
    session_format: SessionFormat
    validated_skills: list[str]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PublicReviewResponse(ReviewResponse):
    """Testimonial as shown on a coach's public profile."""

    reviewer_name: str


class AdminReviewResponse(PublicReviewResponse):
    coach_name: str


class CoachRatingResponse(BaseModel):
    coach_profile_id: uuid.UUID
    rating: float
    total_reviews: int


class AdminDeleteReviewRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class AdminDeleteReviewResponse(BaseModel):
    success: bool
    coach: CoachRatingResponse
