"""Review invite request/response schemas."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator
from services.reviews_service.models.enums import InviteStatus


class InviteCreateRequest(BaseModel):
    """A coach asks a party for a review.

    Either name a registered ensemble, or give an email and display name for
    a party that may not have an account yet.
    """

    email: Optional[EmailStr] = None
    display_name: Optional[str] = Field(None, min_length=1, max_length=200)
    ensemble_profile_id: Optional[uuid.UUID] = None

    @model_validator(mode="after")
    def require_target(self) -> "InviteCreateRequest":
        if self.ensemble_profile_id is None and not (self.email and self.display_name):
            raise ValueError(
                "Provide ensemble_profile_id, or both email and display_name"
            )
        return self


class InviteReviewSummary(BaseModel):
    rating: int
    review_text: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class InviteResponse(BaseModel):
    id: uuid.UUID
    coach_profile_id: uuid.UUID
    ensemble_email: str
    ensemble_name: str
    ensemble_profile_id: Optional[uuid.UUID] = None
    status: InviteStatus
    expires_at: datetime
    created_at: datetime
    review: Optional[InviteReviewSummary] = None

    model_config = ConfigDict(from_attributes=True)
