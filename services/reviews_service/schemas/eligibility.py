"""Review eligibility schemas."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field
from services.reviews_service.models.enums import EligibilityStatus


class EnsembleEligibilityResponse(BaseModel):
    status: EligibilityStatus
    cooldown_until: Optional[datetime] = None


class EligibilityResponse(BaseModel):
    status: EligibilityStatus = Field(
        ...,
        description=(
            "can_update after an approved unprompted review means the next "
            "review goes through a coach invite"
        )
    )
    months_left: Optional[int] = None
    ensemble_statuses: dict[uuid.UUID, EnsembleEligibilityResponse] = {}
