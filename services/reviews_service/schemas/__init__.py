"""Reviews Service schemas package.

Re-exports all schemas so that ``from services.reviews_service.schemas import
ReviewResponse`` works from routers and services alike.

IMPORTANT: Every schema class must be listed here.
"""

from services.reviews_service.schemas.eligibility import (  # noqa: F401
    EligibilityResponse,
    EnsembleEligibilityResponse,
)
from services.reviews_service.schemas.ensemble_review import (  # noqa: F401
    BlindEnsembleReview,
    DecisionRequest,
    DecisionResponse,
    EnsembleReviewResponse,
    EnsembleReviewSubmitRequest,
    EnsembleReviewUpdateRequest,
    PendingCountResponse,
)
from services.reviews_service.schemas.invite import (  # noqa: F401
    InviteCreateRequest,
    InviteResponse,
    InviteReviewSummary,
)
from services.reviews_service.schemas.review import (  # noqa: F401
    AdminDeleteReviewRequest,
    AdminDeleteReviewResponse,
    AdminReviewResponse,
    CoachRatingResponse,
    PublicReviewResponse,
    ReviewContent,
    ReviewFromInviteRequest,
    ReviewResponse,
)

__all__ = [
    # Eligibility
    "EligibilityResponse",
    "EnsembleEligibilityResponse",
    # Unprompted reviews
    "BlindEnsembleReview",
    "DecisionRequest",
    "DecisionResponse",
    "EnsembleReviewResponse",
    "EnsembleReviewSubmitRequest",
    "EnsembleReviewUpdateRequest",
    "PendingCountResponse",
    # Invites
    "InviteCreateRequest",
    "InviteResponse",
    "InviteReviewSummary",
    # Canonical reviews
    "AdminDeleteReviewRequest",
    "AdminDeleteReviewResponse",
    "AdminReviewResponse",
    "CoachRatingResponse",
    "PublicReviewResponse",
    "ReviewContent",
    "ReviewFromInviteRequest",
    "ReviewResponse",
]
