"""Review workflow failures.

Each failure is an ``HTTPException`` so the service layer can raise it
directly and FastAPI renders it without a translation step. Tests and
callers can still catch the specific class.
"""

from typing import Optional

from fastapi import HTTPException, status


class ReviewWorkflowError(HTTPException):
    """Base class for every review workflow failure."""

    http_status: int = status.HTTP_400_BAD_REQUEST
    default_detail: str = "Review request could not be processed"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(
            status_code=self.http_status, detail=detail or self.default_detail
        )


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class InvalidReviewData(ReviewWorkflowError):
    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_detail = "Review data is invalid"


class CoachNotApproved(ReviewWorkflowError):
    default_detail = "This coach profile is not yet approved"


# ---------------------------------------------------------------------------
# Authorization
# ---------------------------------------------------------------------------


class Unauthorized(ReviewWorkflowError):
    """The caller lacks the profile identity the operation needs."""

    http_status = status.HTTP_403_FORBIDDEN
    default_detail = "This ensemble profile does not belong to you"


class Forbidden(ReviewWorkflowError):
    """The caller is acting on a record owned by someone else."""

    http_status = status.HTTP_403_FORBIDDEN
    default_detail = "Forbidden"


class SelfReview(ReviewWorkflowError):
    default_detail = "You cannot review your own coach profile"


# ---------------------------------------------------------------------------
# Not found
# ---------------------------------------------------------------------------


class CoachNotFound(ReviewWorkflowError):
    http_status = status.HTTP_404_NOT_FOUND
    default_detail = "Coach not found"


class EnsembleNotFound(ReviewWorkflowError):
    http_status = status.HTTP_404_NOT_FOUND
    default_detail = "Ensemble not found"


class InviteNotFound(ReviewWorkflowError):
    http_status = status.HTTP_404_NOT_FOUND
    default_detail = "Invite not found"


class ReviewNotFound(ReviewWorkflowError):
    http_status = status.HTTP_404_NOT_FOUND
    default_detail = "Review not found"


class EnsembleReviewNotFound(ReviewWorkflowError):
    http_status = status.HTTP_404_NOT_FOUND
    default_detail = "Review not found"


# ---------------------------------------------------------------------------
# State conflicts: surfaced to the caller, never retried blindly
# ---------------------------------------------------------------------------


class DuplicatePending(ReviewWorkflowError):
    http_status = status.HTTP_409_CONFLICT
    default_detail = "A pending invite already exists for this address"


class AlreadyReviewed(ReviewWorkflowError):
    http_status = status.HTTP_409_CONFLICT
    default_detail = "You already have a review for this coach"


class ReviewCooldown(ReviewWorkflowError):
    http_status = status.HTTP_409_CONFLICT

    def __init__(self, months_left: int):
        self.months_left = months_left
        plural = "" if months_left == 1 else "s"
        super().__init__(
            f"You can submit an updated review in {months_left} month{plural}"
        )


class NotEditable(ReviewWorkflowError):
    http_status = status.HTTP_409_CONFLICT
    default_detail = "Only pending reviews can be changed"


class AlreadyDecided(ReviewWorkflowError):
    http_status = status.HTTP_409_CONFLICT
    default_detail = "This review has already been processed"


class InviteAlreadyUsed(ReviewWorkflowError):
    http_status = status.HTTP_409_CONFLICT
    default_detail = "This invite has already been used"


class InviteExpired(ReviewWorkflowError):
    http_status = status.HTTP_410_GONE
    default_detail = "This invite has expired"
