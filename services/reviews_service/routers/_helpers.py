"""Shared response builders for reviews service routers."""

from services.reviews_service.models import CoachProfile, Review
from services.reviews_service.schemas import (
    AdminReviewResponse,
    CoachRatingResponse,
    EligibilityResponse,
    EnsembleEligibilityResponse,
    PublicReviewResponse,
    ReviewResponse,
)
from services.reviews_service.services.eligibility import EligibilityResult


def to_public_review(review: Review) -> PublicReviewResponse:
    """Builds the testimonial shape from eagerly loaded relationships."""
    base = ReviewResponse.model_validate(review)
    return PublicReviewResponse(
        **base.model_dump(), reviewer_name=review.reviewer.ensemble_name
    )


def to_admin_review(review: Review) -> AdminReviewResponse:
    base = to_public_review(review)
    return AdminReviewResponse(
        **base.model_dump(), coach_name=review.coach_profile.display_name
    )


def to_coach_rating(coach: CoachProfile) -> CoachRatingResponse:
    return CoachRatingResponse(
        coach_profile_id=coach.id,
        rating=coach.rating,
        total_reviews=coach.total_reviews,
    )


def to_eligibility_response(result: EligibilityResult) -> EligibilityResponse:
    return EligibilityResponse(
        status=result.status,
        months_left=result.months_left,
        ensemble_statuses={
            ensemble_id: EnsembleEligibilityResponse(
                status=item.status, cooldown_until=item.cooldown_until
            )
            for ensemble_id, item in result.ensemble_statuses.items()
        },
    )
