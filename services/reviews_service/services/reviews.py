"""Canonical reviews: the public records that drive a coach's rating."""

import uuid
from datetime import datetime
from typing import Any, Optional, Sequence

from libs.common.datetime_utils import utc_now
from libs.common.logging import get_logger
from services.reviews_service.models import (
    AuditAction,
    CoachProfile,
    InviteStatus,
    Review,
    ReviewAuditLog,
    SessionFormat,
)
from services.reviews_service.schemas import ReviewContent
from services.reviews_service.services.endorsements import endorse_skills
from services.reviews_service.services.errors import (
    InvalidReviewData,
    InviteAlreadyUsed,
    ReviewNotFound,
    Unauthorized,
)
from services.reviews_service.services.invites import (
    check_recipient,
    ensure_open,
    find_open_invite,
    invite_expiry,
    is_stale,
    load_invite,
)
from services.reviews_service.services.profiles import (
    get_coach_profile,
    lock_coach_profile,
)
from services.reviews_service.services.rating_aggregator import (
    recompute_coach_rating,
    recompute_coach_rating_safely,
)
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

MIN_SESSION_YEAR = 2000
MAX_SESSION_YEAR = 2100


# ---------------------------------------------------------------------------
# Content validation
# ---------------------------------------------------------------------------


def validate_review_content(
    content: ReviewContent, now: Optional[datetime] = None
) -> None:
    """Re-check review fields at the service boundary.

    Request schemas already enforce most of this; the service layer is also
    called from scripts and tests with unvalidated models.
    """
    now = now or utc_now()
    problems: list[str] = []

    if not isinstance(content.rating, int) or not 1 <= content.rating <= 5:
        problems.append("rating must be between 1 and 5")
    if not isinstance(content.session_month, int) or not (
        1 <= content.session_month <= 12
    ):
        problems.append("session_month must be between 1 and 12")
    if not isinstance(content.session_year, int) or not (
        MIN_SESSION_YEAR <= content.session_year <= MAX_SESSION_YEAR
    ):
        problems.append(
            f"session_year must be between {MIN_SESSION_YEAR} and {MAX_SESSION_YEAR}"
        )
    try:
        SessionFormat(content.session_format)
    except ValueError:
        problems.append("session_format must be 'in_person' or 'virtual'")
    skills = content.validated_skills
    if not isinstance(skills, list) or not all(
        isinstance(name, str) and name.strip() for name in skills
    ):
        problems.append("validated_skills must be a list of skill names")

    if not problems and (content.session_year, content.session_month) > (
        now.year,
        now.month,
    ):
        problems.append("The session cannot be in the future")

    if problems:
        raise InvalidReviewData("; ".join(problems))


def review_fields(content: ReviewContent) -> dict[str, Any]:
    """Column values shared by ``Review`` and ``EnsembleReview``."""
    return {
        "rating": content.rating,
        "review_text": content.review_text,
        "session_month": content.session_month,
        "session_year": content.session_year,
        "session_format": SessionFormat(content.session_format),
        "validated_skills": list(content.validated_skills),
    }


async def load_review(db: AsyncSession, review_id: uuid.UUID) -> Optional[Review]:
    result = await db.execute(
        select(Review)
        .where(Review.id == review_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


# ---------------------------------------------------------------------------
# Solicited reviews
# ---------------------------------------------------------------------------


async def create_review_from_invite(
    db: AsyncSession,
    *,
    invite_id: uuid.UUID,
    caller_email: Optional[str],
    owned_ensemble_ids: Sequence[uuid.UUID],
    content: ReviewContent,
    now: Optional[datetime] = None,
) -> Review:
    """Answer a coach's invite with a canonical review.

    Completing the invite is the approving event for a solicited review, so
    validated skills are endorsed here.
    """
    now = now or utc_now()
    validate_review_content(content, now)

    invite = await load_invite(db, invite_id)
    check_recipient(invite, caller_email)
    coach_profile_id = invite.coach_profile_id

    # Coach row first, then the invite: the same order every writer uses.
    await lock_coach_profile(db, coach_profile_id)
    invite = await load_invite(db, invite_id, for_update=True)
    check_recipient(invite, caller_email)
    await ensure_open(db, invite, now)

    if not owned_ensemble_ids:
        raise Unauthorized("An ensemble profile is required to leave a review")
    if invite.ensemble_profile_id in owned_ensemble_ids:
        reviewer_id = invite.ensemble_profile_id
    else:
        reviewer_id = owned_ensemble_ids[0]

    review = Review(
        invite_id=invite.id,
        reviewer_id=reviewer_id,
        coach_profile_id=coach_profile_id,
        created_at=now,
        **review_fields(content),
    )
    db.add(review)
    invite.status = InviteStatus.COMPLETED
    invite.ensemble_profile_id = reviewer_id
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise InviteAlreadyUsed()

    await endorse_skills(
        db, coach_profile_id=coach_profile_id, skill_names=content.validated_skills
    )
    await recompute_coach_rating_safely(db, coach_profile_id)
    await db.commit()

    logger.info(
        "Ensemble %s reviewed coach %s via invite %s (rating=%d)",
        reviewer_id,
        coach_profile_id,
        invite.id,
        review.rating,
    )
    return await load_review(db, review.id)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


async def list_reviews_for_coach(
    db: AsyncSession, *, coach_profile_id: uuid.UUID
) -> list[Review]:
    await get_coach_profile(db, coach_profile_id)
    result = await db.execute(
        select(Review)
        .where(Review.coach_profile_id == coach_profile_id)
        .order_by(Review.created_at.desc())
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def list_all_reviews(
    db: AsyncSession, *, limit: int = 100, offset: int = 0
) -> list[Review]:
    result = await db.execute(
        select(Review)
        .order_by(Review.created_at.desc())
        .limit(limit)
        .offset(offset)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Admin operations
# ---------------------------------------------------------------------------


async def delete_review(
    db: AsyncSession,
    *,
    review_id: uuid.UUID,
    admin_user_id: str,
    reason: Optional[str] = None,
    now: Optional[datetime] = None,
) -> CoachProfile:
    """Remove a canonical review and re-open the invite behind it.

    When the coach already has a live invite out to the same address, that
    invite stays the open one and the reviewed invite is marked expired.

    All-or-nothing: the invite reset, the delete, the rating recompute and
    the audit entry commit together or not at all. Returns the coach with
    the recomputed rating.
    """
    now = now or utc_now()
    review = await db.get(Review, review_id)
    if review is None:
        raise ReviewNotFound()

    try:
        coach = await lock_coach_profile(db, review.coach_profile_id)
        result = await db.execute(
            select(Review)
            .where(Review.id == review_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        review = result.scalar_one_or_none()
        if review is None:
            raise ReviewNotFound()

        invite = await load_invite(db, review.invite_id, for_update=True)
        details = {
            "coach_profile_id": str(review.coach_profile_id),
            "reviewer_id": str(review.reviewer_id),
            "invite_id": str(review.invite_id),
            "rating": review.rating,
        }

        # An open invite for the same address already lets the party answer
        # again; reopening this one would break the one-pending rule.
        open_invite = await find_open_invite(
            db,
            coach_profile_id=invite.coach_profile_id,
            email=invite.ensemble_email,
            exclude_id=invite.id,
        )
        if open_invite is not None and is_stale(open_invite, now):
            open_invite.status = InviteStatus.EXPIRED
            await db.flush()
            open_invite = None

        if open_invite is None:
            invite.status = InviteStatus.PENDING
            invite.expires_at = invite_expiry(now)
        else:
            invite.status = InviteStatus.EXPIRED
            details["open_invite_id"] = str(open_invite.id)
        invite.ensemble_profile_id = None
        details["invite_status"] = invite.status.value

        await db.delete(review)
        await db.flush()

        rating, total = await recompute_coach_rating(db, coach.id)
        db.add(
            ReviewAuditLog(
                action=AuditAction.REVIEW_DELETED,
                performed_by=admin_user_id,
                target_type="review",
                target_id=review_id,
                details=details,
                reason=reason,
            )
        )
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(
        "Admin %s deleted review %s; coach %s now %.1f over %d reviews",
        admin_user_id,
        review_id,
        coach.id,
        rating,
        total,
    )
    return coach


async def admin_recompute_coach_rating(
    db: AsyncSession,
    *,
    coach_profile_id: uuid.UUID,
    admin_user_id: str,
) -> CoachProfile:
    """Rebuild a coach's cached rating on demand."""
    coach = await lock_coach_profile(db, coach_profile_id)
    before = {"rating": coach.rating, "total_reviews": coach.total_reviews}
    rating, total = await recompute_coach_rating(db, coach_profile_id)
    db.add(
        ReviewAuditLog(
            action=AuditAction.RATING_RECOMPUTED,
            performed_by=admin_user_id,
            target_type="coach_profile",
            target_id=coach_profile_id,
            details={
                "before": before,
                "after": {"rating": rating, "total_reviews": total},
            },
        )
    )
    await db.commit()
    return coach
