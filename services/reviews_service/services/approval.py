"""Coach decisions on unprompted reviews.

Until a decision is recorded the coach sees only who wrote a review and
which session it covers. The rating, text and skills of a pending draft are
never selected on the coach's read paths.
"""

import uuid
from datetime import datetime
from typing import Optional, Union

from libs.common.datetime_utils import utc_now
from libs.common.logging import get_logger
from services.reviews_service.models import (
    EnsembleProfile,
    EnsembleReview,
    EnsembleReviewStatus,
    InviteStatus,
    Review,
    ReviewDecision,
    ReviewInvite,
)
from services.reviews_service.services.endorsements import endorse_skills
from services.reviews_service.services.errors import (
    AlreadyDecided,
    EnsembleReviewNotFound,
    Forbidden,
)
from services.reviews_service.services.invites import invite_expiry, normalize_email
from services.reviews_service.services.profiles import lock_coach_profile
from services.reviews_service.services.rating_aggregator import (
    recompute_coach_rating_safely,
)
from services.reviews_service.services.reviews import load_review
from sqlalchemy import Row, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

# Columns a coach may read from an undecided draft.
_BLIND_COLUMNS = (
    EnsembleReview.id,
    EnsembleReview.ensemble_profile_id,
    EnsembleProfile.ensemble_name,
    EnsembleReview.coach_profile_id,
    EnsembleReview.session_month,
    EnsembleReview.session_year,
    EnsembleReview.session_format,
    EnsembleReview.status,
    EnsembleReview.created_at,
)


def _blind_select():
    return select(*_BLIND_COLUMNS).join(
        EnsembleProfile, EnsembleProfile.id == EnsembleReview.ensemble_profile_id
    )


# ---------------------------------------------------------------------------
# Coach reads
# ---------------------------------------------------------------------------


async def list_pending_for_coach(
    db: AsyncSession, *, coach_profile_id: uuid.UUID
) -> list[Row]:
    result = await db.execute(
        _blind_select()
        .where(
            EnsembleReview.coach_profile_id == coach_profile_id,
            EnsembleReview.status == EnsembleReviewStatus.PENDING,
        )
        .order_by(EnsembleReview.created_at.desc())
    )
    return list(result.all())


async def count_pending_for_coach(
    db: AsyncSession, *, coach_profile_id: uuid.UUID
) -> int:
    count = await db.scalar(
        select(func.count())
        .select_from(EnsembleReview)
        .where(
            EnsembleReview.coach_profile_id == coach_profile_id,
            EnsembleReview.status == EnsembleReviewStatus.PENDING,
        )
    )
    return count or 0


async def get_ensemble_review_for_coach(
    db: AsyncSession,
    *,
    review_id: uuid.UUID,
    coach_profile_id: uuid.UUID,
) -> Union[Row, EnsembleReview]:
    """Read one draft addressed to the coach.

    Returns the blind column row while the draft is pending and the full
    ``EnsembleReview`` once it has been decided.
    """
    header = (
        await db.execute(
            select(EnsembleReview.coach_profile_id, EnsembleReview.status).where(
                EnsembleReview.id == review_id
            )
        )
    ).one_or_none()
    if header is None:
        raise EnsembleReviewNotFound()
    if header.coach_profile_id != coach_profile_id:
        raise Forbidden("This review is addressed to another coach")

    if header.status == EnsembleReviewStatus.PENDING:
        row = (
            await db.execute(_blind_select().where(EnsembleReview.id == review_id))
        ).one_or_none()
        if row is None:
            raise EnsembleReviewNotFound()
        return row
    return await db.get(EnsembleReview, review_id)


# ---------------------------------------------------------------------------
# Decisions
# ---------------------------------------------------------------------------


async def _transition(
    db: AsyncSession,
    review_id: uuid.UUID,
    values: dict,
) -> None:
    """Move a draft out of ``pending``; only one concurrent caller can win."""
    result = await db.execute(
        update(EnsembleReview)
        .where(
            EnsembleReview.id == review_id,
            EnsembleReview.status == EnsembleReviewStatus.PENDING,
        )
        .values(**values)
    )
    if result.rowcount != 1:
        await db.rollback()
        raise AlreadyDecided()


async def decide(
    db: AsyncSession,
    *,
    review_id: uuid.UUID,
    action: ReviewDecision,
    coach_profile_id: uuid.UUID,
    now: Optional[datetime] = None,
) -> tuple[EnsembleReview, Optional[Review]]:
    """Approve or reject a pending draft.

    Approval publishes the draft as a canonical review in the same
    transaction: a completed invite, the review, the endorsements and the
    rating recompute. Returns the draft and the published review (None on
    reject).
    """
    now = now or utc_now()
    result = await db.execute(
        select(EnsembleReview)
        .where(EnsembleReview.id == review_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    draft = result.scalar_one_or_none()
    if draft is None:
        raise EnsembleReviewNotFound()
    if draft.coach_profile_id != coach_profile_id:
        raise Forbidden("This review is addressed to another coach")
    if draft.status != EnsembleReviewStatus.PENDING:
        raise AlreadyDecided()

    action = ReviewDecision(action)
    if action == ReviewDecision.REJECT:
        await _transition(db, review_id, {"status": EnsembleReviewStatus.REJECTED})
        await db.commit()
        logger.info(
            "Coach %s rejected unprompted review %s", coach_profile_id, review_id
        )
        return draft, None

    await lock_coach_profile(db, coach_profile_id)
    await _transition(
        db,
        review_id,
        {"status": EnsembleReviewStatus.APPROVED, "approved_at": now},
    )

    ensemble = draft.ensemble_profile
    invite = ReviewInvite(
        coach_profile_id=coach_profile_id,
        ensemble_email=normalize_email(ensemble.contact_email),
        ensemble_name=ensemble.ensemble_name,
        ensemble_profile_id=ensemble.id,
        status=InviteStatus.COMPLETED,
        expires_at=invite_expiry(now),
    )
    db.add(invite)
    await db.flush()

    review = Review(
        invite_id=invite.id,
        reviewer_id=ensemble.id,
        coach_profile_id=coach_profile_id,
        rating=draft.rating,
        review_text=draft.review_text,
        session_month=draft.session_month,
        session_year=draft.session_year,
        session_format=draft.session_format,
        validated_skills=list(draft.validated_skills),
        created_at=now,
    )
    db.add(review)
    await db.flush()

    await endorse_skills(
        db, coach_profile_id=coach_profile_id, skill_names=draft.validated_skills
    )
    await recompute_coach_rating_safely(db, coach_profile_id)
    await db.commit()

    logger.info(
        "Coach %s approved unprompted review %s as review %s",
        coach_profile_id,
        review_id,
        review.id,
    )
    return draft, await load_review(db, review.id)
