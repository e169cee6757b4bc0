"""Unprompted reviews drafted by an ensemble and held for the coach's decision."""

import uuid
from datetime import datetime
from typing import Optional, Sequence

from libs.common.config import get_settings
from libs.common.datetime_utils import add_months, ensure_utc, months_until, utc_now
from libs.common.logging import get_logger
from services.reviews_service.models import EnsembleReview, EnsembleReviewStatus, Review
from services.reviews_service.schemas import ReviewContent
from services.reviews_service.services.errors import (
    AlreadyReviewed,
    CoachNotApproved,
    EnsembleReviewNotFound,
    Forbidden,
    NotEditable,
    ReviewCooldown,
    SelfReview,
    Unauthorized,
)
from services.reviews_service.services.profiles import get_coach_profile
from services.reviews_service.services.reviews import (
    review_fields,
    validate_review_content,
)
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

_ACTIVE_STATUSES = (EnsembleReviewStatus.PENDING, EnsembleReviewStatus.APPROVED)


async def _load_own_draft(
    db: AsyncSession,
    review_id: uuid.UUID,
    owned_ensemble_ids: Sequence[uuid.UUID],
    *,
    for_update: bool = False,
) -> EnsembleReview:
    stmt = (
        select(EnsembleReview)
        .where(EnsembleReview.id == review_id)
        .execution_options(populate_existing=True)
    )
    if for_update:
        stmt = stmt.with_for_update()
    result = await db.execute(stmt)
    draft = result.scalar_one_or_none()
    if draft is None:
        raise EnsembleReviewNotFound()
    if draft.ensemble_profile_id not in owned_ensemble_ids:
        raise Forbidden("This review belongs to another ensemble")
    return draft


# ---------------------------------------------------------------------------
# Submission
# ---------------------------------------------------------------------------


async def _pair_drafts(
    db: AsyncSession, ensemble_profile_id: uuid.UUID, coach_profile_id: uuid.UUID
) -> list[EnsembleReview]:
    """Lock every draft of the pair, newest first."""
    result = await db.execute(
        select(EnsembleReview)
        .where(
            EnsembleReview.ensemble_profile_id == ensemble_profile_id,
            EnsembleReview.coach_profile_id == coach_profile_id,
        )
        .order_by(EnsembleReview.created_at.desc())
        .with_for_update()
    )
    return list(result.scalars().all())


async def submit_ensemble_review(
    db: AsyncSession,
    *,
    caller_user_id: str,
    owned_ensemble_ids: Sequence[uuid.UUID],
    ensemble_profile_id: uuid.UUID,
    coach_profile_id: uuid.UUID,
    content: ReviewContent,
    now: Optional[datetime] = None,
) -> EnsembleReview:
    """Submit an unprompted review for the coach to approve or reject.

    A previously rejected draft for the same (ensemble, coach) pair is
    reused in place, so the pair never accumulates rows.
    """
    now = now or utc_now()
    validate_review_content(content, now)

    if ensemble_profile_id not in owned_ensemble_ids:
        raise Unauthorized()
    coach = await get_coach_profile(db, coach_profile_id)
    if not coach.approved:
        raise CoachNotApproved()
    if coach.user_id == caller_user_id:
        raise SelfReview()

    existing = await _pair_drafts(db, ensemble_profile_id, coach_profile_id)
    if any(row.status in _ACTIVE_STATUSES for row in existing):
        raise AlreadyReviewed()

    last_review_at = await db.scalar(
        select(func.max(Review.created_at)).where(
            Review.reviewer_id == ensemble_profile_id,
            Review.coach_profile_id == coach_profile_id,
        )
    )
    if last_review_at is not None:
        cooldown_until = add_months(
            ensure_utc(last_review_at), get_settings().REVIEW_COOLDOWN_MONTHS
        )
        if cooldown_until > now:
            raise ReviewCooldown(max(1, months_until(now, cooldown_until)))

    fields = review_fields(content)
    if existing:
        draft = existing[0]
        for key, value in fields.items():
            setattr(draft, key, value)
        draft.status = EnsembleReviewStatus.PENDING
        draft.approved_at = None
        draft.created_at = now
        action = "Resubmitted"
    else:
        draft = EnsembleReview(
            ensemble_profile_id=ensemble_profile_id,
            coach_profile_id=coach_profile_id,
            status=EnsembleReviewStatus.PENDING,
            created_at=now,
            **fields,
        )
        db.add(draft)
        action = "Submitted"

    try:
        await db.flush()
    except IntegrityError:
        # A concurrent submission for the same pair won the partial index.
        await db.rollback()
        raise AlreadyReviewed()

    await db.commit()
    logger.info(
        "%s unprompted review %s from ensemble %s for coach %s",
        action,
        draft.id,
        ensemble_profile_id,
        coach_profile_id,
    )
    return draft


# ---------------------------------------------------------------------------
# Drafter edits
# ---------------------------------------------------------------------------


async def update_ensemble_review(
    db: AsyncSession,
    *,
    review_id: uuid.UUID,
    owned_ensemble_ids: Sequence[uuid.UUID],
    content: ReviewContent,
    now: Optional[datetime] = None,
) -> EnsembleReview:
    validate_review_content(content, now)
    draft = await _load_own_draft(db, review_id, owned_ensemble_ids, for_update=True)
    if draft.status != EnsembleReviewStatus.PENDING:
        raise NotEditable()

    for key, value in review_fields(content).items():
        setattr(draft, key, value)
    await db.commit()
    logger.info("Updated unprompted review %s", draft.id)
    return draft


async def recall_ensemble_review(
    db: AsyncSession,
    *,
    review_id: uuid.UUID,
    owned_ensemble_ids: Sequence[uuid.UUID],
) -> None:
    """Withdraw a draft before the coach decides on it."""
    draft = await _load_own_draft(db, review_id, owned_ensemble_ids, for_update=True)
    if draft.status != EnsembleReviewStatus.PENDING:
        raise NotEditable()

    await db.delete(draft)
    await db.commit()
    logger.info(
        "Recalled unprompted review %s for coach %s", review_id, draft.coach_profile_id
    )


# ---------------------------------------------------------------------------
# Drafter reads
# ---------------------------------------------------------------------------


async def list_my_ensemble_reviews(
    db: AsyncSession, *, owned_ensemble_ids: Sequence[uuid.UUID]
) -> list[EnsembleReview]:
    if not owned_ensemble_ids:
        return []
    result = await db.execute(
        select(EnsembleReview)
        .where(EnsembleReview.ensemble_profile_id.in_(list(owned_ensemble_ids)))
        .order_by(EnsembleReview.created_at.desc())
    )
    return list(result.scalars().all())


async def get_my_ensemble_review(
    db: AsyncSession,
    *,
    review_id: uuid.UUID,
    owned_ensemble_ids: Sequence[uuid.UUID],
) -> EnsembleReview:
    return await _load_own_draft(db, review_id, owned_ensemble_ids)
