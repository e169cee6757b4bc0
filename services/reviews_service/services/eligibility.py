"""Review eligibility for a caller's ensembles against one coach.

Each owned ensemble is classified on its own, then the most permissive path
wins: an account is never blocked while any of its ensembles may still
review.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional, Sequence

from libs.common.config import get_settings
from libs.common.datetime_utils import add_months, ensure_utc, months_until, utc_now
from services.reviews_service.models import (
    EligibilityStatus,
    EnsembleReview,
    EnsembleReviewStatus,
    Review,
)
from services.reviews_service.services.profiles import get_coach_profile
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession


@dataclass
class EnsembleEligibility:
    status: EligibilityStatus
    cooldown_until: Optional[datetime] = None


@dataclass
class EligibilityResult:
    """Overall status for the caller plus the per-ensemble breakdown.

    ``can_update`` reached through an approved unprompted review is served by
    a coach invite only: the pair's approved draft keeps a new unprompted
    submission out.
    """

    status: EligibilityStatus
    months_left: Optional[int] = None
    ensemble_statuses: dict[uuid.UUID, EnsembleEligibility] = field(
        default_factory=dict
    )


def classify_ensemble(
    *,
    has_pending: bool,
    reviewed_at: Iterable[datetime],
    now: datetime,
    cooldown_months: int,
) -> EnsembleEligibility:
    """Classify one ensemble.

    ``reviewed_at`` holds the timestamps of the ensemble's approved drafts
    and canonical reviews of the coach.
    """
    if has_pending:
        return EnsembleEligibility(EligibilityStatus.PENDING)

    stamps = [ensure_utc(ts) for ts in reviewed_at]
    if not stamps:
        return EnsembleEligibility(EligibilityStatus.CAN_REVIEW)

    cooldown_until = add_months(max(stamps), cooldown_months)
    if cooldown_until > ensure_utc(now):
        return EnsembleEligibility(EligibilityStatus.COOLDOWN, cooldown_until)
    return EnsembleEligibility(EligibilityStatus.CAN_UPDATE)


def aggregate_eligibility(
    statuses: dict[uuid.UUID, EnsembleEligibility], now: datetime
) -> EligibilityResult:
    """Fold per-ensemble statuses into the caller's overall status."""
    if not statuses:
        return EligibilityResult(EligibilityStatus.NO_ENSEMBLE)

    values = [s.status for s in statuses.values()]
    if EligibilityStatus.CAN_UPDATE in values:
        return EligibilityResult(EligibilityStatus.CAN_UPDATE, None, statuses)
    if EligibilityStatus.CAN_REVIEW in values:
        return EligibilityResult(EligibilityStatus.CAN_REVIEW, None, statuses)
    if all(v == EligibilityStatus.PENDING for v in values):
        return EligibilityResult(EligibilityStatus.PENDING, None, statuses)

    cooldowns = [
        s.cooldown_until
        for s in statuses.values()
        if s.status == EligibilityStatus.COOLDOWN and s.cooldown_until is not None
    ]
    if cooldowns:
        months_left = max(1, months_until(now, min(cooldowns)))
        return EligibilityResult(EligibilityStatus.COOLDOWN, months_left, statuses)
    return EligibilityResult(EligibilityStatus.PENDING, None, statuses)


async def check_eligibility(
    db: AsyncSession,
    *,
    owned_ensemble_ids: Sequence[uuid.UUID],
    coach_profile_id: uuid.UUID,
    now: Optional[datetime] = None,
) -> EligibilityResult:
    now = now or utc_now()
    await get_coach_profile(db, coach_profile_id)

    owned = list(dict.fromkeys(owned_ensemble_ids))
    if not owned:
        return EligibilityResult(EligibilityStatus.NO_ENSEMBLE)

    drafts = await db.execute(
        select(
            EnsembleReview.ensemble_profile_id,
            EnsembleReview.status,
            EnsembleReview.approved_at,
            EnsembleReview.created_at,
        ).where(
            EnsembleReview.coach_profile_id == coach_profile_id,
            EnsembleReview.ensemble_profile_id.in_(owned),
            EnsembleReview.status.in_(
                [EnsembleReviewStatus.PENDING, EnsembleReviewStatus.APPROVED]
            ),
        )
    )
    canonical = await db.execute(
        select(Review.reviewer_id, Review.created_at).where(
            Review.coach_profile_id == coach_profile_id,
            Review.reviewer_id.in_(owned),
        )
    )

    pending: set[uuid.UUID] = set()
    reviewed_at: dict[uuid.UUID, list[datetime]] = {eid: [] for eid in owned}
    # Approved drafts count even when an admin has since deleted the review
    # they published; the deleted review's invite is the way back in.
    for row in drafts:
        if row.status == EnsembleReviewStatus.PENDING:
            pending.add(row.ensemble_profile_id)
        else:
            reviewed_at[row.ensemble_profile_id].append(
                row.approved_at or row.created_at
            )
    for row in canonical:
        reviewed_at[row.reviewer_id].append(row.created_at)

    cooldown_months = get_settings().REVIEW_COOLDOWN_MONTHS
    statuses = {
        eid: classify_ensemble(
            has_pending=eid in pending,
            reviewed_at=reviewed_at[eid],
            now=now,
            cooldown_months=cooldown_months,
        )
        for eid in owned
    }
    return aggregate_eligibility(statuses, now)
