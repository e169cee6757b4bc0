"""Coach rating aggregation.

The cached ``rating`` / ``total_reviews`` columns are always rebuilt from the
full set of canonical reviews, never adjusted by a delta, so repeated or
out-of-order recomputations converge on the same value.
"""

import uuid
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from libs.common.config import get_settings
from libs.common.logging import get_logger
from services.reviews_service.models import CoachProfile, Review
from services.reviews_service.services.errors import CoachNotFound
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

_ONE_DECIMAL = Decimal("0.1")


def compute_rating(ratings: Iterable[int]) -> tuple[float, int]:
    """Return ``(mean rounded half-up to one decimal, count)``.

    The empty set yields ``(0.0, 0)``.
    """
    values = list(ratings)
    if not values:
        return 0.0, 0
    mean = Decimal(sum(values)) / Decimal(len(values))
    return float(mean.quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP)), len(values)


async def recompute_coach_rating(
    db: AsyncSession, coach_profile_id: uuid.UUID
) -> tuple[float, int]:
    """Rewrite a coach's rating and review count from the current review rows.

    Runs inside the caller's transaction and does not commit.
    """
    result = await db.execute(
        select(Review.rating).where(Review.coach_profile_id == coach_profile_id)
    )
    rating, total = compute_rating(result.scalars().all())

    written = await db.execute(
        update(CoachProfile)
        .where(CoachProfile.id == coach_profile_id)
        .values(rating=rating, total_reviews=total)
    )
    if written.rowcount == 0:
        raise CoachNotFound()

    logger.info(
        "Recomputed rating for coach %s: %.1f over %d reviews",
        coach_profile_id,
        rating,
        total,
    )
    return rating, total


async def recompute_coach_rating_safely(
    db: AsyncSession,
    coach_profile_id: uuid.UUID,
    *,
    attempts: Optional[int] = None,
) -> bool:
    """Recompute inside a SAVEPOINT, retrying on database errors.

    Used after a review has been written: if aggregation keeps failing the
    review still commits and the displayed rating catches up on the next
    recomputation. Returns False when every attempt failed.
    """
    attempts = attempts or get_settings().RATING_RECOMPUTE_ATTEMPTS
    for attempt in range(1, attempts + 1):
        try:
            async with db.begin_nested():
                await recompute_coach_rating(db, coach_profile_id)
            return True
        except SQLAlchemyError as e:
            logger.warning(
                "Rating recompute for coach %s failed (attempt %d/%d): %s",
                coach_profile_id,
                attempt,
                attempts,
                e,
            )

    logger.error(
        "Giving up on rating recompute for coach %s after %d attempts; "
        "cached rating is stale until the next recompute",
        coach_profile_id,
        attempts,
    )
    return False
