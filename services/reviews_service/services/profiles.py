"""Lookups against the coach and ensemble identities this service reads."""

import uuid

from services.reviews_service.models import CoachProfile, EnsembleProfile
from services.reviews_service.services.errors import CoachNotFound, EnsembleNotFound
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession


async def get_coach_profile(
    db: AsyncSession, coach_profile_id: uuid.UUID
) -> CoachProfile:
    coach = await db.get(CoachProfile, coach_profile_id)
    if coach is None:
        raise CoachNotFound()
    return coach


async def lock_coach_profile(
    db: AsyncSession, coach_profile_id: uuid.UUID
) -> CoachProfile:
    """Load the coach row with ``SELECT ... FOR UPDATE``.

    Every transaction that adds or removes a coach's canonical reviews takes
    this lock first, so rating recomputations for one coach run one at a time
    and each sees the rows committed before it.
    """
    result = await db.execute(
        select(CoachProfile)
        .where(CoachProfile.id == coach_profile_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    coach = result.scalar_one_or_none()
    if coach is None:
        raise CoachNotFound()
    return coach


async def get_ensemble_profile(
    db: AsyncSession, ensemble_profile_id: uuid.UUID
) -> EnsembleProfile:
    ensemble = await db.get(EnsembleProfile, ensemble_profile_id)
    if ensemble is None:
        raise EnsembleNotFound()
    return ensemble
