"""Skill endorsement ledger."""

import uuid
from typing import Sequence

from libs.common.logging import get_logger
from services.reviews_service.models import CoachSkill, Skill
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


async def endorse_skills(
    db: AsyncSession,
    *,
    coach_profile_id: uuid.UUID,
    skill_names: Sequence[str],
) -> list[str]:
    """Add one endorsement to each named skill on the coach's profile.

    Names match canonical skill names exactly (case-sensitive). Names the
    coach no longer lists are skipped. Each skill is counted at most once per
    call. Does not commit. Returns the matched names.
    """
    names = list(dict.fromkeys(skill_names))
    if not names:
        return []

    result = await db.execute(
        select(CoachSkill.id, Skill.name)
        .join(Skill, Skill.id == CoachSkill.skill_id)
        .where(
            CoachSkill.coach_profile_id == coach_profile_id,
            Skill.name.in_(names),
        )
    )
    matches = result.all()
    if not matches:
        logger.debug(
            "No listed skills matched endorsement for coach %s: %s",
            coach_profile_id,
            names,
        )
        return []

    # Atomic increment; no read-modify-write on the counter.
    await db.execute(
        update(CoachSkill)
        .where(CoachSkill.id.in_([row.id for row in matches]))
        .values(endorsement_count=CoachSkill.endorsement_count + 1)
    )

    matched = [row.name for row in matches]
    skipped = [name for name in names if name not in matched]
    if skipped:
        logger.debug(
            "Skipped endorsements for skills not on coach %s: %s",
            coach_profile_id,
            skipped,
        )
    logger.info("Endorsed %s for coach %s", matched, coach_profile_id)
    return matched
