"""Review invites: coach-issued solicitations with lazy expiry."""

import uuid
from datetime import datetime, timedelta
from typing import Optional

from libs.common.config import get_settings
from libs.common.datetime_utils import ensure_utc, utc_now
from libs.common.logging import get_logger
from services.reviews_service.models import InviteStatus, ReviewInvite
from services.reviews_service.services.errors import (
    DuplicatePending,
    Forbidden,
    InvalidReviewData,
    InviteAlreadyUsed,
    InviteExpired,
    InviteNotFound,
    SelfReview,
)
from services.reviews_service.services.profiles import (
    get_coach_profile,
    get_ensemble_profile,
)
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def invite_expiry(now: Optional[datetime] = None) -> datetime:
    """Expiry timestamp for an invite issued (or re-opened) at ``now``."""
    now = now or utc_now()
    return now + timedelta(days=get_settings().REVIEW_INVITE_TTL_DAYS)


def is_stale(invite: ReviewInvite, now: datetime) -> bool:
    """A pending invite whose expiry has passed but is not yet marked expired."""
    return invite.status == InviteStatus.PENDING and ensure_utc(
        invite.expires_at
    ) <= ensure_utc(now)


async def load_invite(
    db: AsyncSession, invite_id: uuid.UUID, *, for_update: bool = False
) -> Optional[ReviewInvite]:
    stmt = (
        select(ReviewInvite)
        .where(ReviewInvite.id == invite_id)
        .execution_options(populate_existing=True)
    )
    if for_update:
        stmt = stmt.with_for_update()
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


def check_recipient(invite: Optional[ReviewInvite], email: Optional[str]) -> None:
    """Raise unless ``invite`` exists and is addressed to ``email``."""
    if invite is None:
        raise InviteNotFound()
    if not email or normalize_email(email) != invite.ensemble_email:
        raise Forbidden("This invite is addressed to someone else")


async def ensure_open(
    db: AsyncSession, invite: ReviewInvite, now: Optional[datetime] = None
) -> None:
    """Raise unless the invite can still be answered.

    A stale pending invite is persisted as expired before ``InviteExpired``
    is raised.
    """
    now = now or utc_now()
    if is_stale(invite, now):
        invite.status = InviteStatus.EXPIRED
        await db.commit()
        logger.info("Invite %s expired on read", invite.id)
        raise InviteExpired()
    if invite.status == InviteStatus.EXPIRED:
        raise InviteExpired()
    if invite.status != InviteStatus.PENDING:
        raise InviteAlreadyUsed()


async def find_open_invite(
    db: AsyncSession,
    *,
    coach_profile_id: uuid.UUID,
    email: str,
    exclude_id: Optional[uuid.UUID] = None,
) -> Optional[ReviewInvite]:
    """Lock and return the coach's pending invite for ``email``, if any."""
    query = select(ReviewInvite).where(
        ReviewInvite.coach_profile_id == coach_profile_id,
        ReviewInvite.ensemble_email == email,
        ReviewInvite.status == InviteStatus.PENDING,
    )
    if exclude_id is not None:
        query = query.where(ReviewInvite.id != exclude_id)
    result = await db.execute(query.with_for_update())
    return result.scalar_one_or_none()


# ---------------------------------------------------------------------------
# Coach side
# ---------------------------------------------------------------------------


async def create_invite(
    db: AsyncSession,
    *,
    coach_profile_id: uuid.UUID,
    email: Optional[str] = None,
    display_name: Optional[str] = None,
    ensemble_profile_id: Optional[uuid.UUID] = None,
    now: Optional[datetime] = None,
) -> ReviewInvite:
    """Issue a pending invite from a coach to an ensemble.

    When ``ensemble_profile_id`` is given the address and name come from the
    ensemble profile and the invite is bound to it.
    """
    now = now or utc_now()
    coach = await get_coach_profile(db, coach_profile_id)

    if ensemble_profile_id is not None:
        ensemble = await get_ensemble_profile(db, ensemble_profile_id)
        if ensemble.user_id == coach.user_id:
            raise SelfReview("You cannot invite your own ensemble")
        email = ensemble.contact_email
        display_name = display_name or ensemble.ensemble_name

    if not email or not display_name:
        raise InvalidReviewData("An email address and display name are required")
    email = normalize_email(email)

    existing = await find_open_invite(
        db, coach_profile_id=coach_profile_id, email=email
    )
    if existing is not None:
        if not is_stale(existing, now):
            raise DuplicatePending()
        existing.status = InviteStatus.EXPIRED
        await db.flush()
        logger.info("Expired stale invite %s before re-inviting", existing.id)

    invite = ReviewInvite(
        coach_profile_id=coach_profile_id,
        ensemble_email=email,
        ensemble_name=display_name,
        ensemble_profile_id=ensemble_profile_id,
        status=InviteStatus.PENDING,
        expires_at=invite_expiry(now),
    )
    db.add(invite)
    try:
        await db.flush()
    except IntegrityError:
        # Lost the race against a concurrent invite for the same address.
        await db.rollback()
        raise DuplicatePending()

    await db.commit()
    logger.info(
        "Coach %s invited %s to review (invite %s)",
        coach_profile_id,
        email,
        invite.id,
    )
    return await load_invite(db, invite.id)


async def list_invites(
    db: AsyncSession,
    *,
    coach_profile_id: uuid.UUID,
    now: Optional[datetime] = None,
) -> list[ReviewInvite]:
    """All invites a coach has issued, newest first."""
    now = now or utc_now()
    expired = await db.execute(
        update(ReviewInvite)
        .where(
            ReviewInvite.coach_profile_id == coach_profile_id,
            ReviewInvite.status == InviteStatus.PENDING,
            ReviewInvite.expires_at <= now,
        )
        .values(status=InviteStatus.EXPIRED)
        .execution_options(synchronize_session=False)
    )
    if expired.rowcount:
        await db.commit()
        logger.info(
            "Expired %d stale invites for coach %s", expired.rowcount, coach_profile_id
        )

    result = await db.execute(
        select(ReviewInvite)
        .where(ReviewInvite.coach_profile_id == coach_profile_id)
        .order_by(ReviewInvite.created_at.desc())
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Recipient side
# ---------------------------------------------------------------------------


async def list_pending_invites_for_email(
    db: AsyncSession,
    *,
    email: str,
    now: Optional[datetime] = None,
) -> list[ReviewInvite]:
    now = now or utc_now()
    result = await db.execute(
        select(ReviewInvite)
        .where(
            ReviewInvite.ensemble_email == normalize_email(email),
            ReviewInvite.status == InviteStatus.PENDING,
            ReviewInvite.expires_at > now,
        )
        .order_by(ReviewInvite.created_at.desc())
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def get_invite_for_recipient(
    db: AsyncSession,
    *,
    invite_id: uuid.UUID,
    email: Optional[str],
    now: Optional[datetime] = None,
) -> ReviewInvite:
    invite = await load_invite(db, invite_id)
    check_recipient(invite, email)
    await ensure_open(db, invite, now)
    return invite


async def decline_invite(
    db: AsyncSession,
    *,
    invite_id: uuid.UUID,
    email: Optional[str],
    now: Optional[datetime] = None,
) -> ReviewInvite:
    invite = await load_invite(db, invite_id, for_update=True)
    check_recipient(invite, email)
    await ensure_open(db, invite, now)

    invite.status = InviteStatus.DECLINED
    await db.commit()
    logger.info("Invite %s declined by %s", invite.id, invite.ensemble_email)
    return invite
