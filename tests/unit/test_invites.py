"""Unit tests for review invites and their lazy expiry."""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from services.reviews_service.models import InviteStatus, ReviewInvite
from services.reviews_service.services import invites as invites_module
from services.reviews_service.services.errors import (
    DuplicatePending,
    Forbidden,
    InvalidReviewData,
    InviteAlreadyUsed,
    InviteExpired,
    InviteNotFound,
    SelfReview,
)
from services.reviews_service.services.invites import (
    create_invite,
    decline_invite,
    get_invite_for_recipient,
    list_invites,
    list_pending_invites_for_email,
    normalize_email,
)
from sqlalchemy import select
from tests.factories import (
    CoachProfileFactory,
    EnsembleProfileFactory,
    InviteFactory,
    persist,
)

NOW = datetime(2025, 6, 15, 12, tzinfo=timezone.utc)


async def _coach(db, **overrides):
    coach = CoachProfileFactory.create(**overrides)
    await persist(db, coach)
    return coach


async def _status(db, invite_id):
    return (
        await db.execute(
            select(ReviewInvite.status).where(ReviewInvite.id == invite_id)
        )
    ).scalar_one()


@pytest.mark.unit
def test_normalize_email():
    assert normalize_email("  Choir@Example.COM ") == "choir@example.com"


# ---------------------------------------------------------------------------
# create_invite
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_create_invite_by_email(db_session):
    coach = await _coach(db_session)

    invite = await create_invite(
        db_session,
        coach_profile_id=coach.id,
        email="Choir@Example.com",
        display_name="Riverside Choir",
        now=NOW,
    )

    assert invite.status == InviteStatus.PENDING
    assert invite.ensemble_email == "choir@example.com"
    assert invite.ensemble_name == "Riverside Choir"
    assert invite.ensemble_profile_id is None
    assert invite.expires_at.replace(tzinfo=timezone.utc) == NOW + timedelta(days=90)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_create_invite_for_ensemble_profile(db_session):
    coach = await _coach(db_session)
    ensemble = EnsembleProfileFactory.create(
        contact_email="Director@Chorus.org", ensemble_name="City Chorus"
    )
    await persist(db_session, ensemble)

    invite = await create_invite(
        db_session,
        coach_profile_id=coach.id,
        ensemble_profile_id=ensemble.id,
        now=NOW,
    )

    assert invite.ensemble_email == "director@chorus.org"
    assert invite.ensemble_name == "City Chorus"
    assert invite.ensemble_profile_id == ensemble.id


@pytest.mark.asyncio
@pytest.mark.unit
async def test_create_invite_requires_address_and_name(db_session):
    coach = await _coach(db_session)

    with pytest.raises(InvalidReviewData):
        await create_invite(
            db_session, coach_profile_id=coach.id, email="a@b.com", now=NOW
        )


@pytest.mark.asyncio
@pytest.mark.unit
async def test_create_invite_rejects_own_ensemble(db_session):
    coach = await _coach(db_session, user_id="user-1")
    ensemble = EnsembleProfileFactory.create(user_id="user-1")
    await persist(db_session, ensemble)

    with pytest.raises(SelfReview):
        await create_invite(
            db_session,
            coach_profile_id=coach.id,
            ensemble_profile_id=ensemble.id,
            now=NOW,
        )


@pytest.mark.asyncio
@pytest.mark.unit
async def test_create_invite_rejects_duplicate_pending(db_session):
    coach = await _coach(db_session)
    await create_invite(
        db_session,
        coach_profile_id=coach.id,
        email="choir@example.com",
        display_name="Choir",
        now=NOW,
    )

    with pytest.raises(DuplicatePending):
        await create_invite(
            db_session,
            coach_profile_id=coach.id,
            email=" CHOIR@example.com",
            display_name="Choir",
            now=NOW + timedelta(days=1),
        )


@pytest.mark.asyncio
@pytest.mark.unit
async def test_create_invite_loses_concurrent_race(db_session, monkeypatch):
    coach = await _coach(db_session)
    real_find_open_invite = invites_module.find_open_invite

    async def _find_then_competing_invite(db, **kwargs):
        found = await real_find_open_invite(db, **kwargs)
        # Another request commits its invite right after this lookup.
        db.add(
            InviteFactory.create(
                coach_profile_id=coach.id,
                ensemble_email="choir@example.com",
                expires_at=NOW + timedelta(days=90),
            )
        )
        await db.commit()
        return found

    monkeypatch.setattr(
        invites_module, "find_open_invite", _find_then_competing_invite
    )

    with pytest.raises(DuplicatePending):
        await create_invite(
            db_session,
            coach_profile_id=coach.id,
            email="choir@example.com",
            display_name="Choir",
            now=NOW,
        )

    statuses = (
        await db_session.execute(
            select(ReviewInvite.status).where(
                ReviewInvite.coach_profile_id == coach.id
            )
        )
    ).scalars().all()
    assert statuses == [InviteStatus.PENDING]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_create_invite_replaces_stale_pending(db_session):
    coach = await _coach(db_session)
    first = await create_invite(
        db_session,
        coach_profile_id=coach.id,
        email="choir@example.com",
        display_name="Choir",
        now=NOW,
    )

    second = await create_invite(
        db_session,
        coach_profile_id=coach.id,
        email="choir@example.com",
        display_name="Choir",
        now=NOW + timedelta(days=91),
    )

    assert second.id != first.id
    assert second.status == InviteStatus.PENDING
    assert await _status(db_session, first.id) == InviteStatus.EXPIRED


@pytest.mark.asyncio
@pytest.mark.unit
async def test_create_invite_same_email_for_another_coach(db_session):
    coach = await _coach(db_session)
    other = await _coach(db_session)
    for coach_id in (coach.id, other.id):
        await create_invite(
            db_session,
            coach_profile_id=coach_id,
            email="choir@example.com",
            display_name="Choir",
            now=NOW,
        )

    pending = await list_pending_invites_for_email(
        db_session, email="choir@example.com", now=NOW
    )
    assert {i.coach_profile_id for i in pending} == {coach.id, other.id}


# ---------------------------------------------------------------------------
# list_invites
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_list_invites_expires_stale_rows(db_session):
    coach = await _coach(db_session)
    stale = InviteFactory.create(
        coach_profile_id=coach.id,
        expires_at=NOW - timedelta(days=1),
        created_at=NOW - timedelta(days=91),
    )
    fresh = InviteFactory.create(
        coach_profile_id=coach.id,
        expires_at=NOW + timedelta(days=30),
        created_at=NOW - timedelta(days=60),
    )
    await persist(db_session, stale, fresh)

    invites = await list_invites(db_session, coach_profile_id=coach.id, now=NOW)

    assert [i.id for i in invites] == [fresh.id, stale.id]
    assert invites[0].status == InviteStatus.PENDING
    assert invites[1].status == InviteStatus.EXPIRED
    assert await _status(db_session, stale.id) == InviteStatus.EXPIRED


@pytest.mark.asyncio
@pytest.mark.unit
async def test_list_pending_for_email_hides_stale(db_session):
    coach = await _coach(db_session)
    stale = InviteFactory.create(
        coach_profile_id=coach.id,
        ensemble_email="choir@example.com",
        expires_at=NOW - timedelta(seconds=1),
    )
    await persist(db_session, stale)

    assert (
        await list_pending_invites_for_email(
            db_session, email="Choir@example.com", now=NOW
        )
        == []
    )


# ---------------------------------------------------------------------------
# Recipient reads and decline
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_get_invite_checks_recipient(db_session):
    coach = await _coach(db_session)
    invite = InviteFactory.create(
        coach_profile_id=coach.id, ensemble_email="choir@example.com"
    )
    await persist(db_session, invite)

    found = await get_invite_for_recipient(
        db_session, invite_id=invite.id, email="CHOIR@example.com", now=NOW
    )
    assert found.id == invite.id

    with pytest.raises(Forbidden):
        await get_invite_for_recipient(
            db_session, invite_id=invite.id, email="else@example.com", now=NOW
        )
    with pytest.raises(InviteNotFound):
        await get_invite_for_recipient(
            db_session, invite_id=uuid.uuid4(), email="choir@example.com", now=NOW
        )


@pytest.mark.asyncio
@pytest.mark.unit
async def test_get_stale_invite_expires_it(db_session):
    coach = await _coach(db_session)
    invite = InviteFactory.create(
        coach_profile_id=coach.id,
        ensemble_email="choir@example.com",
        expires_at=NOW - timedelta(days=1),
    )
    await persist(db_session, invite)

    with pytest.raises(InviteExpired):
        await get_invite_for_recipient(
            db_session, invite_id=invite.id, email="choir@example.com", now=NOW
        )
    assert await _status(db_session, invite.id) == InviteStatus.EXPIRED

    # Already expired: still gone.
    with pytest.raises(InviteExpired):
        await get_invite_for_recipient(
            db_session, invite_id=invite.id, email="choir@example.com", now=NOW
        )


@pytest.mark.asyncio
@pytest.mark.unit
async def test_decline_closes_invite(db_session):
    coach = await _coach(db_session)
    invite = InviteFactory.create(
        coach_profile_id=coach.id, ensemble_email="choir@example.com"
    )
    await persist(db_session, invite)

    declined = await decline_invite(
        db_session, invite_id=invite.id, email="choir@example.com", now=NOW
    )

    assert declined.status == InviteStatus.DECLINED
    with pytest.raises(InviteAlreadyUsed):
        await decline_invite(
            db_session, invite_id=invite.id, email="choir@example.com", now=NOW
        )


@pytest.mark.asyncio
@pytest.mark.unit
async def test_declined_invite_frees_the_address(db_session):
    coach = await _coach(db_session)
    invite = await create_invite(
        db_session,
        coach_profile_id=coach.id,
        email="choir@example.com",
        display_name="Choir",
        now=NOW,
    )
    await decline_invite(
        db_session, invite_id=invite.id, email="choir@example.com", now=NOW
    )

    again = await create_invite(
        db_session,
        coach_profile_id=coach.id,
        email="choir@example.com",
        display_name="Choir",
        now=NOW,
    )
    assert again.status == InviteStatus.PENDING
