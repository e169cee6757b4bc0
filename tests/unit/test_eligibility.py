"""Unit tests for review eligibility.

Classification and aggregation are pure functions; ``check_eligibility`` is
exercised against the database with an explicit ``now``.
"""

import uuid
from datetime import datetime, timezone

import pytest
from libs.common.datetime_utils import add_months
from services.reviews_service.models import (
    EligibilityStatus,
    EnsembleReviewStatus,
    InviteStatus,
)
from services.reviews_service.services.eligibility import (
    EnsembleEligibility,
    aggregate_eligibility,
    check_eligibility,
    classify_ensemble,
)
from services.reviews_service.services.errors import CoachNotFound
from tests.factories import (
    CoachProfileFactory,
    EnsembleProfileFactory,
    EnsembleReviewFactory,
    InviteFactory,
    ReviewFactory,
    persist,
)

NOW = datetime(2025, 6, 15, 12, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# classify_ensemble
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_classify_pending_wins_over_history():
    result = classify_ensemble(
        has_pending=True,
        reviewed_at=[add_months(NOW, -1)],
        now=NOW,
        cooldown_months=9,
    )
    assert result.status == EligibilityStatus.PENDING


@pytest.mark.unit
def test_classify_no_history_can_review():
    result = classify_ensemble(
        has_pending=False, reviewed_at=[], now=NOW, cooldown_months=9
    )
    assert result.status == EligibilityStatus.CAN_REVIEW
    assert result.cooldown_until is None


@pytest.mark.unit
def test_classify_recent_review_is_cooling_down():
    reviewed = add_months(NOW, -2)
    result = classify_ensemble(
        has_pending=False, reviewed_at=[reviewed], now=NOW, cooldown_months=9
    )
    assert result.status == EligibilityStatus.COOLDOWN
    assert result.cooldown_until == add_months(reviewed, 9)


@pytest.mark.unit
def test_classify_uses_most_recent_stamp():
    result = classify_ensemble(
        has_pending=False,
        reviewed_at=[add_months(NOW, -20), add_months(NOW, -3)],
        now=NOW,
        cooldown_months=9,
    )
    assert result.status == EligibilityStatus.COOLDOWN


@pytest.mark.unit
def test_classify_old_review_can_update():
    result = classify_ensemble(
        has_pending=False,
        reviewed_at=[add_months(NOW, -10)],
        now=NOW,
        cooldown_months=9,
    )
    assert result.status == EligibilityStatus.CAN_UPDATE


@pytest.mark.unit
def test_classify_cooldown_ends_exactly_at_boundary():
    result = classify_ensemble(
        has_pending=False,
        reviewed_at=[add_months(NOW, -9)],
        now=NOW,
        cooldown_months=9,
    )
    assert result.status == EligibilityStatus.CAN_UPDATE


@pytest.mark.unit
def test_classify_accepts_naive_stamps():
    naive = add_months(NOW, -1).replace(tzinfo=None)
    result = classify_ensemble(
        has_pending=False, reviewed_at=[naive], now=NOW, cooldown_months=9
    )
    assert result.status == EligibilityStatus.COOLDOWN


# ---------------------------------------------------------------------------
# aggregate_eligibility
# ---------------------------------------------------------------------------


def _statuses(*entries):
    return {uuid.uuid4(): entry for entry in entries}


@pytest.mark.unit
def test_aggregate_empty_is_no_ensemble():
    assert aggregate_eligibility({}, NOW).status == EligibilityStatus.NO_ENSEMBLE


@pytest.mark.unit
def test_aggregate_most_permissive_wins():
    statuses = _statuses(
        EnsembleEligibility(EligibilityStatus.PENDING),
        EnsembleEligibility(EligibilityStatus.CAN_REVIEW),
        EnsembleEligibility(EligibilityStatus.CAN_UPDATE),
    )
    result = aggregate_eligibility(statuses, NOW)
    assert result.status == EligibilityStatus.CAN_UPDATE
    assert result.months_left is None
    assert result.ensemble_statuses == statuses


@pytest.mark.unit
def test_aggregate_can_review_beats_cooldown():
    statuses = _statuses(
        EnsembleEligibility(EligibilityStatus.COOLDOWN, add_months(NOW, 3)),
        EnsembleEligibility(EligibilityStatus.CAN_REVIEW),
    )
    assert aggregate_eligibility(statuses, NOW).status == EligibilityStatus.CAN_REVIEW


@pytest.mark.unit
def test_aggregate_all_pending():
    statuses = _statuses(
        EnsembleEligibility(EligibilityStatus.PENDING),
        EnsembleEligibility(EligibilityStatus.PENDING),
    )
    assert aggregate_eligibility(statuses, NOW).status == EligibilityStatus.PENDING


@pytest.mark.unit
def test_aggregate_cooldown_reports_soonest_end():
    statuses = _statuses(
        EnsembleEligibility(EligibilityStatus.COOLDOWN, add_months(NOW, 7)),
        EnsembleEligibility(EligibilityStatus.COOLDOWN, add_months(NOW, 4)),
    )
    result = aggregate_eligibility(statuses, NOW)
    assert result.status == EligibilityStatus.COOLDOWN
    assert result.months_left == 4


@pytest.mark.unit
def test_aggregate_mixed_pending_and_cooldown_reports_cooldown():
    statuses = _statuses(
        EnsembleEligibility(EligibilityStatus.PENDING),
        EnsembleEligibility(EligibilityStatus.COOLDOWN, add_months(NOW, 2)),
    )
    result = aggregate_eligibility(statuses, NOW)
    assert result.status == EligibilityStatus.COOLDOWN
    assert result.months_left == 2


# ---------------------------------------------------------------------------
# check_eligibility
# ---------------------------------------------------------------------------


async def _coach_and_ensemble(db):
    coach = CoachProfileFactory.create()
    ensemble = EnsembleProfileFactory.create()
    await persist(db, coach, ensemble)
    return coach, ensemble


async def _canonical_review(db, coach, ensemble, created_at):
    invite = InviteFactory.create(
        coach_profile_id=coach.id,
        status=InviteStatus.COMPLETED,
        ensemble_profile_id=ensemble.id,
    )
    review = ReviewFactory.create(
        invite_id=invite.id,
        reviewer_id=ensemble.id,
        coach_profile_id=coach.id,
        created_at=created_at,
    )
    await persist(db, invite, review)
    return review


@pytest.mark.asyncio
@pytest.mark.unit
async def test_check_without_ensembles(db_session):
    coach, _ = await _coach_and_ensemble(db_session)

    result = await check_eligibility(
        db_session, owned_ensemble_ids=[], coach_profile_id=coach.id, now=NOW
    )

    assert result.status == EligibilityStatus.NO_ENSEMBLE


@pytest.mark.asyncio
@pytest.mark.unit
async def test_check_unknown_coach(db_session):
    _, ensemble = await _coach_and_ensemble(db_session)

    with pytest.raises(CoachNotFound):
        await check_eligibility(
            db_session,
            owned_ensemble_ids=[ensemble.id],
            coach_profile_id=uuid.uuid4(),
            now=NOW,
        )


@pytest.mark.asyncio
@pytest.mark.unit
async def test_check_fresh_pair_can_review(db_session):
    coach, ensemble = await _coach_and_ensemble(db_session)

    result = await check_eligibility(
        db_session,
        owned_ensemble_ids=[ensemble.id],
        coach_profile_id=coach.id,
        now=NOW,
    )

    assert result.status == EligibilityStatus.CAN_REVIEW


@pytest.mark.asyncio
@pytest.mark.unit
async def test_check_pending_draft(db_session):
    coach, ensemble = await _coach_and_ensemble(db_session)
    await persist(
        db_session,
        EnsembleReviewFactory.create(
            ensemble_profile_id=ensemble.id, coach_profile_id=coach.id
        ),
    )

    result = await check_eligibility(
        db_session,
        owned_ensemble_ids=[ensemble.id],
        coach_profile_id=coach.id,
        now=NOW,
    )

    assert result.status == EligibilityStatus.PENDING


@pytest.mark.asyncio
@pytest.mark.unit
async def test_check_rejected_draft_does_not_block(db_session):
    coach, ensemble = await _coach_and_ensemble(db_session)
    await persist(
        db_session,
        EnsembleReviewFactory.create(
            ensemble_profile_id=ensemble.id,
            coach_profile_id=coach.id,
            status=EnsembleReviewStatus.REJECTED,
        ),
    )

    result = await check_eligibility(
        db_session,
        owned_ensemble_ids=[ensemble.id],
        coach_profile_id=coach.id,
        now=NOW,
    )

    assert result.status == EligibilityStatus.CAN_REVIEW


@pytest.mark.asyncio
@pytest.mark.unit
async def test_check_just_approved_is_nine_month_cooldown(db_session):
    coach, ensemble = await _coach_and_ensemble(db_session)
    await persist(
        db_session,
        EnsembleReviewFactory.create(
            ensemble_profile_id=ensemble.id,
            coach_profile_id=coach.id,
            status=EnsembleReviewStatus.APPROVED,
            approved_at=NOW,
        ),
    )
    await _canonical_review(db_session, coach, ensemble, NOW)

    result = await check_eligibility(
        db_session,
        owned_ensemble_ids=[ensemble.id],
        coach_profile_id=coach.id,
        now=NOW,
    )

    assert result.status == EligibilityStatus.COOLDOWN
    assert result.months_left == 9


@pytest.mark.asyncio
@pytest.mark.unit
async def test_check_old_canonical_review_can_update(db_session):
    coach, ensemble = await _coach_and_ensemble(db_session)
    await _canonical_review(db_session, coach, ensemble, add_months(NOW, -10))

    result = await check_eligibility(
        db_session,
        owned_ensemble_ids=[ensemble.id],
        coach_profile_id=coach.id,
        now=NOW,
    )

    assert result.status == EligibilityStatus.CAN_UPDATE


@pytest.mark.asyncio
@pytest.mark.unit
async def test_check_second_ensemble_keeps_account_eligible(db_session):
    coach, reviewed = await _coach_and_ensemble(db_session)
    fresh = EnsembleProfileFactory.create(user_id=reviewed.user_id)
    await persist(db_session, fresh)
    await _canonical_review(db_session, coach, reviewed, add_months(NOW, -1))

    result = await check_eligibility(
        db_session,
        owned_ensemble_ids=[reviewed.id, fresh.id],
        coach_profile_id=coach.id,
        now=NOW,
    )

    assert result.status == EligibilityStatus.CAN_REVIEW
    assert result.ensemble_statuses[reviewed.id].status == EligibilityStatus.COOLDOWN
    assert result.ensemble_statuses[fresh.id].status == EligibilityStatus.CAN_REVIEW


@pytest.mark.asyncio
@pytest.mark.unit
async def test_check_ignores_other_coaches(db_session):
    coach, ensemble = await _coach_and_ensemble(db_session)
    other = CoachProfileFactory.create()
    await persist(db_session, other)
    await _canonical_review(db_session, other, ensemble, add_months(NOW, -1))

    result = await check_eligibility(
        db_session,
        owned_ensemble_ids=[ensemble.id],
        coach_profile_id=coach.id,
        now=NOW,
    )

    assert result.status == EligibilityStatus.CAN_REVIEW
