"""Unit tests for the coach credit ledger."""

import uuid
from datetime import date, time, timedelta

import pytest
from libs.common.errors import (
    AlreadyTerminal,
    InsufficientCredit,
    InvalidCreditAmount,
    NotFound,
)
from services.rentals_service.models import Coach, CreditReason, Rental, RentalStatus
from services.rentals_service.services.credit_ledger import (
    adjust_credit,
    consume_credit,
    get_balance,
    grant_credit,
    list_entries,
    reconcile_all_balances,
    reconcile_coach_balance,
    redeem_credit_for_rental,
)
from tests.factories import AreaFactory, CoachFactory, RentalFactory

TODAY = date(2030, 1, 14)


async def _make_coach(db, **overrides):
    coach = CoachFactory.create(**overrides)
    db.add(coach)
    await db.commit()
    return coach


async def _cached_balance(db, coach_id):
    coach = await db.get(Coach, coach_id, populate_existing=True)
    return coach.credits_balance


# ---------------------------------------------------------------------------
# Balance law
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_balance_law(db_session):
    """grant 3, consume 1 -> 2; adjust +2 -> 4; consume 1 -> 3."""
    coach = await _make_coach(db_session)

    await grant_credit(
        db_session, coach_id=coach.id, amount=3, reason=CreditReason.ADJUSTMENT
    )
    await consume_credit(db_session, coach_id=coach.id)
    assert await get_balance(db_session, coach.id, today=TODAY) == 2

    await adjust_credit(db_session, coach_id=coach.id, delta=2, note="goodwill")
    assert await get_balance(db_session, coach.id, today=TODAY) == 4

    await consume_credit(db_session, coach_id=coach.id)
    assert await get_balance(db_session, coach.id, today=TODAY) == 3
    assert await _cached_balance(db_session, coach.id) == 3


@pytest.mark.asyncio
@pytest.mark.unit
async def test_expired_entries_excluded_from_balance(db_session):
    coach = await _make_coach(db_session)
    await grant_credit(
        db_session,
        coach_id=coach.id,
        amount=5,
        reason=CreditReason.CANCELLATION,
        expires_at=TODAY - timedelta(days=1),
    )
    await grant_credit(
        db_session, coach_id=coach.id, amount=3, reason=CreditReason.ADJUSTMENT
    )

    assert await get_balance(db_session, coach.id, today=TODAY) == 3
    assert await get_balance(db_session, coach.id, include_expired=True) == 8


@pytest.mark.asyncio
@pytest.mark.unit
async def test_credit_expiring_today_still_counts(db_session):
    coach = await _make_coach(db_session)
    await grant_credit(
        db_session,
        coach_id=coach.id,
        amount=1,
        reason=CreditReason.CANCELLATION,
        expires_at=TODAY,
    )

    assert await get_balance(db_session, coach.id, today=TODAY) == 1
    assert await get_balance(db_session, coach.id, today=TODAY + timedelta(days=1)) == 0


@pytest.mark.asyncio
@pytest.mark.unit
async def test_adjustment_may_go_negative(db_session):
    coach = await _make_coach(db_session)

    entry = await adjust_credit(db_session, coach_id=coach.id, delta=-2, note="fix")

    assert entry.amount == -2
    assert entry.expires_at is None
    assert await get_balance(db_session, coach.id, today=TODAY) == -2


@pytest.mark.asyncio
@pytest.mark.unit
@pytest.mark.parametrize("amount", [0, -1])
async def test_grant_rejects_non_positive_amount(db_session, amount):
    coach = await _make_coach(db_session)

    with pytest.raises(InvalidCreditAmount) as exc_info:
        await grant_credit(
            db_session, coach_id=coach.id, amount=amount, reason=CreditReason.ADJUSTMENT
        )
    assert exc_info.value.status_code == 422


@pytest.mark.asyncio
@pytest.mark.unit
async def test_grant_rejects_used_reason(db_session):
    coach = await _make_coach(db_session)

    with pytest.raises(InvalidCreditAmount):
        await grant_credit(
            db_session, coach_id=coach.id, amount=1, reason=CreditReason.USED
        )


@pytest.mark.asyncio
@pytest.mark.unit
async def test_zero_adjustment_rejected(db_session):
    coach = await _make_coach(db_session)

    with pytest.raises(InvalidCreditAmount):
        await adjust_credit(db_session, coach_id=coach.id, delta=0)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_unknown_coach(db_session):
    with pytest.raises(NotFound):
        await get_balance(db_session, uuid.uuid4())
    with pytest.raises(NotFound):
        await consume_credit(db_session, coach_id=uuid.uuid4())


@pytest.mark.asyncio
@pytest.mark.unit
async def test_list_entries_newest_first(db_session):
    coach = await _make_coach(db_session)
    await grant_credit(
        db_session, coach_id=coach.id, amount=2, reason=CreditReason.ADJUSTMENT
    )
    await consume_credit(db_session, coach_id=coach.id)

    entries = await list_entries(db_session, coach.id)

    assert [e.reason for e in entries] == [CreditReason.USED, CreditReason.ADJUSTMENT]
    assert [e.amount for e in entries] == [-1, 2]


# ---------------------------------------------------------------------------
# Reconciliation
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_reconcile_corrects_expiry_drift(db_session):
    coach = await _make_coach(db_session)
    await grant_credit(
        db_session,
        coach_id=coach.id,
        amount=2,
        reason=CreditReason.CANCELLATION,
        expires_at=TODAY,
    )
    assert await _cached_balance(db_session, coach.id) == 2

    later = TODAY + timedelta(days=1)
    drift = await reconcile_coach_balance(db_session, coach.id, today=later)

    assert drift == -2
    assert await _cached_balance(db_session, coach.id) == 0
    assert await reconcile_coach_balance(db_session, coach.id, today=later) == 0


@pytest.mark.asyncio
@pytest.mark.unit
async def test_reconcile_all_reports_only_drifted(db_session):
    steady = await _make_coach(db_session)
    drifted = await _make_coach(db_session, credits_balance=7)

    drifts = await reconcile_all_balances(db_session, today=TODAY)

    assert drifts == {drifted.id: -7}
    assert steady.id not in drifts


# ---------------------------------------------------------------------------
# Redemption
# ---------------------------------------------------------------------------


async def _rental_for(db, coach, **overrides):
    area = AreaFactory.create()
    db.add(area)
    await db.commit()
    rental = RentalFactory.create(
        area_id=area.id,
        coach_id=coach.id,
        start_time=time(9, 0),
        end_time=time(10, 0),
        **overrides,
    )
    db.add(rental)
    await db.commit()
    return rental


@pytest.mark.asyncio
@pytest.mark.unit
async def test_redeem_credit_waives_fee(db_session):
    coach = await _make_coach(db_session)
    await grant_credit(
        db_session, coach_id=coach.id, amount=1, reason=CreditReason.ADJUSTMENT
    )
    rental = await _rental_for(db_session, coach, fee_charged_cents=5000)

    redeemed = await redeem_credit_for_rental(
        db_session, rental_id=rental.id, actor_id="staff-1"
    )

    assert redeemed.fee_charged_cents == 0
    assert await get_balance(db_session, coach.id) == 0
    entries = await list_entries(db_session, coach.id)
    assert entries[0].reason == CreditReason.USED
    assert entries[0].rental_id == rental.id


@pytest.mark.asyncio
@pytest.mark.unit
async def test_redeem_without_credit_refused(db_session):
    coach = await _make_coach(db_session)
    rental = await _rental_for(db_session, coach, fee_charged_cents=5000)

    with pytest.raises(InsufficientCredit) as exc_info:
        await redeem_credit_for_rental(db_session, rental_id=rental.id)

    assert exc_info.value.status_code == 402
    assert exc_info.value.detail["balance"] == 0


@pytest.mark.asyncio
@pytest.mark.unit
async def test_redeem_on_free_or_cancelled_rental_refused(db_session):
    coach = await _make_coach(db_session)
    await adjust_credit(db_session, coach_id=coach.id, delta=2)
    free = await _rental_for(db_session, coach, fee_charged_cents=0)
    cancelled = await _rental_for(
        db_session, coach, fee_charged_cents=5000, status=RentalStatus.CANCELLED
    )

    with pytest.raises(InvalidCreditAmount):
        await redeem_credit_for_rental(db_session, rental_id=free.id)
    with pytest.raises(AlreadyTerminal):
        await redeem_credit_for_rental(db_session, rental_id=cancelled.id)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_rental_redeemed_once_across_sessions(session_factory):
    """A session holding a stale copy of the rental cannot redeem it again."""
    async with session_factory() as setup:
        coach = await _make_coach(setup)
        await adjust_credit(setup, coach_id=coach.id, delta=2)
        rental = await _rental_for(setup, coach, fee_charged_cents=5000)
        coach_id, rental_id = coach.id, rental.id

    async with session_factory() as first, session_factory() as second:
        stale = await second.get(Rental, rental_id)
        assert stale.fee_charged_cents == 5000

        await redeem_credit_for_rental(first, rental_id=rental_id, actor_id="staff-1")

        with pytest.raises(InvalidCreditAmount):
            await redeem_credit_for_rental(
                second, rental_id=rental_id, actor_id="staff-2"
            )
        await second.rollback()

    async with session_factory() as check:
        used = [
            entry
            for entry in await list_entries(check, coach_id)
            if entry.reason == CreditReason.USED
        ]
        assert len(used) == 1
        assert used[0].rental_id == rental_id
        assert await get_balance(check, coach_id) == 1
        assert await _cached_balance(check, coach_id) == 1
