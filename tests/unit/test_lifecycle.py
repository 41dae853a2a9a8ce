"""Unit tests for rental cancellation, completion and cancellation credits."""

import uuid
from datetime import date, time, timedelta

import pytest
from libs.common.datetime_utils import combine_studio
from libs.common.errors import AlreadyTerminal, Forbidden, NotFound
from services.rentals_service.models import (
    ActorRole,
    CoachCreditEntry,
    CreditReason,
    FeeType,
    Rental,
    RentalStatus,
)
from services.rentals_service.services.booking import (
    create_rental_series,
    reschedule_rental,
    settle_rental_fee,
)
from services.rentals_service.services.credit_ledger import get_balance
from services.rentals_service.services.lifecycle import (
    cancel_rental,
    cancel_series,
    complete_elapsed_rentals,
    complete_rental,
    notice_threshold_hours,
)
from sqlalchemy import select
from tests.factories import AreaFactory, CoachFactory, RentalFactory

RENTAL_DAY = date(2030, 1, 17)
RENTAL_START = time(9, 0)


async def _scheduled_rental(db, *, coach_overrides=None, **overrides):
    area = AreaFactory.create()
    coach = CoachFactory.create(**(coach_overrides or {}))
    db.add_all([area, coach])
    await db.commit()
    defaults = {
        "rental_date": RENTAL_DAY,
        "start_time": RENTAL_START,
        "end_time": time(10, 0),
        "fee_charged_cents": 5000,
    }
    defaults.update(overrides)
    rental = RentalFactory.create(area_id=area.id, coach_id=coach.id, **defaults)
    db.add(rental)
    await db.commit()
    return rental, coach


def _hours_before_start(hours):
    return combine_studio(RENTAL_DAY, RENTAL_START) - timedelta(hours=hours)


async def _credit_entries(db, coach_id):
    result = await db.execute(
        select(CoachCreditEntry).where(CoachCreditEntry.coach_id == coach_id)
    )
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Cancellation credits
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_notice_thresholds_by_role():
    assert notice_threshold_hours(ActorRole.COACH) == 24
    assert notice_threshold_hours(ActorRole.STAFF) == 48
    assert notice_threshold_hours(ActorRole.ADMIN) == 48


@pytest.mark.asyncio
@pytest.mark.unit
async def test_cancel_with_notice_generates_credit(db_session):
    rental, coach = await _scheduled_rental(db_session)
    now = _hours_before_start(72)

    cancelled = await cancel_rental(
        db_session, rental.id, actor_id="staff-1", actor_role=ActorRole.STAFF, now=now
    )

    assert cancelled.status == RentalStatus.CANCELLED
    assert cancelled.credit_generated is True
    assert cancelled.cancelled_by == "staff-1"

    entries = await _credit_entries(db_session, coach.id)
    assert len(entries) == 1
    assert entries[0].amount == 1
    assert entries[0].reason == CreditReason.CANCELLATION
    assert entries[0].rental_id == rental.id
    assert entries[0].expires_at == now.date() + timedelta(days=90)
    assert await get_balance(db_session, coach.id, today=now.date()) == 1


@pytest.mark.asyncio
@pytest.mark.unit
async def test_late_cancel_generates_no_credit(db_session):
    rental, coach = await _scheduled_rental(db_session)

    cancelled = await cancel_rental(
        db_session,
        rental.id,
        actor_id="staff-1",
        actor_role=ActorRole.STAFF,
        now=_hours_before_start(2),
    )

    assert cancelled.status == RentalStatus.CANCELLED
    assert cancelled.credit_generated is False
    assert await _credit_entries(db_session, coach.id) == []


@pytest.mark.asyncio
@pytest.mark.unit
async def test_free_rental_cancel_generates_no_credit(db_session):
    rental, coach = await _scheduled_rental(db_session, fee_charged_cents=0)

    cancelled = await cancel_rental(
        db_session,
        rental.id,
        actor_id="staff-1",
        actor_role=ActorRole.STAFF,
        now=_hours_before_start(72),
    )

    assert cancelled.credit_generated is False
    assert await _credit_entries(db_session, coach.id) == []


@pytest.mark.asyncio
@pytest.mark.unit
async def test_coach_threshold_is_shorter_than_staff(db_session):
    """30 hours of notice earns a credit for a coach but not for staff."""
    own, coach = await _scheduled_rental(
        db_session, coach_overrides={"linked_user_id": "coach-user"}
    )
    by_coach = await cancel_rental(
        db_session,
        own.id,
        actor_id="coach-user",
        actor_role=ActorRole.COACH,
        now=_hours_before_start(30),
    )
    assert by_coach.credit_generated is True

    other, _ = await _scheduled_rental(db_session)
    by_staff = await cancel_rental(
        db_session,
        other.id,
        actor_id="staff-1",
        actor_role=ActorRole.STAFF,
        now=_hours_before_start(30),
    )
    assert by_staff.credit_generated is False


@pytest.mark.asyncio
@pytest.mark.unit
async def test_coach_cannot_cancel_someone_elses_rental(db_session):
    rental, _ = await _scheduled_rental(
        db_session, coach_overrides={"linked_user_id": "coach-a"}
    )
    rental_id = rental.id

    with pytest.raises(Forbidden) as exc_info:
        await cancel_rental(
            db_session,
            rental_id,
            actor_id="coach-b",
            actor_role=ActorRole.COACH,
            now=_hours_before_start(72),
        )
    assert exc_info.value.status_code == 403
    await db_session.rollback()

    reloaded = await db_session.get(Rental, rental_id, populate_existing=True)
    assert reloaded.status == RentalStatus.SCHEDULED


@pytest.mark.asyncio
@pytest.mark.unit
async def test_cancel_twice_refused(db_session):
    rental, _ = await _scheduled_rental(db_session)
    await cancel_rental(
        db_session, rental.id, actor_id="staff-1", actor_role=ActorRole.STAFF
    )

    with pytest.raises(AlreadyTerminal) as exc_info:
        await cancel_rental(
            db_session, rental.id, actor_id="staff-1", actor_role=ActorRole.STAFF
        )
    assert exc_info.value.detail["status"] == "cancelled"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_cancel_unknown_rental(db_session):
    with pytest.raises(NotFound):
        await cancel_rental(
            db_session, uuid.uuid4(), actor_id="staff-1", actor_role=ActorRole.STAFF
        )


@pytest.mark.asyncio
@pytest.mark.unit
async def test_cancel_series_skips_terminal_rentals(db_session):
    first, coach = await _scheduled_rental(db_session)
    series_id = uuid.uuid4()
    first.series_id = series_id
    first.is_recurring = True
    done = RentalFactory.create(
        area_id=first.area_id,
        coach_id=coach.id,
        rental_date=RENTAL_DAY - timedelta(days=7),
        series_id=series_id,
        is_recurring=True,
        status=RentalStatus.COMPLETED,
    )
    later = RentalFactory.create(
        area_id=first.area_id,
        coach_id=coach.id,
        rental_date=RENTAL_DAY + timedelta(days=7),
        series_id=series_id,
        is_recurring=True,
    )
    db_session.add_all([done, later])
    await db_session.commit()

    cancelled = await cancel_series(
        db_session,
        series_id,
        actor_id="staff-1",
        actor_role=ActorRole.STAFF,
        now=_hours_before_start(72),
    )

    assert sorted(r.rental_date for r in cancelled) == [
        RENTAL_DAY,
        RENTAL_DAY + timedelta(days=7),
    ]
    assert all(r.credit_generated for r in cancelled)
    assert await get_balance(db_session, coach.id, today=RENTAL_DAY) == 2


@pytest.mark.asyncio
@pytest.mark.unit
async def test_cancelling_one_occurrence_leaves_siblings(db_session):
    area = AreaFactory.create()
    coach = CoachFactory.create()
    db_session.add_all([area, coach])
    await db_session.commit()
    series = await create_rental_series(
        db_session,
        coach_id=coach.id,
        area_id=area.id,
        first_date=RENTAL_DAY,
        start_time=RENTAL_START,
        end_time=time(10, 0),
        occurrences=3,
    )
    first, second, third = (r.id for r in series.created)

    await cancel_rental(
        db_session,
        second,
        actor_id="staff-1",
        actor_role=ActorRole.STAFF,
        now=_hours_before_start(72),
    )
    await complete_rental(db_session, first)

    statuses = {}
    for rental_id in (first, second, third):
        rental = await db_session.get(Rental, rental_id, populate_existing=True)
        statuses[rental_id] = rental.status
    assert statuses == {
        first: RentalStatus.COMPLETED,
        second: RentalStatus.CANCELLED,
        third: RentalStatus.SCHEDULED,
    }
    entries = await _credit_entries(db_session, coach.id)
    assert [e.rental_id for e in entries] == [second]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_cancel_unknown_series(db_session):
    with pytest.raises(NotFound):
        await cancel_series(
            db_session, uuid.uuid4(), actor_id="staff-1", actor_role=ActorRole.STAFF
        )


# ---------------------------------------------------------------------------
# Completion
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_complete_rental(db_session):
    rental, _ = await _scheduled_rental(db_session)

    completed = await complete_rental(db_session, rental.id)

    assert completed.status == RentalStatus.COMPLETED
    assert completed.completed_at is not None
    with pytest.raises(AlreadyTerminal):
        await complete_rental(db_session, rental.id)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_complete_elapsed_rentals(db_session):
    morning, coach = await _scheduled_rental(db_session)
    afternoon = RentalFactory.create(
        area_id=morning.area_id,
        coach_id=coach.id,
        rental_date=RENTAL_DAY,
        start_time=time(14, 0),
        end_time=time(15, 0),
    )
    yesterday = RentalFactory.create(
        area_id=morning.area_id,
        coach_id=coach.id,
        rental_date=RENTAL_DAY - timedelta(days=1),
    )
    cancelled = RentalFactory.create(
        area_id=morning.area_id,
        coach_id=coach.id,
        rental_date=RENTAL_DAY - timedelta(days=2),
        status=RentalStatus.CANCELLED,
    )
    db_session.add_all([afternoon, yesterday, cancelled])
    await db_session.commit()
    ids = {
        "morning": morning.id,
        "afternoon": afternoon.id,
        "yesterday": yesterday.id,
        "cancelled": cancelled.id,
    }

    count = await complete_elapsed_rentals(
        db_session, now=combine_studio(RENTAL_DAY, time(12, 0))
    )

    assert count == 2
    statuses = {}
    for name, rental_id in ids.items():
        rental = await db_session.get(Rental, rental_id, populate_existing=True)
        statuses[name] = rental.status
    assert statuses == {
        "morning": RentalStatus.COMPLETED,
        "afternoon": RentalStatus.SCHEDULED,
        "yesterday": RentalStatus.COMPLETED,
        "cancelled": RentalStatus.CANCELLED,
    }


# ---------------------------------------------------------------------------
# Writes racing a cancellation
# ---------------------------------------------------------------------------


async def _cancel_behind_stale_copy(session_factory, **rental_overrides):
    """Cancel a rental in one session while another holds an older copy."""
    async with session_factory() as setup:
        rental, coach = await _scheduled_rental(setup, **rental_overrides)
        rental_id, coach_id = rental.id, coach.id

    stale_session = session_factory()
    stale = await stale_session.get(Rental, rental_id)
    assert stale.status == RentalStatus.SCHEDULED

    async with session_factory() as canceller:
        await cancel_rental(
            canceller,
            rental_id,
            actor_id="staff-1",
            actor_role=ActorRole.STAFF,
            now=_hours_before_start(240),
        )
    return stale_session, rental_id, coach_id


async def _assert_still_cancelled(session_factory, rental_id, coach_id):
    async with session_factory() as check:
        rental = await check.get(Rental, rental_id)
        assert rental.status == RentalStatus.CANCELLED
        assert rental.completed_at is None
        assert rental.credit_generated is True
        assert len(await _credit_entries(check, coach_id)) == 1


@pytest.mark.asyncio
@pytest.mark.unit
async def test_complete_after_concurrent_cancel_refused(session_factory):
    db, rental_id, coach_id = await _cancel_behind_stale_copy(session_factory)
    try:
        with pytest.raises(AlreadyTerminal):
            await complete_rental(db, rental_id)
        await db.rollback()
    finally:
        await db.close()

    await _assert_still_cancelled(session_factory, rental_id, coach_id)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_reschedule_after_concurrent_cancel_refused(session_factory):
    db, rental_id, coach_id = await _cancel_behind_stale_copy(session_factory)
    try:
        with pytest.raises(AlreadyTerminal):
            await reschedule_rental(
                db, rental_id, rental_date=RENTAL_DAY + timedelta(days=1)
            )
        await db.rollback()
    finally:
        await db.close()

    await _assert_still_cancelled(session_factory, rental_id, coach_id)
    async with session_factory() as check:
        rental = await check.get(Rental, rental_id)
        assert rental.rental_date == RENTAL_DAY


@pytest.mark.asyncio
@pytest.mark.unit
async def test_settle_after_concurrent_cancel_refused(session_factory):
    db, rental_id, coach_id = await _cancel_behind_stale_copy(
        session_factory,
        coach_overrides={"fee_type": FeeType.PERCENTAGE, "fee_value": 2000},
    )
    try:
        with pytest.raises(AlreadyTerminal):
            await settle_rental_fee(db, rental_id, base_price_cents=1000)
        await db.rollback()
    finally:
        await db.close()

    await _assert_still_cancelled(session_factory, rental_id, coach_id)
    async with session_factory() as check:
        rental = await check.get(Rental, rental_id)
        assert rental.fee_charged_cents == 5000
