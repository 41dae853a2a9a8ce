"""Rental booking engine: conflict-free creation, series booking and rescheduling.

All writes to a slot happen under ``slot_lock(area_id, rental_date)`` so the
overlap query, the insert/update and the commit are one critical section.
"""

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Optional

from libs.common.datetime_utils import combine_studio
from libs.common.errors import (
    AlreadyTerminal,
    InactiveResource,
    InvalidTimeRange,
    NotFound,
    PartialSeriesFailure,
    SlotConflict,
)
from libs.common.logging import get_logger
from services.rentals_service.models import Area, Coach, FeeType, Rental, RentalStatus
from services.rentals_service.services.fees import calculate_rental_fee
from services.rentals_service.services.registry import get_area, get_coach
from services.rentals_service.services.slot_lock import slot_lock
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

OVERLAP_CONSTRAINT = "ex_rentals_no_overlap"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def validate_time_range(start_time: time, end_time: time) -> None:
    if end_time <= start_time:
        raise InvalidTimeRange(start_time, end_time)


async def find_overlapping(
    db: AsyncSession,
    *,
    area_id: uuid.UUID,
    rental_date: date,
    start_time: time,
    end_time: time,
    exclude_rental_id: Optional[uuid.UUID] = None,
) -> list[Rental]:
    """Non-cancelled rentals in the slot whose half-open interval intersects."""
    query = select(Rental).where(
        Rental.area_id == area_id,
        Rental.rental_date == rental_date,
        Rental.status != RentalStatus.CANCELLED,
        Rental.start_time < end_time,
        Rental.end_time > start_time,
    )
    if exclude_rental_id is not None:
        query = query.where(Rental.id != exclude_rental_id)
    result = await db.execute(query)
    return list(result.scalars().all())


def _is_overlap_violation(exc: IntegrityError) -> bool:
    return OVERLAP_CONSTRAINT in str(exc.orig)


async def _commit_slot_write(db: AsyncSession) -> None:
    """Commit, turning the storage-level overlap guard into SlotConflict."""
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        if _is_overlap_violation(exc):
            raise SlotConflict(message="Overlap rejected by storage constraint") from exc
        raise


async def _get_bookable(
    db: AsyncSession, coach_id: uuid.UUID, area_id: uuid.UUID
) -> tuple[Coach, Area]:
    coach = await get_coach(db, coach_id)
    if not coach.active:
        raise InactiveResource("Coach", coach_id)
    area = await get_area(db, area_id)
    if not area.active:
        raise InactiveResource("Area", area_id)
    return coach, area


# ---------------------------------------------------------------------------
# Single booking
# ---------------------------------------------------------------------------


async def create_rental(
    db: AsyncSession,
    *,
    coach_id: uuid.UUID,
    area_id: uuid.UUID,
    rental_date: date,
    start_time: time,
    end_time: time,
    fee_charged_cents: Optional[int] = None,
    guest_count: int = 0,
    created_by: Optional[str] = None,
    series_id: Optional[uuid.UUID] = None,
) -> Rental:
    """Book ``area_id`` for ``coach_id`` if the slot is free.

    ``fee_charged_cents`` defaults to the coach's fee: the fixed amount, or 0
    for percentage coaches until ``settle_rental_fee`` runs on the final
    guest count.
    """
    validate_time_range(start_time, end_time)
    coach, _area = await _get_bookable(db, coach_id, area_id)

    if fee_charged_cents is None:
        fee_charged_cents = calculate_rental_fee(coach, guest_count=guest_count)

    async with slot_lock(db, area_id, rental_date):
        try:
            conflicts = await find_overlapping(
                db,
                area_id=area_id,
                rental_date=rental_date,
                start_time=start_time,
                end_time=end_time,
            )
            if conflicts:
                raise SlotConflict([r.id for r in conflicts])

            rental = Rental(
                coach_id=coach_id,
                area_id=area_id,
                rental_date=rental_date,
                start_time=start_time,
                end_time=end_time,
                status=RentalStatus.SCHEDULED,
                fee_charged_cents=fee_charged_cents,
                guest_count=guest_count,
                is_recurring=series_id is not None,
                series_id=series_id,
                credit_generated=False,
                created_by=created_by,
            )
            db.add(rental)
            await _commit_slot_write(db)
        except SlotConflict:
            # Nothing is pending here; ending the transaction releases the
            # advisory lock without expiring loaded objects
            if db.in_transaction():
                await db.commit()
            raise

    await db.refresh(rental)
    logger.info(
        "Booked rental %s coach=%s area=%s %s %s-%s fee=%d",
        rental.id,
        coach_id,
        area_id,
        rental_date,
        start_time,
        end_time,
        fee_charged_cents,
    )
    return rental


# ---------------------------------------------------------------------------
# Recurring series
# ---------------------------------------------------------------------------


@dataclass
class SeriesBookingResult:
    series_id: uuid.UUID
    created: list[Rental] = field(default_factory=list)
    failed: list[dict] = field(default_factory=list)

    @property
    def is_partial(self) -> bool:
        return bool(self.created) and bool(self.failed)

    def raise_for_partial(self) -> None:
        if self.is_partial:
            raise PartialSeriesFailure(
                self.series_id, [r.id for r in self.created], self.failed
            )


async def create_rental_series(
    db: AsyncSession,
    *,
    coach_id: uuid.UUID,
    area_id: uuid.UUID,
    first_date: date,
    start_time: time,
    end_time: time,
    occurrences: int,
    interval_days: int = 7,
    fee_charged_cents: Optional[int] = None,
    created_by: Optional[str] = None,
) -> SeriesBookingResult:
    """Book ``occurrences`` rentals ``interval_days`` apart under one series id.

    Each occurrence is committed on its own; a conflicting date fails only
    that occurrence. Raises SlotConflict when nothing could be booked.
    """
    if occurrences < 1:
        raise ValueError("occurrences must be >= 1")
    if interval_days < 1:
        raise ValueError("interval_days must be >= 1")
    validate_time_range(start_time, end_time)
    # Fail the whole request up front for missing/inactive coach or area
    await _get_bookable(db, coach_id, area_id)

    result = SeriesBookingResult(series_id=uuid.uuid4())
    created_ids: list[uuid.UUID] = []
    for i in range(occurrences):
        occurrence_date = first_date + timedelta(days=i * interval_days)
        try:
            rental = await create_rental(
                db,
                coach_id=coach_id,
                area_id=area_id,
                rental_date=occurrence_date,
                start_time=start_time,
                end_time=end_time,
                fee_charged_cents=fee_charged_cents,
                created_by=created_by,
                series_id=result.series_id,
            )
        except SlotConflict as exc:
            result.failed.append(
                {
                    "rental_date": occurrence_date.isoformat(),
                    "code": exc.code,
                    "message": exc.message,
                    "conflicting_rental_ids": exc.context.get(
                        "conflicting_rental_ids", []
                    ),
                }
            )
            continue
        created_ids.append(rental.id)

    if created_ids:
        # A storage-level conflict rolls back the session and expires earlier rows
        result.created = await list_rentals(db, series_id=result.series_id)

    logger.info(
        "Series %s: %d booked, %d conflicted",
        result.series_id,
        len(created_ids),
        len(result.failed),
    )
    if not created_ids:
        raise SlotConflict(
            [
                rid
                for failure in result.failed
                for rid in failure["conflicting_rental_ids"]
            ],
            message="No occurrence of the series could be booked",
        )
    return result


# ---------------------------------------------------------------------------
# Rescheduling and fees
# ---------------------------------------------------------------------------


async def get_rental(db: AsyncSession, rental_id: uuid.UUID) -> Rental:
    rental = await db.get(Rental, rental_id)
    if rental is None:
        raise NotFound("Rental", rental_id)
    return rental


async def lock_rental(db: AsyncSession, rental_id: uuid.UUID) -> Rental:
    """Load the rental FOR UPDATE, refreshing any copy already in the session."""
    result = await db.execute(
        select(Rental)
        .where(Rental.id == rental_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    rental = result.scalar_one_or_none()
    if rental is None:
        raise NotFound("Rental", rental_id)
    return rental


async def reschedule_rental(
    db: AsyncSession,
    rental_id: uuid.UUID,
    *,
    rental_date: Optional[date] = None,
    start_time: Optional[time] = None,
    end_time: Optional[time] = None,
) -> Rental:
    """Move a scheduled rental, re-checking overlap in the target slot."""
    rental = await lock_rental(db, rental_id)
    if rental.is_terminal:
        raise AlreadyTerminal(rental.id, rental.status)

    new_date = rental_date if rental_date is not None else rental.rental_date
    new_start = start_time if start_time is not None else rental.start_time
    new_end = end_time if end_time is not None else rental.end_time
    validate_time_range(new_start, new_end)

    async with slot_lock(db, rental.area_id, new_date):
        try:
            conflicts = await find_overlapping(
                db,
                area_id=rental.area_id,
                rental_date=new_date,
                start_time=new_start,
                end_time=new_end,
                exclude_rental_id=rental.id,
            )
            if conflicts:
                raise SlotConflict([r.id for r in conflicts])

            rental.rental_date = new_date
            rental.start_time = new_start
            rental.end_time = new_end
            await _commit_slot_write(db)
        except SlotConflict:
            if db.in_transaction():
                await db.commit()
            raise

    await db.refresh(rental)
    logger.info(
        "Rescheduled rental %s to %s %s-%s", rental.id, new_date, new_start, new_end
    )
    return rental


async def settle_rental_fee(
    db: AsyncSession, rental_id: uuid.UUID, *, base_price_cents: int
) -> Rental:
    """Recompute a percentage coach's fee from the rental's final guest count."""
    rental = await lock_rental(db, rental_id)
    if rental.status == RentalStatus.CANCELLED:
        raise AlreadyTerminal(rental.id, rental.status)
    coach = await get_coach(db, rental.coach_id)
    if coach.fee_type != FeeType.PERCENTAGE:
        return rental

    rental.fee_charged_cents = calculate_rental_fee(
        coach, base_price_cents=base_price_cents, guest_count=rental.guest_count
    )
    await db.commit()
    await db.refresh(rental)
    logger.info(
        "Settled rental %s fee=%d (guests=%d, base=%d)",
        rental.id,
        rental.fee_charged_cents,
        rental.guest_count,
        base_price_cents,
    )
    return rental


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def list_rentals(
    db: AsyncSession,
    *,
    rental_date: Optional[date] = None,
    area_id: Optional[uuid.UUID] = None,
    coach_id: Optional[uuid.UUID] = None,
    status: Optional[RentalStatus] = None,
    series_id: Optional[uuid.UUID] = None,
) -> list[Rental]:
    query = select(Rental).order_by(Rental.rental_date, Rental.start_time)
    if rental_date is not None:
        query = query.where(Rental.rental_date == rental_date)
    if area_id is not None:
        query = query.where(Rental.area_id == area_id)
    if coach_id is not None:
        query = query.where(Rental.coach_id == coach_id)
    if status is not None:
        query = query.where(Rental.status == status)
    if series_id is not None:
        query = query.where(Rental.series_id == series_id)
    result = await db.execute(query)
    return list(result.scalars().all())


async def find_active_exclusive_rentals(
    db: AsyncSession, *, on_date: date, at: time
) -> list[tuple[Rental, Area, Coach]]:
    """Scheduled rentals in exclusive areas whose window contains ``at``.

    The window is inclusive at both ends.
    """
    result = await db.execute(
        select(Rental, Area, Coach)
        .join(Area, Area.id == Rental.area_id)
        .join(Coach, Coach.id == Rental.coach_id)
        .where(
            Rental.rental_date == on_date,
            Rental.status == RentalStatus.SCHEDULED,
            Area.is_exclusive.is_(True),
            Rental.start_time <= at,
            Rental.end_time >= at,
        )
        .order_by(Rental.end_time.desc())
    )
    return [tuple(row) for row in result.all()]


def rental_starts_at(rental: Rental) -> datetime:
    """Aware studio-local start of the rental."""
    return combine_studio(rental.rental_date, rental.start_time)
