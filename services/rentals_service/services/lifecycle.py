"""Rental lifecycle: SCHEDULED -> COMPLETED | CANCELLED, with cancellation credits.

Both target states are terminal. Cancelling with enough notice on a rental
that carried a fee mints one cancellation credit for the coach in the same
commit that cancels the rental.
"""

import uuid
from datetime import datetime, timedelta
from typing import Optional

from libs.common.config import get_settings
from libs.common.datetime_utils import hours_between, to_studio_time, utc_now
from libs.common.errors import AlreadyTerminal, Forbidden, NotFound
from libs.common.logging import get_logger
from services.rentals_service.models import (
    ActorRole,
    CreditReason,
    Rental,
    RentalStatus,
)
from services.rentals_service.services.booking import lock_rental, rental_starts_at
from services.rentals_service.services.credit_ledger import append_entry, lock_coach
from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


def notice_threshold_hours(actor_role: ActorRole) -> int:
    """Minimum notice for a credit-bearing cancellation by ``actor_role``."""
    settings = get_settings()
    if actor_role == ActorRole.COACH:
        return settings.COACH_CANCELLATION_NOTICE_HOURS
    return settings.STAFF_CANCELLATION_NOTICE_HOURS


def qualifies_for_credit(
    rental: Rental, *, now: datetime, actor_role: ActorRole
) -> bool:
    hours_until_start = hours_between(now, rental_starts_at(rental))
    return (
        hours_until_start >= notice_threshold_hours(actor_role)
        and rental.fee_charged_cents > 0
    )


# ---------------------------------------------------------------------------
# Cancellation
# ---------------------------------------------------------------------------


async def cancel_rental(
    db: AsyncSession,
    rental_id: uuid.UUID,
    *,
    actor_id: Optional[str],
    actor_role: ActorRole,
    now: Optional[datetime] = None,
) -> Rental:
    """Cancel a scheduled rental and, when it qualifies, credit the coach.

    The rental row is locked, and the coach row is locked before any credit
    entry is written; rental status, entry and cached balance share one commit.
    """
    now = now or utc_now()
    rental = await lock_rental(db, rental_id)
    if rental.is_terminal:
        raise AlreadyTerminal(rental.id, rental.status)

    coach = await lock_coach(db, rental.coach_id)
    if actor_role == ActorRole.COACH and coach.linked_user_id != actor_id:
        raise Forbidden(
            "Coaches may only cancel their own rentals", rental_id=str(rental.id)
        )

    settings = get_settings()
    credit = qualifies_for_credit(rental, now=now, actor_role=actor_role)

    rental.status = RentalStatus.CANCELLED
    rental.cancelled_at = now
    rental.cancelled_by = actor_id
    rental.credit_generated = credit

    if credit:
        append_entry(
            db,
            coach,
            amount=settings.CANCELLATION_CREDIT_UNITS,
            reason=CreditReason.CANCELLATION,
            rental_id=rental.id,
            expires_at=to_studio_time(now).date()
            + timedelta(days=settings.CANCELLATION_CREDIT_EXPIRY_DAYS),
            created_by=actor_id,
        )

    await db.commit()
    await db.refresh(rental)
    logger.info(
        "Cancelled rental %s by %s (%s) credit_generated=%s",
        rental.id,
        actor_id,
        actor_role.value,
        credit,
    )
    return rental


async def cancel_series(
    db: AsyncSession,
    series_id: uuid.UUID,
    *,
    actor_id: Optional[str],
    actor_role: ActorRole,
    now: Optional[datetime] = None,
) -> list[Rental]:
    """Cancel every scheduled rental of a series, each under the usual credit policy."""
    now = now or utc_now()
    result = await db.execute(
        select(Rental.id, Rental.status)
        .where(Rental.series_id == series_id)
        .order_by(Rental.rental_date)
    )
    rows = result.all()
    if not rows:
        raise NotFound("Series", series_id)

    cancelled = []
    for rental_id, status in rows:
        if status != RentalStatus.SCHEDULED:
            continue
        cancelled.append(
            await cancel_rental(
                db, rental_id, actor_id=actor_id, actor_role=actor_role, now=now
            )
        )
    logger.info("Cancelled %d rental(s) of series %s", len(cancelled), series_id)
    return cancelled


# ---------------------------------------------------------------------------
# Completion
# ---------------------------------------------------------------------------


async def complete_rental(
    db: AsyncSession, rental_id: uuid.UUID, *, now: Optional[datetime] = None
) -> Rental:
    rental = await lock_rental(db, rental_id)
    if rental.is_terminal:
        raise AlreadyTerminal(rental.id, rental.status)
    rental.status = RentalStatus.COMPLETED
    rental.completed_at = now or utc_now()
    await db.commit()
    await db.refresh(rental)
    logger.info("Completed rental %s", rental.id)
    return rental


async def complete_elapsed_rentals(
    db: AsyncSession, *, now: Optional[datetime] = None
) -> int:
    """Complete every scheduled rental whose end has passed. Returns the count."""
    now = now or utc_now()
    local_now = to_studio_time(now)
    today = local_now.date()
    current_time = local_now.time()

    result = await db.execute(
        select(Rental)
        .where(
            Rental.status == RentalStatus.SCHEDULED,
            or_(
                Rental.rental_date < today,
                and_(Rental.rental_date == today, Rental.end_time <= current_time),
            ),
        )
        .with_for_update(skip_locked=True)
    )
    rentals = list(result.scalars().all())
    for rental in rentals:
        rental.status = RentalStatus.COMPLETED
        rental.completed_at = now
    await db.commit()

    if rentals:
        logger.info("Completed %d elapsed rental(s)", len(rentals))
    return len(rentals)
