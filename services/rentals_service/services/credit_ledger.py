"""Coach credit ledger: append-only entries plus a write-through balance cache.

Every write locks the coach row (SELECT ... FOR UPDATE), inserts the entry,
adjusts ``Coach.credits_balance`` and commits both together. Writes never
enforce a non-negative balance; callers that need one check ``get_balance``
first (see ``redeem_credit_for_rental``).
"""

import uuid
from datetime import date
from typing import Optional

from libs.common.datetime_utils import studio_now
from libs.common.errors import (
    AlreadyTerminal,
    InsufficientCredit,
    InvalidCreditAmount,
    NotFound,
)
from libs.common.logging import get_logger
from services.rentals_service.models import (
    Coach,
    CoachCreditEntry,
    CreditReason,
    Rental,
    RentalStatus,
)
from services.rentals_service.services.booking import lock_rental
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Internals
# ---------------------------------------------------------------------------


async def lock_coach(db: AsyncSession, coach_id: uuid.UUID) -> Coach:
    result = await db.execute(
        select(Coach)
        .where(Coach.id == coach_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    coach = result.scalar_one_or_none()
    if coach is None:
        raise NotFound("Coach", coach_id)
    return coach


def append_entry(
    db: AsyncSession,
    coach: Coach,
    *,
    amount: int,
    reason: CreditReason,
    rental_id: Optional[uuid.UUID] = None,
    expires_at: Optional[date] = None,
    note: Optional[str] = None,
    created_by: Optional[str] = None,
) -> CoachCreditEntry:
    """Stage an entry and the matching cache change. Caller holds the coach lock and commits."""
    entry = CoachCreditEntry(
        coach_id=coach.id,
        amount=amount,
        reason=reason,
        rental_id=rental_id,
        expires_at=expires_at,
        note=note,
        created_by=created_by,
    )
    db.add(entry)
    coach.credits_balance += amount
    return entry


async def _commit_entry(db: AsyncSession, entry: CoachCreditEntry) -> CoachCreditEntry:
    await db.commit()
    await db.refresh(entry)
    logger.info(
        "Credit entry %s coach=%s %s %+d rental=%s expires=%s",
        entry.id,
        entry.coach_id,
        entry.reason.value,
        entry.amount,
        entry.rental_id,
        entry.expires_at,
    )
    return entry


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


async def grant_credit(
    db: AsyncSession,
    *,
    coach_id: uuid.UUID,
    amount: int,
    reason: CreditReason,
    rental_id: Optional[uuid.UUID] = None,
    expires_at: Optional[date] = None,
    note: Optional[str] = None,
    created_by: Optional[str] = None,
) -> CoachCreditEntry:
    if amount <= 0:
        raise InvalidCreditAmount(amount)
    if reason == CreditReason.USED:
        raise InvalidCreditAmount(amount, "USED entries are recorded by consume_credit")

    coach = await lock_coach(db, coach_id)
    entry = append_entry(
        db,
        coach,
        amount=amount,
        reason=reason,
        rental_id=rental_id,
        expires_at=expires_at,
        note=note,
        created_by=created_by,
    )
    return await _commit_entry(db, entry)


async def consume_credit(
    db: AsyncSession,
    *,
    coach_id: uuid.UUID,
    amount: int = 1,
    rental_id: Optional[uuid.UUID] = None,
    created_by: Optional[str] = None,
) -> CoachCreditEntry:
    """Record usage. Does not check the balance."""
    if amount <= 0:
        raise InvalidCreditAmount(amount)

    coach = await lock_coach(db, coach_id)
    entry = append_entry(
        db,
        coach,
        amount=-amount,
        reason=CreditReason.USED,
        rental_id=rental_id,
        created_by=created_by,
    )
    return await _commit_entry(db, entry)


async def adjust_credit(
    db: AsyncSession,
    *,
    coach_id: uuid.UUID,
    delta: int,
    note: Optional[str] = None,
    actor_id: Optional[str] = None,
) -> CoachCreditEntry:
    """Manual signed correction without expiry. The balance may go negative."""
    if delta == 0:
        raise InvalidCreditAmount(delta, "Adjustment must be non-zero")

    coach = await lock_coach(db, coach_id)
    entry = append_entry(
        db,
        coach,
        amount=delta,
        reason=CreditReason.ADJUSTMENT,
        note=note,
        created_by=actor_id,
    )
    return await _commit_entry(db, entry)


async def redeem_credit_for_rental(
    db: AsyncSession,
    *,
    rental_id: uuid.UUID,
    actor_id: Optional[str] = None,
) -> Rental:
    """Pay a scheduled rental with one credit: consume it and waive the fee.

    Status and fee are checked with the rental row locked, so a rental is
    redeemed at most once.
    """
    rental = await lock_rental(db, rental_id)
    if rental.status != RentalStatus.SCHEDULED:
        raise AlreadyTerminal(rental.id, rental.status)
    if rental.fee_charged_cents <= 0:
        raise InvalidCreditAmount(0, "Rental has no fee to cover")

    coach = await lock_coach(db, rental.coach_id)
    balance = await get_balance(db, coach.id)
    if balance < 1:
        raise InsufficientCredit(coach.id, balance)

    append_entry(
        db,
        coach,
        amount=-1,
        reason=CreditReason.USED,
        rental_id=rental.id,
        created_by=actor_id,
    )
    waived = rental.fee_charged_cents
    rental.fee_charged_cents = 0
    await db.commit()
    await db.refresh(rental)
    logger.info(
        "Rental %s paid with credit by coach %s (waived %d cents)",
        rental.id,
        coach.id,
        waived,
    )
    return rental


# ---------------------------------------------------------------------------
# Reads and reconciliation
# ---------------------------------------------------------------------------


async def get_balance(
    db: AsyncSession,
    coach_id: uuid.UUID,
    *,
    include_expired: bool = False,
    today: Optional[date] = None,
) -> int:
    """Sum of entries still valid on ``today`` (studio date by default)."""
    if await db.get(Coach, coach_id) is None:
        raise NotFound("Coach", coach_id)

    query = select(func.coalesce(func.sum(CoachCreditEntry.amount), 0)).where(
        CoachCreditEntry.coach_id == coach_id
    )
    if not include_expired:
        today = today or studio_now().date()
        query = query.where(
            or_(
                CoachCreditEntry.expires_at.is_(None),
                CoachCreditEntry.expires_at >= today,
            )
        )
    result = await db.execute(query)
    return int(result.scalar_one())


async def list_entries(
    db: AsyncSession, coach_id: uuid.UUID, *, limit: int = 100, offset: int = 0
) -> list[CoachCreditEntry]:
    """Ledger entries for a coach, newest first."""
    if await db.get(Coach, coach_id) is None:
        raise NotFound("Coach", coach_id)
    result = await db.execute(
        select(CoachCreditEntry)
        .where(CoachCreditEntry.coach_id == coach_id)
        .order_by(CoachCreditEntry.created_at.desc(), CoachCreditEntry.id.desc())
        .offset(offset)
        .limit(limit)
    )
    return list(result.scalars().all())


async def reconcile_coach_balance(
    db: AsyncSession, coach_id: uuid.UUID, *, today: Optional[date] = None
) -> int:
    """Overwrite the cached balance with the ledger sum. Returns the drift corrected."""
    coach = await lock_coach(db, coach_id)
    balance = await get_balance(db, coach_id, today=today)
    drift = balance - coach.credits_balance
    if drift:
        logger.warning(
            "Coach %s balance drift %+d (cached=%d ledger=%d)",
            coach_id,
            drift,
            coach.credits_balance,
            balance,
        )
        coach.credits_balance = balance
    await db.commit()
    return drift


async def reconcile_all_balances(
    db: AsyncSession, *, today: Optional[date] = None
) -> dict[uuid.UUID, int]:
    """Reconcile every coach. Returns ``{coach_id: drift}`` for coaches that drifted."""
    result = await db.execute(select(Coach.id).order_by(Coach.created_at))
    drifts: dict[uuid.UUID, int] = {}
    for coach_id in result.scalars().all():
        drift = await reconcile_coach_balance(db, coach_id, today=today)
        if drift:
            drifts[coach_id] = drift
    logger.info("Reconciled coach balances: %d drifted", len(drifts))
    return drifts
