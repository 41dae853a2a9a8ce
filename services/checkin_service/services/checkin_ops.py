"""Check-in orchestration: evaluate access, apply side effects, record the outcome.

Every evaluation writes a CheckInRecord whatever the result. Allowed
check-ins of CREDITS members spend one credit, and allowed guests bump the
rental's guest count; both happen in the same commit as the record.
"""

import re
import uuid
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Annotated, Literal, Optional, Union

from libs.common.datetime_utils import (
    as_utc,
    studio_day_bounds,
    to_studio_time,
    utc_now,
)
from libs.common.errors import NotFound
from libs.common.logging import get_logger
from pydantic import BaseModel, Field
from services.checkin_service.models import (
    AccessType,
    CheckInRecord,
    CheckInResult,
    CheckInType,
    Member,
)
from services.checkin_service.services.access_rules import (
    AccessDecision,
    ExclusiveBlock,
    evaluate_guest_access,
    evaluate_member_access,
)
from services.rentals_service.models import Area, Rental, RentalStatus
from services.rentals_service.services.booking import find_active_exclusive_rentals
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

QR_URL_PATTERN = re.compile(r"/m/(MBR-[A-Z0-9]+)", re.IGNORECASE)
QR_CODE_PATTERN = re.compile(r"^MBR-[A-Z0-9]+$", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Subjects
# ---------------------------------------------------------------------------


class MemberSubject(BaseModel):
    type: Literal["member"] = "member"
    member_id: uuid.UUID


class GuestSubject(BaseModel):
    type: Literal["guest"] = "guest"
    rental_id: uuid.UUID
    guest_name: str = Field(..., min_length=1, max_length=200)


CheckInSubject = Annotated[
    Union[MemberSubject, GuestSubject], Field(discriminator="type")
]


@dataclass
class CheckInOutcome:
    record: CheckInRecord
    decision: AccessDecision
    member: Optional[Member] = None
    rental: Optional[Rental] = None
    capacity_exceeded: bool = False


# ---------------------------------------------------------------------------
# QR codes
# ---------------------------------------------------------------------------


def parse_member_qr(raw: str) -> Optional[str]:
    """Extract an ``MBR-XXXX`` code from a bare code or a ``.../m/MBR-XXXX`` URL."""
    raw = raw.strip()
    if "/m/" in raw:
        match = QR_URL_PATTERN.search(raw)
        return match.group(1).upper() if match else None
    if QR_CODE_PATTERN.match(raw):
        return raw.upper()
    return None


# ---------------------------------------------------------------------------
# Member check-in
# ---------------------------------------------------------------------------


async def current_exclusive_block(
    db: AsyncSession, *, today: date, now_time: time
) -> Optional[ExclusiveBlock]:
    """Unlocked read; a rental cancelled a moment ago may still block once."""
    rows = await find_active_exclusive_rentals(db, on_date=today, at=now_time)
    if not rows:
        return None
    rental, area, coach = rows[0]
    return ExclusiveBlock(
        rental_id=rental.id,
        coach_name=coach.name,
        area_name=area.name,
        ends_at=rental.end_time,
    )


async def check_in_member(
    db: AsyncSession,
    member_id: uuid.UUID,
    *,
    checked_in_by: Optional[str] = None,
    now: Optional[datetime] = None,
) -> CheckInOutcome:
    moment = as_utc(now or utc_now())
    local_now = to_studio_time(moment)
    today = local_now.date()

    result = await db.execute(
        select(Member)
        .where(Member.id == member_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    member = result.scalar_one_or_none()
    if member is None:
        raise NotFound("Member", member_id)

    block_info = await current_exclusive_block(
        db, today=today, now_time=local_now.time()
    )
    decision = evaluate_member_access(member, today=today, exclusive_block=block_info)

    if decision.allowed and member.access_type == AccessType.CREDITS:
        member.credits_remaining = (member.credits_remaining or 0) - 1

    record = CheckInRecord(
        type=CheckInType.MEMBER,
        result=decision.result,
        reason_code=decision.reason_code.value,
        member_id=member.id,
        checked_in_by=checked_in_by,
        checked_in_at=moment,
    )
    db.add(record)
    await db.commit()
    await db.refresh(record)
    await db.refresh(member)

    logger.info(
        "Member check-in %s member=%s %s %s",
        record.id,
        member.id,
        decision.result.value,
        decision.reason_code.value,
    )
    return CheckInOutcome(record=record, decision=decision, member=member)


async def find_member_by_qr(db: AsyncSession, code: str) -> Optional[Member]:
    result = await db.execute(select(Member).where(Member.qr_code == code))
    return result.scalar_one_or_none()


async def check_in_by_qr(
    db: AsyncSession,
    raw: str,
    *,
    checked_in_by: Optional[str] = None,
    now: Optional[datetime] = None,
) -> CheckInOutcome:
    code = parse_member_qr(raw)
    if code is None:
        raise NotFound("Member", raw)
    member = await find_member_by_qr(db, code)
    if member is None:
        raise NotFound("Member", code)
    return await check_in_member(db, member.id, checked_in_by=checked_in_by, now=now)


# ---------------------------------------------------------------------------
# Guest check-in
# ---------------------------------------------------------------------------


async def check_in_guest(
    db: AsyncSession,
    rental_id: uuid.UUID,
    guest_name: str,
    *,
    checked_in_by: Optional[str] = None,
    now: Optional[datetime] = None,
) -> CheckInOutcome:
    """Admit a coach's guest during the rental. Over-capacity is a warning only."""
    moment = as_utc(now or utc_now())
    local_now = to_studio_time(moment)

    result = await db.execute(
        select(Rental)
        .where(Rental.id == rental_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    rental = result.scalar_one_or_none()
    if rental is None:
        raise NotFound("Rental", rental_id)

    decision = evaluate_guest_access(
        rental_is_scheduled=rental.status == RentalStatus.SCHEDULED,
        rental_date=rental.rental_date,
        start_time=rental.start_time,
        end_time=rental.end_time,
        today=local_now.date(),
        now_time=local_now.time(),
    )

    capacity_exceeded = False
    if decision.allowed:
        rental.guest_count += 1
        area = await db.get(Area, rental.area_id)
        capacity_exceeded = area is not None and rental.guest_count > area.capacity

    record = CheckInRecord(
        type=CheckInType.GUEST,
        result=decision.result,
        reason_code=decision.reason_code.value,
        guest_name=guest_name,
        rental_id=rental.id,
        checked_in_by=checked_in_by,
        checked_in_at=moment,
    )
    db.add(record)
    await db.commit()
    await db.refresh(record)
    await db.refresh(rental)

    if capacity_exceeded:
        logger.warning(
            "Rental %s over capacity: %d guests", rental.id, rental.guest_count
        )
    logger.info(
        "Guest check-in %s rental=%s %s %s",
        record.id,
        rental.id,
        decision.result.value,
        decision.reason_code.value,
    )
    return CheckInOutcome(
        record=record,
        decision=decision,
        rental=rental,
        capacity_exceeded=capacity_exceeded,
    )


async def check_in(
    db: AsyncSession,
    subject: CheckInSubject,
    *,
    checked_in_by: Optional[str] = None,
    now: Optional[datetime] = None,
) -> CheckInOutcome:
    if isinstance(subject, MemberSubject):
        return await check_in_member(
            db, subject.member_id, checked_in_by=checked_in_by, now=now
        )
    return await check_in_guest(
        db,
        subject.rental_id,
        subject.guest_name,
        checked_in_by=checked_in_by,
        now=now,
    )


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def list_checkins(
    db: AsyncSession,
    *,
    day: Optional[date] = None,
    checkin_type: Optional[CheckInType] = None,
    result: Optional[CheckInResult] = None,
    limit: int = 200,
) -> list[CheckInRecord]:
    """Newest first. ``day`` is a studio-local date."""
    query = select(CheckInRecord).order_by(CheckInRecord.checked_in_at.desc())
    if checkin_type is not None:
        query = query.where(CheckInRecord.type == checkin_type)
    if result is not None:
        query = query.where(CheckInRecord.result == result)
    if day is not None:
        start, end = studio_day_bounds(day)
        query = query.where(
            CheckInRecord.checked_in_at >= start, CheckInRecord.checked_in_at < end
        )
    rows = await db.execute(query.limit(limit))
    return list(rows.scalars().all())


async def search_members(
    db: AsyncSession, query: str, *, limit: int = 20
) -> list[Member]:
    """Front-desk lookup by name or phone."""
    pattern = f"%{query.strip()}%"
    result = await db.execute(
        select(Member)
        .where(or_(Member.name.ilike(pattern), Member.phone.ilike(pattern)))
        .order_by(Member.name)
        .limit(limit)
    )
    return list(result.scalars().all())
