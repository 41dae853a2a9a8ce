"""Check-in access rules. Pure: no I/O, all inputs passed in.

Member rules are evaluated in order and the first failure wins:

1. status LEAD, BLOQUEADO, PAUSADO or CANCELADO
2. no access plan
3. SUBSCRIPTION / DAILY_PASS expired before today
4. CREDITS plan without credits left
5. an exclusive-area rental in progress anywhere in the facility
"""

import uuid
from dataclasses import dataclass
from datetime import date, time
from typing import Optional

from services.checkin_service.models import (
    AccessType,
    CheckInResult,
    Member,
    MemberStatus,
    ReasonCode,
)

BLOCKED_STATUSES = {
    MemberStatus.LEAD,
    MemberStatus.BLOQUEADO,
    MemberStatus.PAUSADO,
    MemberStatus.CANCELADO,
}
DATED_ACCESS_TYPES = {AccessType.SUBSCRIPTION, AccessType.DAILY_PASS}

REASON_MESSAGES = {
    ReasonCode.OK: "Access granted.",
    ReasonCode.STATUS_LEAD: "Member has no active plan yet.",
    ReasonCode.STATUS_BLOQUEADO: "Member is blocked. Please see the front desk.",
    ReasonCode.STATUS_PAUSADO: "Membership is paused. Please see the front desk to reactivate.",
    ReasonCode.STATUS_CANCELADO: "Membership is cancelled. Please see the front desk.",
    ReasonCode.NO_ACCESS_PLAN: "Member has no active plan.",
    ReasonCode.EXPIRED: "Access has expired. Please renew.",
    ReasonCode.NO_CREDITS: "No credits left. Please buy more credits.",
    ReasonCode.AREA_EXCLUSIVE: "The studio is booked for an exclusive session.",
    ReasonCode.RENTAL_NOT_SCHEDULED: "The rental is no longer scheduled.",
    ReasonCode.OUTSIDE_RENTAL_WINDOW: "Guests may only enter during the rental.",
}


@dataclass(frozen=True)
class ExclusiveBlock:
    """The exclusive rental currently closing the floor to members."""

    rental_id: uuid.UUID
    coach_name: str
    area_name: str
    ends_at: time


@dataclass(frozen=True)
class AccessDecision:
    result: CheckInResult
    reason_code: ReasonCode
    exclusive_block: Optional[ExclusiveBlock] = None

    @property
    def allowed(self) -> bool:
        return self.result == CheckInResult.ALLOWED

    @property
    def message(self) -> str:
        return REASON_MESSAGES[self.reason_code]


def allow() -> AccessDecision:
    return AccessDecision(CheckInResult.ALLOWED, ReasonCode.OK)


def block(
    reason: ReasonCode, exclusive_block: Optional[ExclusiveBlock] = None
) -> AccessDecision:
    return AccessDecision(CheckInResult.BLOCKED, reason, exclusive_block)


def evaluate_member_access(
    member: Member,
    *,
    today: date,
    exclusive_block: Optional[ExclusiveBlock] = None,
) -> AccessDecision:
    if member.status in BLOCKED_STATUSES:
        return block(ReasonCode(f"STATUS_{member.status.name}"))

    if member.access_type is None:
        return block(ReasonCode.NO_ACCESS_PLAN)

    if member.access_type in DATED_ACCESS_TYPES:
        if member.access_expires_at is not None and member.access_expires_at < today:
            return block(ReasonCode.EXPIRED)

    if member.access_type == AccessType.CREDITS:
        if (member.credits_remaining or 0) <= 0:
            return block(ReasonCode.NO_CREDITS)

    if exclusive_block is not None:
        return block(ReasonCode.AREA_EXCLUSIVE, exclusive_block)

    return allow()


def evaluate_guest_access(
    *,
    rental_is_scheduled: bool,
    rental_date: date,
    start_time: time,
    end_time: time,
    today: date,
    now_time: time,
) -> AccessDecision:
    """Guests of a coach may enter only during that coach's scheduled rental."""
    if not rental_is_scheduled:
        return block(ReasonCode.RENTAL_NOT_SCHEDULED)
    if rental_date != today or not (start_time <= now_time <= end_time):
        return block(ReasonCode.OUTSIDE_RENTAL_WINDOW)
    return allow()
