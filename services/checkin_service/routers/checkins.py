"""Front-desk check-in endpoints."""

from dataclasses import asdict
from datetime import date
from typing import Optional, Union

from fastapi import APIRouter, Body, Depends, Query, status
from libs.auth.dependencies import require_staff
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.checkin_service.models import CheckInResult, CheckInType
from services.checkin_service.schemas import (
    CheckInRecordResponse,
    CheckInResponse,
    ExclusiveBlockResponse,
    QRCheckInRequest,
)
from services.checkin_service.services import checkin_ops
from services.checkin_service.services.checkin_ops import (
    CheckInOutcome,
    GuestSubject,
    MemberSubject,
)
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/checkins", tags=["checkins"])


def _to_response(outcome: CheckInOutcome) -> CheckInResponse:
    record = outcome.record
    block = outcome.decision.exclusive_block
    return CheckInResponse(
        id=record.id,
        type=record.type,
        result=record.result,
        reason_code=record.reason_code,
        message=outcome.decision.message,
        member_id=record.member_id,
        member_name=outcome.member.name if outcome.member else None,
        credits_remaining=outcome.member.credits_remaining if outcome.member else None,
        guest_name=record.guest_name,
        rental_id=record.rental_id,
        guest_count=outcome.rental.guest_count if outcome.rental else None,
        capacity_exceeded=outcome.capacity_exceeded,
        exclusive_block=ExclusiveBlockResponse(**asdict(block)) if block else None,
        checked_in_at=record.checked_in_at,
    )


@router.post("", response_model=CheckInResponse, status_code=status.HTTP_201_CREATED)
async def check_in(
    subject: Union[MemberSubject, GuestSubject] = Body(..., discriminator="type"),
    staff: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    """Evaluate and record a member or guest check-in.

    Blocked check-ins are recorded too and still return 201; inspect
    ``result`` and ``reason_code``.
    """
    outcome = await checkin_ops.check_in(db, subject, checked_in_by=staff.user_id)
    return _to_response(outcome)


@router.post("/qr", response_model=CheckInResponse, status_code=status.HTTP_201_CREATED)
async def check_in_by_qr(
    payload: QRCheckInRequest,
    staff: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    outcome = await checkin_ops.check_in_by_qr(
        db, payload.raw, checked_in_by=staff.user_id
    )
    return _to_response(outcome)


@router.get("", response_model=list[CheckInRecordResponse])
async def list_checkins(
    day: Optional[date] = None,
    checkin_type: Optional[CheckInType] = Query(None, alias="type"),
    result: Optional[CheckInResult] = None,
    limit: int = Query(200, ge=1, le=1000),
    _staff: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    return await checkin_ops.list_checkins(
        db, day=day, checkin_type=checkin_type, result=result, limit=limit
    )
