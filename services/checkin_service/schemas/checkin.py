"""Check-in request/response schemas."""

import uuid
from datetime import date, datetime, time
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from services.checkin_service.models.enums import (
    AccessType,
    CheckInResult,
    CheckInType,
    MemberStatus,
)


class QRCheckInRequest(BaseModel):
    raw: str = Field(..., min_length=1, description="Scanned code or member URL")


class ExclusiveBlockResponse(BaseModel):
    rental_id: uuid.UUID
    coach_name: str
    area_name: str
    ends_at: time


class CheckInResponse(BaseModel):
    id: uuid.UUID
    type: CheckInType
    result: CheckInResult
    reason_code: str
    message: str
    member_id: Optional[uuid.UUID] = None
    member_name: Optional[str] = None
    credits_remaining: Optional[int] = None
    guest_name: Optional[str] = None
    rental_id: Optional[uuid.UUID] = None
    guest_count: Optional[int] = None
    capacity_exceeded: bool = False
    exclusive_block: Optional[ExclusiveBlockResponse] = None
    checked_in_at: datetime


class CheckInRecordResponse(BaseModel):
    id: uuid.UUID
    type: CheckInType
    result: CheckInResult
    reason_code: str
    member_id: Optional[uuid.UUID] = None
    guest_name: Optional[str] = None
    rental_id: Optional[uuid.UUID] = None
    checked_in_by: Optional[str] = None
    checked_in_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MemberResponse(BaseModel):
    id: uuid.UUID
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    qr_code: str
    status: MemberStatus
    access_type: Optional[AccessType] = None
    access_expires_at: Optional[date] = None
    credits_remaining: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)
