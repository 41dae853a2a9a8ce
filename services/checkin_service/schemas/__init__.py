"""Check-in Service schemas package."""

from services.checkin_service.schemas.checkin import (  # noqa: F401
    CheckInRecordResponse,
    CheckInResponse,
    ExclusiveBlockResponse,
    MemberResponse,
    QRCheckInRequest,
)

__all__ = [
    "CheckInRecordResponse",
    "CheckInResponse",
    "ExclusiveBlockResponse",
    "MemberResponse",
    "QRCheckInRequest",
]
