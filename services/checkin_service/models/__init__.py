"""Check-in Service models package.

Re-exports all models and enums so that Alembic env.py and SQLAlchemy's
mapper registry see every model class on import.
"""

from services.checkin_service.models.checkin import CheckInRecord  # noqa: F401
from services.checkin_service.models.enums import (  # noqa: F401
    AccessType,
    CheckInResult,
    CheckInType,
    MemberStatus,
    ReasonCode,
    enum_values,
)
from services.checkin_service.models.member import Member  # noqa: F401

__all__ = [
    # Enums
    "AccessType",
    "CheckInResult",
    "CheckInType",
    "MemberStatus",
    "ReasonCode",
    "enum_values",
    # Models
    "CheckInRecord",
    "Member",
]
