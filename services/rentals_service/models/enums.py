"""Enums for the Rentals Service models."""

import enum


def enum_values(enum_cls):
    """Return persistent DB values for SAEnum mappings."""
    return [member.value for member in enum_cls]


class RentalStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class FeeType(str, enum.Enum):
    # fee_value in cents
    FIXED = "fixed"
    # fee_value in percent x 100 (2000 == 20.00%)
    PERCENTAGE = "percentage"


class CreditReason(str, enum.Enum):
    CANCELLATION = "cancellation"
    ADJUSTMENT = "adjustment"
    USED = "used"


class ActorRole(str, enum.Enum):
    """Who is acting on a rental; drives the cancellation notice threshold."""

    COACH = "coach"
    STAFF = "staff"
    ADMIN = "admin"
    SYSTEM = "system"
