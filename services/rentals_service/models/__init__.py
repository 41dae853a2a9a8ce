"""Rentals Service models package.

Re-exports all models and enums so that Alembic env.py and SQLAlchemy's
mapper registry see every model class on import.
"""

from services.rentals_service.models.area import Area  # noqa: F401
from services.rentals_service.models.coach import Coach  # noqa: F401
from services.rentals_service.models.credit import CoachCreditEntry  # noqa: F401
from services.rentals_service.models.enums import (  # noqa: F401
    ActorRole,
    CreditReason,
    FeeType,
    RentalStatus,
    enum_values,
)
from services.rentals_service.models.rental import Rental  # noqa: F401

__all__ = [
    # Enums
    "ActorRole",
    "CreditReason",
    "FeeType",
    "RentalStatus",
    "enum_values",
    # Models
    "Area",
    "Coach",
    "CoachCreditEntry",
    "Rental",
]
