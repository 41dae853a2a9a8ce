"""Rentals Service schemas package.

Re-exports all schemas so routers import from one place.
"""

from services.rentals_service.schemas.area import (  # noqa: F401
    AreaCreate,
    AreaResponse,
    AreaUpdate,
)
from services.rentals_service.schemas.coach import (  # noqa: F401
    CoachCreate,
    CoachResponse,
    CoachUpdate,
)
from services.rentals_service.schemas.credit import (  # noqa: F401
    AdjustCreditRequest,
    CoachCreditsResponse,
    CreditEntryResponse,
    ReconcileAllResponse,
    ReconcileResponse,
)
from services.rentals_service.schemas.rental import (  # noqa: F401
    ActiveExclusiveRental,
    CompleteElapsedResponse,
    RentalCreate,
    RentalReschedule,
    RentalResponse,
    RentalSeriesCreate,
    SeriesBookingResponse,
    SeriesFailure,
    SettleFeeRequest,
)

__all__ = [
    "ActiveExclusiveRental",
    "AdjustCreditRequest",
    "AreaCreate",
    "AreaResponse",
    "AreaUpdate",
    "CoachCreate",
    "CoachCreditsResponse",
    "CoachResponse",
    "CoachUpdate",
    "CompleteElapsedResponse",
    "CreditEntryResponse",
    "ReconcileAllResponse",
    "ReconcileResponse",
    "RentalCreate",
    "RentalReschedule",
    "RentalResponse",
    "RentalSeriesCreate",
    "SeriesBookingResponse",
    "SeriesFailure",
    "SettleFeeRequest",
]
