"""Rental booking and lifecycle endpoints."""

import uuid
from datetime import date, datetime
from typing import Optional

from fastapi import (
    APIRouter,
    BackgroundTasks,
    Depends,
    HTTPException,
    Query,
    Response,
    status,
)
from libs.auth.dependencies import get_current_user, require_staff
from libs.auth.models import AuthUser
from libs.common.datetime_utils import to_studio_time, utc_now
from libs.db.session import get_async_db
from services.rentals_service.models import ActorRole, RentalStatus
from services.rentals_service.schemas import (
    ActiveExclusiveRental,
    RentalCreate,
    RentalReschedule,
    RentalResponse,
    RentalSeriesCreate,
    SeriesBookingResponse,
    SettleFeeRequest,
)
from services.rentals_service.services import booking, credit_ledger, lifecycle
from services.rentals_service.services.notifications import (
    notify_rental_booked,
    notify_rental_cancelled,
    notify_series_booked,
    schedule,
)
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/rentals", tags=["rentals"])


def actor_role_for(user: AuthUser) -> ActorRole:
    if user.role == "coach":
        return ActorRole.COACH
    if user.is_admin:
        return ActorRole.ADMIN
    if user.role == "staff":
        return ActorRole.STAFF
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="Coach or staff privileges required",
    )


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


@router.get("", response_model=list[RentalResponse])
async def list_rentals(
    rental_date: Optional[date] = None,
    area_id: Optional[uuid.UUID] = None,
    coach_id: Optional[uuid.UUID] = None,
    rental_status: Optional[RentalStatus] = Query(None, alias="status"),
    series_id: Optional[uuid.UUID] = None,
    _staff: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    return await booking.list_rentals(
        db,
        rental_date=rental_date,
        area_id=area_id,
        coach_id=coach_id,
        status=rental_status,
        series_id=series_id,
    )


@router.get("/active-exclusive", response_model=list[ActiveExclusiveRental])
async def list_active_exclusive(
    at: Optional[datetime] = None,
    _staff: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    """Exclusive-area rentals in progress at ``at`` (default: now)."""
    local = to_studio_time(at or utc_now())
    rows = await booking.find_active_exclusive_rentals(
        db, on_date=local.date(), at=local.time()
    )
    return [
        ActiveExclusiveRental(
            rental_id=rental.id,
            area_id=area.id,
            area_name=area.name,
            coach_id=coach.id,
            coach_name=coach.name,
            start_time=rental.start_time,
            end_time=rental.end_time,
        )
        for rental, area, coach in rows
    ]


@router.get("/{rental_id}", response_model=RentalResponse)
async def get_rental(
    rental_id: uuid.UUID,
    _staff: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    return await booking.get_rental(db, rental_id)


# ---------------------------------------------------------------------------
# Booking
# ---------------------------------------------------------------------------


@router.post("", response_model=RentalResponse, status_code=status.HTTP_201_CREATED)
async def create_rental(
    payload: RentalCreate,
    background_tasks: BackgroundTasks,
    staff: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    rental = await booking.create_rental(
        db, **payload.model_dump(), created_by=staff.user_id
    )
    schedule(background_tasks, notify_rental_booked, rental.id)
    return rental


@router.post(
    "/series",
    response_model=SeriesBookingResponse,
    status_code=status.HTTP_201_CREATED,
    responses={207: {"model": SeriesBookingResponse}},
)
async def create_rental_series(
    payload: RentalSeriesCreate,
    response: Response,
    background_tasks: BackgroundTasks,
    staff: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    """Book a weekly (or every ``interval_days``) series.

    Occurrences that conflict are skipped and listed in ``failed``; the
    response is 207 when some, but not all, occurrences were booked.
    """
    result = await booking.create_rental_series(
        db, **payload.model_dump(), created_by=staff.user_id
    )
    if result.is_partial:
        response.status_code = status.HTTP_207_MULTI_STATUS
    schedule(
        background_tasks,
        notify_series_booked,
        payload.coach_id,
        result.series_id,
        [r.rental_date.isoformat() for r in result.created],
        [f["rental_date"] for f in result.failed],
    )
    return SeriesBookingResponse(
        series_id=result.series_id,
        created=[RentalResponse.model_validate(r) for r in result.created],
        failed=result.failed,
        is_partial=result.is_partial,
    )


@router.patch("/{rental_id}/schedule", response_model=RentalResponse)
async def reschedule_rental(
    rental_id: uuid.UUID,
    payload: RentalReschedule,
    _staff: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    return await booking.reschedule_rental(
        db, rental_id, **payload.model_dump(exclude_unset=True)
    )


@router.post("/{rental_id}/settle-fee", response_model=RentalResponse)
async def settle_rental_fee(
    rental_id: uuid.UUID,
    payload: SettleFeeRequest,
    _staff: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    return await booking.settle_rental_fee(
        db, rental_id, base_price_cents=payload.base_price_cents
    )


@router.post("/{rental_id}/redeem-credit", response_model=RentalResponse)
async def redeem_credit(
    rental_id: uuid.UUID,
    staff: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    """Pay the rental's fee with one of the coach's credits."""
    return await credit_ledger.redeem_credit_for_rental(
        db, rental_id=rental_id, actor_id=staff.user_id
    )


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


@router.post("/{rental_id}/cancel", response_model=RentalResponse)
async def cancel_rental(
    rental_id: uuid.UUID,
    background_tasks: BackgroundTasks,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Cancel a rental. Coaches may cancel their own; staff may cancel any."""
    rental = await lifecycle.cancel_rental(
        db,
        rental_id,
        actor_id=current_user.user_id,
        actor_role=actor_role_for(current_user),
    )
    schedule(background_tasks, notify_rental_cancelled, rental.id)
    return rental


@router.post("/{rental_id}/complete", response_model=RentalResponse)
async def complete_rental(
    rental_id: uuid.UUID,
    _staff: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    return await lifecycle.complete_rental(db, rental_id)


@router.post("/series/{series_id}/cancel", response_model=list[RentalResponse])
async def cancel_series(
    series_id: uuid.UUID,
    background_tasks: BackgroundTasks,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    cancelled = await lifecycle.cancel_series(
        db,
        series_id,
        actor_id=current_user.user_id,
        actor_role=actor_role_for(current_user),
    )
    for rental in cancelled:
        schedule(background_tasks, notify_rental_cancelled, rental.id)
    return cancelled
