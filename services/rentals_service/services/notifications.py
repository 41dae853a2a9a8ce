"""Coach notifications for rental events.

Dispatched from routers through FastAPI ``BackgroundTasks`` after the
database commit. Delivery failures are logged by the email client and never
reach the caller.
"""

import functools
import uuid
from typing import Any, Callable, Optional

from fastapi import BackgroundTasks
from libs.common.config import get_settings
from libs.common.emails.client import get_email_client
from libs.common.logging import get_logger
from libs.db.config import AsyncSessionLocal
from services.rentals_service.models import Area, Coach, Rental

logger = get_logger(__name__)


def schedule(background_tasks: BackgroundTasks, func: Callable, *args: Any) -> None:
    """Queue a notification to run after the response, if notifications are on."""
    if get_settings().NOTIFICATIONS_ENABLED:
        background_tasks.add_task(func, *args)


def best_effort(func: Callable) -> Callable:
    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> None:
        try:
            await func(*args, **kwargs)
        except Exception:
            logger.exception("Notification %s failed", func.__name__)

    return wrapper


def _rental_data(rental: Rental, coach: Coach, area: Optional[Area]) -> dict:
    return {
        "coach_name": coach.name,
        "area_name": area.name if area else None,
        "rental_id": str(rental.id),
        "rental_date": rental.rental_date.isoformat(),
        "start_time": rental.start_time.strftime("%H:%M"),
        "end_time": rental.end_time.strftime("%H:%M"),
        "fee_charged_cents": rental.fee_charged_cents,
    }


async def _load(rental_id: uuid.UUID) -> Optional[tuple[Rental, Coach, Optional[Area]]]:
    async with AsyncSessionLocal() as db:
        rental = await db.get(Rental, rental_id)
        if rental is None:
            return None
        coach = await db.get(Coach, rental.coach_id)
        area = await db.get(Area, rental.area_id)
        return rental, coach, area


@best_effort
async def notify_rental_booked(rental_id: uuid.UUID) -> None:
    loaded = await _load(rental_id)
    if loaded is None:
        return
    rental, coach, area = loaded
    if not coach.email:
        logger.info("Coach %s has no email; skipping booking notice", coach.id)
        return
    await get_email_client().send_template(
        template_type="rental_confirmed",
        to_email=coach.email,
        template_data=_rental_data(rental, coach, area),
    )


@best_effort
async def notify_rental_cancelled(rental_id: uuid.UUID) -> None:
    loaded = await _load(rental_id)
    if loaded is None:
        return
    rental, coach, area = loaded
    if not coach.email:
        logger.info("Coach %s has no email; skipping cancellation notice", coach.id)
        return
    data = _rental_data(rental, coach, area)
    data["credit_generated"] = rental.credit_generated
    data["credits_balance"] = coach.credits_balance
    await get_email_client().send_template(
        template_type="rental_cancelled",
        to_email=coach.email,
        template_data=data,
    )


@best_effort
async def notify_series_booked(
    coach_id: uuid.UUID, series_id: uuid.UUID, booked: list[str], failed: list[str]
) -> None:
    async with AsyncSessionLocal() as db:
        coach = await db.get(Coach, coach_id)
    if coach is None or not coach.email:
        return
    await get_email_client().send_template(
        template_type="series_booked",
        to_email=coach.email,
        template_data={
            "coach_name": coach.name,
            "series_id": str(series_id),
            "booked_dates": booked,
            "failed_dates": failed,
        },
    )
