"""Datetime utilities.

Timestamps stored in the database are timezone-aware UTC. Rental dates,
start/end times and check-in windows are studio wall-clock values, so any
"now" used against them is first converted to the studio timezone.

Usage:
    from libs.common.datetime_utils import utc_now, to_studio_time

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
"""

from datetime import date, datetime, time, timedelta, timezone
from functools import lru_cache
from zoneinfo import ZoneInfo

from libs.common.config import get_settings


def utc_now() -> datetime:
    """Return timezone-aware UTC datetime.

    This replaces the deprecated datetime.utcnow() which returns naive datetimes.
    Always use this for timestamps in the database.
    """
    return datetime.now(timezone.utc)


@lru_cache
def studio_tz() -> ZoneInfo:
    return ZoneInfo(get_settings().TIMEZONE)


def to_studio_time(value: datetime) -> datetime:
    """Convert ``value`` to the studio timezone.

    Naive datetimes are taken to already be studio wall-clock time.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=studio_tz())
    return value.astimezone(studio_tz())


def studio_now() -> datetime:
    return datetime.now(studio_tz())


def combine_studio(day: date, at: time) -> datetime:
    """Aware datetime for a studio-local date and wall-clock time."""
    return datetime.combine(day, at, tzinfo=studio_tz())


def hours_between(start: datetime, end: datetime) -> float:
    """Signed elapsed hours from ``start`` to ``end``, DST transitions included."""
    return (as_utc(end) - as_utc(start)).total_seconds() / 3600


def as_utc(value: datetime) -> datetime:
    """Normalise to aware UTC; naive input is studio wall-clock time."""
    return to_studio_time(value).astimezone(timezone.utc)


def studio_day_bounds(day: date) -> tuple[datetime, datetime]:
    """UTC ``[start, end)`` of a studio-local calendar day."""
    start = combine_studio(day, time.min)
    end = combine_studio(day + timedelta(days=1), time.min)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)
