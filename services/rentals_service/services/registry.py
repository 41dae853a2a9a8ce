"""Area and coach registries: reference data the booking engine validates against."""

import uuid
from typing import Any, Optional

from libs.common.datetime_utils import utc_now
from libs.common.errors import NotFound
from libs.common.logging import get_logger
from services.rentals_service.models import Area, Coach, FeeType
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

AREA_MUTABLE_FIELDS = {"name", "capacity", "is_exclusive", "active"}
# credits_balance is owned by the credit ledger
COACH_MUTABLE_FIELDS = {
    "name",
    "email",
    "phone",
    "modality",
    "fee_type",
    "fee_value",
    "active",
    "linked_user_id",
}


def _apply_fields(obj: Any, fields: dict[str, Any], allowed: set[str]) -> None:
    unknown = set(fields) - allowed
    if unknown:
        raise ValueError(f"Fields not updatable: {', '.join(sorted(unknown))}")
    for key, value in fields.items():
        setattr(obj, key, value)
    obj.updated_at = utc_now()


# ---------------------------------------------------------------------------
# Areas
# ---------------------------------------------------------------------------


async def create_area(
    db: AsyncSession,
    *,
    name: str,
    capacity: int,
    is_exclusive: bool = False,
) -> Area:
    area = Area(name=name, capacity=capacity, is_exclusive=is_exclusive, active=True)
    db.add(area)
    await db.commit()
    await db.refresh(area)
    logger.info("Created area %s (%s) exclusive=%s", area.id, name, is_exclusive)
    return area


async def get_area(db: AsyncSession, area_id: uuid.UUID) -> Area:
    area = await db.get(Area, area_id)
    if area is None:
        raise NotFound("Area", area_id)
    return area


async def list_areas(db: AsyncSession, *, include_inactive: bool = False) -> list[Area]:
    query = select(Area).order_by(Area.name)
    if not include_inactive:
        query = query.where(Area.active.is_(True))
    result = await db.execute(query)
    return list(result.scalars().all())


async def update_area(db: AsyncSession, area_id: uuid.UUID, **fields: Any) -> Area:
    area = await get_area(db, area_id)
    _apply_fields(area, fields, AREA_MUTABLE_FIELDS)
    await db.commit()
    await db.refresh(area)
    logger.info("Updated area %s: %s", area_id, sorted(fields))
    return area


async def deactivate_area(db: AsyncSession, area_id: uuid.UUID) -> Area:
    """Existing rentals are untouched; new bookings are refused."""
    return await update_area(db, area_id, active=False)


# ---------------------------------------------------------------------------
# Coaches
# ---------------------------------------------------------------------------


async def create_coach(
    db: AsyncSession,
    *,
    name: str,
    fee_type: FeeType = FeeType.FIXED,
    fee_value: int = 0,
    email: Optional[str] = None,
    phone: Optional[str] = None,
    modality: Optional[str] = None,
    linked_user_id: Optional[str] = None,
) -> Coach:
    coach = Coach(
        name=name,
        email=email,
        phone=phone,
        modality=modality,
        fee_type=fee_type,
        fee_value=fee_value,
        credits_balance=0,
        active=True,
        linked_user_id=linked_user_id,
    )
    db.add(coach)
    await db.commit()
    await db.refresh(coach)
    logger.info("Created coach %s (%s) fee=%s/%d", coach.id, name, fee_type.value, fee_value)
    return coach


async def get_coach(db: AsyncSession, coach_id: uuid.UUID) -> Coach:
    coach = await db.get(Coach, coach_id)
    if coach is None:
        raise NotFound("Coach", coach_id)
    return coach


async def get_coach_for_user(db: AsyncSession, user_id: str) -> Optional[Coach]:
    result = await db.execute(select(Coach).where(Coach.linked_user_id == user_id))
    return result.scalar_one_or_none()


async def list_coaches(
    db: AsyncSession,
    *,
    include_inactive: bool = False,
    modality: Optional[str] = None,
) -> list[Coach]:
    query = select(Coach).order_by(Coach.name)
    if not include_inactive:
        query = query.where(Coach.active.is_(True))
    if modality:
        query = query.where(Coach.modality == modality)
    result = await db.execute(query)
    return list(result.scalars().all())


async def update_coach(db: AsyncSession, coach_id: uuid.UUID, **fields: Any) -> Coach:
    coach = await get_coach(db, coach_id)
    _apply_fields(coach, fields, COACH_MUTABLE_FIELDS)
    await db.commit()
    await db.refresh(coach)
    logger.info("Updated coach %s: %s", coach_id, sorted(fields))
    return coach
