"""Area registry endpoints."""

import uuid

from fastapi import APIRouter, Depends, status
from libs.auth.dependencies import require_admin, require_staff
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.rentals_service.schemas import AreaCreate, AreaResponse, AreaUpdate
from services.rentals_service.services import registry
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/areas", tags=["areas"])


@router.get("", response_model=list[AreaResponse])
async def list_areas(
    include_inactive: bool = False,
    _staff: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    return await registry.list_areas(db, include_inactive=include_inactive)


@router.post("", response_model=AreaResponse, status_code=status.HTTP_201_CREATED)
async def create_area(
    payload: AreaCreate,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await registry.create_area(db, **payload.model_dump())


@router.patch("/{area_id}", response_model=AreaResponse)
async def update_area(
    area_id: uuid.UUID,
    payload: AreaUpdate,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await registry.update_area(
        db, area_id, **payload.model_dump(exclude_unset=True)
    )


@router.post("/{area_id}/deactivate", response_model=AreaResponse)
async def deactivate_area(
    area_id: uuid.UUID,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await registry.deactivate_area(db, area_id)
