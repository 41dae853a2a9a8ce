"""Front-desk member lookup."""

import uuid

from fastapi import APIRouter, Depends, Query
from libs.auth.dependencies import require_staff
from libs.auth.models import AuthUser
from libs.common.errors import NotFound
from libs.db.session import get_async_db
from services.checkin_service.models import Member
from services.checkin_service.schemas import MemberResponse
from services.checkin_service.services import checkin_ops
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/members", tags=["members"])


@router.get("", response_model=list[MemberResponse])
async def search_members(
    search: str = Query(..., min_length=2),
    _staff: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    """Search by name or phone."""
    return await checkin_ops.search_members(db, search)


@router.get("/{member_id}", response_model=MemberResponse)
async def get_member(
    member_id: uuid.UUID,
    _staff: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    member = await db.get(Member, member_id)
    if member is None:
        raise NotFound("Member", member_id)
    return member
