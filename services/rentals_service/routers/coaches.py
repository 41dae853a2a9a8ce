"""Coach registry and credit ledger endpoints."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from libs.auth.dependencies import require_admin, require_staff
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.rentals_service.schemas import (
    AdjustCreditRequest,
    CoachCreate,
    CoachCreditsResponse,
    CoachResponse,
    CoachUpdate,
    CreditEntryResponse,
    ReconcileResponse,
)
from services.rentals_service.services import credit_ledger, registry
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/coaches", tags=["coaches"])


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


@router.get("", response_model=list[CoachResponse])
async def list_coaches(
    include_inactive: bool = False,
    modality: Optional[str] = None,
    _staff: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    return await registry.list_coaches(
        db, include_inactive=include_inactive, modality=modality
    )


@router.post("", response_model=CoachResponse, status_code=status.HTTP_201_CREATED)
async def create_coach(
    payload: CoachCreate,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await registry.create_coach(db, **payload.model_dump())


@router.get("/{coach_id}", response_model=CoachResponse)
async def get_coach(
    coach_id: uuid.UUID,
    _staff: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    return await registry.get_coach(db, coach_id)


@router.patch("/{coach_id}", response_model=CoachResponse)
async def update_coach(
    coach_id: uuid.UUID,
    payload: CoachUpdate,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await registry.update_coach(
        db, coach_id, **payload.model_dump(exclude_unset=True)
    )


# ---------------------------------------------------------------------------
# Credits
# ---------------------------------------------------------------------------


@router.get("/{coach_id}/credits", response_model=CoachCreditsResponse)
async def get_coach_credits(
    coach_id: uuid.UUID,
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    _staff: AuthUser = Depends(require_staff),
    db: AsyncSession = Depends(get_async_db),
):
    """Ledger balance (expired credits excluded) plus recent entries."""
    coach = await registry.get_coach(db, coach_id)
    balance = await credit_ledger.get_balance(db, coach_id)
    entries = await credit_ledger.list_entries(db, coach_id, limit=limit, offset=offset)
    return CoachCreditsResponse(
        coach_id=coach.id,
        balance=balance,
        cached_balance=coach.credits_balance,
        entries=[CreditEntryResponse.model_validate(e) for e in entries],
    )


@router.post(
    "/{coach_id}/credits/adjust",
    response_model=CreditEntryResponse,
    status_code=status.HTTP_201_CREATED,
)
async def adjust_coach_credits(
    coach_id: uuid.UUID,
    payload: AdjustCreditRequest,
    admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await credit_ledger.adjust_credit(
        db,
        coach_id=coach_id,
        delta=payload.delta,
        note=payload.note,
        actor_id=admin.user_id,
    )


@router.post("/{coach_id}/credits/reconcile", response_model=ReconcileResponse)
async def reconcile_coach_credits(
    coach_id: uuid.UUID,
    _admin: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    drift = await credit_ledger.reconcile_coach_balance(db, coach_id)
    coach = await registry.get_coach(db, coach_id)
    return ReconcileResponse(
        coach_id=coach_id, balance=coach.credits_balance, drift=drift
    )
