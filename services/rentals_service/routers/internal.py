"""Internal service-to-service endpoints, called by the scheduler with a service-role token."""

from fastapi import APIRouter, Depends
from libs.auth.dependencies import require_service_role
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.rentals_service.schemas import (
    CompleteElapsedResponse,
    ReconcileAllResponse,
)
from services.rentals_service.services import credit_ledger, lifecycle
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/internal", tags=["internal"])


@router.post("/rentals/complete-elapsed", response_model=CompleteElapsedResponse)
async def complete_elapsed(
    _service: AuthUser = Depends(require_service_role),
    db: AsyncSession = Depends(get_async_db),
):
    completed = await lifecycle.complete_elapsed_rentals(db)
    return CompleteElapsedResponse(completed=completed)


@router.post("/coaches/reconcile-balances", response_model=ReconcileAllResponse)
async def reconcile_balances(
    _service: AuthUser = Depends(require_service_role),
    db: AsyncSession = Depends(get_async_db),
):
    drifts = await credit_ledger.reconcile_all_balances(db)
    return ReconcileAllResponse(drifted={str(k): v for k, v in drifts.items()})
