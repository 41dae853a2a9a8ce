"""Scheduled maintenance tasks for the rentals service."""

from typing import Optional

from libs.common.logging import get_logger
from libs.db.config import AsyncSessionLocal
from services.rentals_service.services.credit_ledger import reconcile_all_balances
from services.rentals_service.services.lifecycle import complete_elapsed_rentals
from sqlalchemy.ext.asyncio import async_sessionmaker

logger = get_logger(__name__)


async def complete_elapsed(session_factory: Optional[async_sessionmaker] = None) -> int:
    """Mark every scheduled rental whose end time has passed as completed."""
    factory = session_factory or AsyncSessionLocal
    async with factory() as db:
        completed = await complete_elapsed_rentals(db)
    logger.info("Completion sweep finished: %d rental(s) completed", completed)
    return completed


async def reconcile_balances(session_factory: Optional[async_sessionmaker] = None) -> int:
    """Rebuild every coach's cached balance from the ledger, expiring old credits."""
    factory = session_factory or AsyncSessionLocal
    async with factory() as db:
        drifts = await reconcile_all_balances(db)
    logger.info("Balance reconciliation finished: %d coach(es) corrected", len(drifts))
    return len(drifts)
