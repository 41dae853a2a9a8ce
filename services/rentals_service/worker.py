"""ARQ worker for the rental completion sweep and ledger reconciliation."""

from arq import cron
from libs.common.arq_config import get_redis_settings
from libs.common.logging import get_logger

logger = get_logger(__name__)


async def task_complete_elapsed_rentals(ctx: dict):
    from services.rentals_service.tasks import complete_elapsed

    logger.info("Running: complete_elapsed_rentals")
    await complete_elapsed()


async def task_reconcile_coach_balances(ctx: dict):
    from services.rentals_service.tasks import reconcile_balances

    logger.info("Running: reconcile_coach_balances")
    await reconcile_balances()


class WorkerSettings:
    redis_settings = get_redis_settings()

    functions = [
        task_complete_elapsed_rentals,
        task_reconcile_coach_balances,
    ]

    cron_jobs = [
        cron(
            task_complete_elapsed_rentals,
            minute={0, 15, 30, 45},
            run_at_startup=True,
        ),
        # Nightly, after credits that expired yesterday drop out of the balance
        cron(
            task_reconcile_coach_balances,
            hour={3},
            minute={10},
        ),
    ]
