from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from loguru import logger

from unihaven.config import Settings, get_settings
from unihaven.scheduler.jobs import Reconciler

RECONCILIATION_JOB_ID = "reconciliation_pass"


def create_scheduler(
    reconciler: Reconciler, settings: Optional[Settings] = None
) -> AsyncIOScheduler:
    settings = settings or get_settings()
    scheduler = AsyncIOScheduler(timezone="UTC")

    # max_instances=1: a run that comes due while the previous one is still
    # going is skipped by APScheduler instead of starting a second pass
    scheduler.add_job(
        reconciler.run_scheduled,
        IntervalTrigger(seconds=settings.reconcile_interval_seconds),
        id=RECONCILIATION_JOB_ID,
        name="Reconciliation Pass",
        max_instances=1,
        coalesce=True,
    )

    logger.info(
        f"Scheduler configured: reconciliation every {settings.reconcile_interval_seconds}s"
    )
    return scheduler


def start_scheduler(
    reconciler: Reconciler, settings: Optional[Settings] = None
) -> AsyncIOScheduler:
    """Create and start the scheduler; must be called with an event loop running."""
    scheduler = create_scheduler(reconciler, settings)
    scheduler.start()
    logger.info("Scheduler started")
    return scheduler
