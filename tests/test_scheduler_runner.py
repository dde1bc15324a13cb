from datetime import timedelta

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from unihaven.config import Settings
from unihaven.scheduler.runner import (
    RECONCILIATION_JOB_ID,
    create_scheduler,
    start_scheduler,
)


class _StubReconciler:
    async def run_scheduled(self):
        return None


class TestCreateScheduler:
    def test_registers_single_interval_job(self):
        reconciler = _StubReconciler()
        scheduler = create_scheduler(reconciler, Settings(reconcile_interval_seconds=60))

        assert isinstance(scheduler, AsyncIOScheduler)
        jobs = scheduler.get_jobs()
        assert [job.id for job in jobs] == [RECONCILIATION_JOB_ID]

        job = jobs[0]
        assert job.func == reconciler.run_scheduled
        assert isinstance(job.trigger, IntervalTrigger)
        assert job.trigger.interval == timedelta(seconds=60)

    def test_overlapping_runs_are_not_allowed(self):
        scheduler = create_scheduler(_StubReconciler(), Settings())
        job = scheduler.get_job(RECONCILIATION_JOB_ID)

        assert job.max_instances == 1
        assert job.coalesce is True

    def test_interval_is_configurable(self):
        scheduler = create_scheduler(
            _StubReconciler(), Settings(reconcile_interval_seconds=300)
        )
        job = scheduler.get_job(RECONCILIATION_JOB_ID)
        assert job.trigger.interval == timedelta(seconds=300)

    def test_not_started_on_creation(self):
        scheduler = create_scheduler(_StubReconciler(), Settings())
        assert scheduler.running is False


async def test_start_scheduler_runs_inside_event_loop():
    scheduler = start_scheduler(_StubReconciler(), Settings())
    try:
        assert scheduler.running is True
        assert scheduler.get_job(RECONCILIATION_JOB_ID).next_run_time is not None
    finally:
        scheduler.shutdown(wait=False)
