"""Test application wiring helpers"""

from datetime import timedelta

import pytest
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy import update

from wa_automation.infrastructure.persistence.models.job import Job
from wa_automation.infrastructure.scheduling import CronScheduler
from wa_automation.presentation.api.dependencies import register_job_retention
from wa_automation.shared.enums import JobStatus
from wa_automation.shared.utils import utc_now


@pytest.mark.asyncio
async def test_job_retention_purges_old_finished_jobs_daily(job_service, session_factory):
    scheduler = CronScheduler()
    expired = await job_service.enqueue("tenant-1", "send_email")
    fresh = await job_service.enqueue("tenant-1", "send_email")

    async with session_factory.begin() as session:
        await session.execute(
            update(Job)
            .where(Job.id == expired.id)
            .values(status=JobStatus.COMPLETED.value, completed_at=utc_now() - timedelta(days=10))
        )

    job_id = register_job_retention(scheduler, job_service, retention_days=7)
    scheduled = scheduler.scheduler.get_job(job_id)

    assert isinstance(scheduled.trigger, IntervalTrigger)
    assert scheduled.trigger.interval == timedelta(days=1)

    await scheduled.func()

    remaining = {job.id for job in await job_service.list_jobs()}
    assert remaining == {fresh.id}

    await scheduler.stop()
    assert scheduler.scheduler.get_jobs() == []
