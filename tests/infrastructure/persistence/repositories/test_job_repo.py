"""Test job repository"""

import asyncio
from datetime import timedelta

import pytest
from sqlalchemy import update

from wa_automation.domain.entities.job import EnqueueOptions, JobFilter
from wa_automation.infrastructure.persistence.models.job import Job
from wa_automation.infrastructure.persistence.repositories.job_repo import JobRepository
from wa_automation.shared.enums import JobPriority, JobStatus
from wa_automation.shared.utils import ensure_utc, utc_now


async def enqueue(session_factory, job_type="send_email", **options) -> Job:
    async with session_factory.begin() as session:
        return await JobRepository(session).enqueue(
            "tenant-1", job_type, {"to": "budi@example.com"}, EnqueueOptions(**options)
        )


async def claim(session_factory, queue="default") -> Job | None:
    async with session_factory.begin() as session:
        return await JobRepository(session).claim_next(queue)


async def fail(session_factory, job_id: str, error="smtp down") -> Job:
    async with session_factory.begin() as session:
        return await JobRepository(session).mark_failed(job_id, error)


async def make_due(session_factory, job_id: str) -> None:
    async with session_factory.begin() as session:
        await session.execute(
            update(Job).where(Job.id == job_id).values(scheduled_at=utc_now() - timedelta(seconds=1))
        )


@pytest.mark.asyncio
async def test_enqueue_applies_defaults(session_factory):
    job = await enqueue(session_factory, queue="", max_retries=0)

    assert job.queue == "default"
    assert job.max_retries == 3
    assert job.status == JobStatus.PENDING.value
    assert job.attempts == 0
    assert job.priority == JobPriority.NORMAL


@pytest.mark.asyncio
async def test_claim_marks_processing_and_counts_attempt(session_factory):
    job = await enqueue(session_factory)

    claimed = await claim(session_factory)

    assert claimed.id == job.id
    assert claimed.status == JobStatus.PROCESSING.value
    assert claimed.attempts == 1
    assert claimed.started_at is not None
    assert await claim(session_factory) is None


@pytest.mark.asyncio
async def test_claim_prefers_priority_then_age(session_factory):
    low = await enqueue(session_factory, priority=JobPriority.LOW)
    first_normal = await enqueue(session_factory)
    second_normal = await enqueue(session_factory)
    critical = await enqueue(session_factory, priority=JobPriority.CRITICAL)

    order = [(await claim(session_factory)).id for _ in range(4)]

    assert order == [critical.id, first_normal.id, second_normal.id, low.id]


@pytest.mark.asyncio
async def test_claim_skips_future_and_other_queues(session_factory):
    await enqueue(session_factory, schedule_at=utc_now() + timedelta(hours=1))
    await enqueue(session_factory, queue="reports")

    assert await claim(session_factory) is None
    assert (await claim(session_factory, "reports")).queue == "reports"


@pytest.mark.asyncio
async def test_concurrent_claims_hand_out_a_job_once(session_factory):
    """
    GIVEN a queue holding exactly one eligible job
    WHEN two callers claim at the same time
    THEN exactly one of them receives it.
    """
    job = await enqueue(session_factory)

    results = await asyncio.gather(claim(session_factory), claim(session_factory))

    claimed = [r for r in results if r is not None]
    assert len(claimed) == 1
    assert claimed[0].id == job.id


@pytest.mark.asyncio
async def test_failures_retry_with_backoff_until_budget_is_spent(session_factory):
    """
    GIVEN a job with max_retries=2
    WHEN it fails three times in a row
    THEN failures 1 and 2 schedule retries with growing delays and failure 3 is terminal.
    """
    job = await enqueue(session_factory, max_retries=2)
    scheduled = []

    for _ in range(2):
        await claim(session_factory)
        failed = await fail(session_factory, job.id)
        assert failed.status == JobStatus.RETRYING.value
        assert failed.error == "smtp down"
        scheduled.append(ensure_utc(failed.scheduled_at) - ensure_utc(failed.updated_at))
        await make_due(session_factory, job.id)

    await claim(session_factory)
    final = await fail(session_factory, job.id, "smtp still down")

    assert scheduled == [timedelta(seconds=2), timedelta(seconds=4)]
    assert final.status == JobStatus.FAILED.value
    assert final.attempts == 3
    assert final.failed_at is not None
    assert final.error == "smtp still down"


@pytest.mark.asyncio
async def test_retrying_job_is_not_claimed_before_its_backoff(session_factory):
    job = await enqueue(session_factory)
    await claim(session_factory)
    await fail(session_factory, job.id)

    assert await claim(session_factory) is None

    await make_due(session_factory, job.id)
    assert (await claim(session_factory)).attempts == 2


@pytest.mark.asyncio
async def test_mark_failed_unknown_job(session_factory):
    assert await fail(session_factory, "missing") is None


@pytest.mark.asyncio
async def test_cancel_only_from_pending_or_retrying(session_factory):
    pending = await enqueue(session_factory)
    processing = await enqueue(session_factory, queue="other")
    await claim(session_factory, "other")

    async with session_factory.begin() as session:
        repo = JobRepository(session)
        assert await repo.cancel(processing.id) is False
        assert await repo.cancel(pending.id) is True
        assert await repo.cancel(pending.id) is False
        assert await repo.cancel("missing") is False

    async with session_factory() as session:
        job = await JobRepository(session).get_by_id(pending.id)
    assert job.status == JobStatus.CANCELLED.value


@pytest.mark.asyncio
async def test_cancel_retrying_job(session_factory):
    job = await enqueue(session_factory)
    await claim(session_factory)
    await fail(session_factory, job.id)

    async with session_factory.begin() as session:
        assert await JobRepository(session).cancel(job.id) is True


@pytest.mark.asyncio
async def test_stats_and_status_counts(session_factory):
    done = await enqueue(session_factory)
    await enqueue(session_factory, job_type="export_data", queue="exports")
    await claim(session_factory)
    async with session_factory.begin() as session:
        await JobRepository(session).mark_completed(done.id, {"sent": True})

    async with session_factory() as session:
        repo = JobRepository(session)
        stats = await repo.get_stats("tenant-1")
        counts = await repo.count_by_status("default")
        other_tenant = await repo.get_stats("tenant-2")

    assert stats.total_jobs == 2
    assert stats.completed_jobs == 1
    assert stats.pending_jobs == 1
    assert stats.jobs_by_queue == {"default": 1, "exports": 1}
    assert stats.jobs_by_type == {"send_email": 1, "export_data": 1}
    assert stats.average_wait_time_seconds >= 0
    assert counts["completed"] == 1
    assert counts["retrying"] == 0
    assert set(counts) == set(JobStatus.values())
    assert other_tenant.total_jobs == 0


@pytest.mark.asyncio
async def test_list_jobs_filters(session_factory):
    await enqueue(session_factory)
    await enqueue(session_factory, job_type="generate_report", queue="reports")

    async with session_factory() as session:
        repo = JobRepository(session)
        reports = await repo.list_jobs(JobFilter(tenant_id="tenant-1", queue="reports"))
        pending = await repo.list_jobs(JobFilter(status=JobStatus.PENDING, limit=1))

    assert [j.job_type for j in reports] == ["generate_report"]
    assert len(pending) == 1


@pytest.mark.asyncio
async def test_delete_old_jobs_purges_only_finished_jobs(session_factory):
    old = await enqueue(session_factory)
    recent = await enqueue(session_factory)
    waiting = await enqueue(session_factory)
    long_ago = utc_now() - timedelta(days=30)

    async with session_factory.begin() as session:
        await session.execute(
            update(Job).where(Job.id == old.id).values(status="completed", completed_at=long_ago)
        )
        await session.execute(
            update(Job).where(Job.id == recent.id).values(status="failed", failed_at=utc_now())
        )

    async with session_factory.begin() as session:
        deleted = await JobRepository(session).delete_old_jobs(utc_now() - timedelta(days=7))

    async with session_factory() as session:
        remaining = {j.id for j in await JobRepository(session).list_jobs(JobFilter())}

    assert deleted == 1
    assert remaining == {recent.id, waiting.id}
