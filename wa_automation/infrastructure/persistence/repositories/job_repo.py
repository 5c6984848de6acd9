"""Repository for the persistent job queue"""

from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from wa_automation.domain.entities.job import (EnqueueOptions, JobFilter, JobStats,
                                               calculate_backoff)
from wa_automation.infrastructure.persistence.models.job import Job
from wa_automation.infrastructure.persistence.repositories.base import BaseRepository
from wa_automation.shared.enums import JobStatus
from wa_automation.shared.utils import ensure_utc, utc_now

# Jobs a worker may pick up once their scheduled time has passed
CLAIMABLE_STATUSES = (JobStatus.PENDING.value, JobStatus.RETRYING.value)
CANCELLABLE_STATUSES = (JobStatus.PENDING.value, JobStatus.RETRYING.value)
PURGEABLE_STATUSES = (JobStatus.COMPLETED.value, JobStatus.FAILED.value)


class JobRepository(BaseRepository[Job]):
    """
    Job persistence including the atomic claim used by workers.

    Callers own the transaction; every method here only flushes.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(db, Job)

    async def enqueue(
        self,
        tenant_id: str | None,
        job_type: str,
        payload: dict[str, Any] | None,
        options: EnqueueOptions,
    ) -> Job:
        """Insert a pending job, applying option defaults"""
        options = options.with_defaults()
        now = utc_now()
        job = Job(
            tenant_id=tenant_id,
            queue=options.queue,
            job_type=job_type,
            payload=payload,
            status=JobStatus.PENDING.value,
            priority=int(options.priority),
            attempts=0,
            max_retries=options.max_retries,
            scheduled_at=options.schedule_at,
            job_metadata=options.metadata,
            created_at=now,
            updated_at=now,
        )
        return await self.create(job)

    async def claim_next(self, queue: str) -> Job | None:
        """
        Claim the highest-priority, oldest eligible job in one statement.

        The conditional UPDATE ... RETURNING guarantees that two concurrent
        callers never both receive the same row; the loser gets None.
        """
        now = utc_now()
        # Aliased so the subquery is not correlated with the UPDATE target
        candidate = aliased(Job)
        next_id = (
            select(candidate.id)
            .where(
                candidate.queue == queue,
                candidate.status.in_(CLAIMABLE_STATUSES),
                or_(candidate.scheduled_at.is_(None), candidate.scheduled_at <= now),
            )
            .order_by(candidate.priority.desc(), candidate.created_at.asc())
            .limit(1)
            .with_for_update(skip_locked=True)
            .scalar_subquery()
        )
        stmt = (
            update(Job)
            .where(Job.id == next_id, Job.status.in_(CLAIMABLE_STATUSES))
            .values(
                status=JobStatus.PROCESSING.value,
                started_at=now,
                attempts=Job.attempts + 1,
                updated_at=now,
            )
            .returning(Job)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def mark_completed(self, job_id: str, result: dict[str, Any] | None = None) -> bool:
        now = utc_now()
        outcome = await self.db.execute(
            update(Job)
            .where(Job.id == job_id)
            .values(
                status=JobStatus.COMPLETED.value,
                completed_at=now,
                result=result,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        return outcome.rowcount > 0

    async def mark_failed(self, job_id: str, error: str) -> Job | None:
        """
        Record a failure: retry with backoff while under budget, else fail terminally.

        max_retries counts retries after the first attempt, so a job runs at
        most max_retries + 1 times.

        Returns the updated job, or None if it does not exist.
        """
        result = await self.db.execute(select(Job).where(Job.id == job_id).with_for_update())
        job = result.scalar_one_or_none()
        if job is None:
            return None

        now = utc_now()
        job.error = error
        job.updated_at = now
        if job.attempts <= job.max_retries:
            job.status = JobStatus.RETRYING.value
            job.scheduled_at = now + timedelta(seconds=calculate_backoff(job.attempts))
        else:
            job.status = JobStatus.FAILED.value
            job.failed_at = now
        await self.db.flush()
        return job

    async def cancel(self, job_id: str) -> bool:
        """Cancel a pending or retrying job. False if missing or in any other state."""
        now = utc_now()
        result = await self.db.execute(
            update(Job)
            .where(Job.id == job_id, Job.status.in_(CANCELLABLE_STATUSES))
            .values(status=JobStatus.CANCELLED.value, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    async def list_jobs(self, job_filter: JobFilter) -> list[Job]:
        stmt = select(Job)
        if job_filter.tenant_id:
            stmt = stmt.where(Job.tenant_id == job_filter.tenant_id)
        if job_filter.queue:
            stmt = stmt.where(Job.queue == job_filter.queue)
        if job_filter.job_type:
            stmt = stmt.where(Job.job_type == job_filter.job_type)
        if job_filter.status:
            stmt = stmt.where(Job.status == JobStatus(job_filter.status).value)
        if job_filter.priority is not None:
            stmt = stmt.where(Job.priority == job_filter.priority)

        stmt = stmt.order_by(Job.created_at.desc())
        if job_filter.limit > 0:
            stmt = stmt.limit(job_filter.limit)

        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_stats(self, tenant_id: str | None = None) -> JobStats:
        """Counts by status, queue and type plus mean wait before a job started"""

        def scoped(stmt):
            return stmt.where(Job.tenant_id == tenant_id) if tenant_id else stmt

        stats = JobStats()

        by_status = await self.db.execute(
            scoped(select(Job.status, func.count(Job.id))).group_by(Job.status)
        )
        for status, count in by_status.all():
            stats.total_jobs += count
            attr = f"{status}_jobs"
            if hasattr(stats, attr):
                setattr(stats, attr, count)

        by_queue = await self.db.execute(
            scoped(select(Job.queue, func.count(Job.id))).group_by(Job.queue)
        )
        stats.jobs_by_queue = {queue: count for queue, count in by_queue.all()}

        by_type = await self.db.execute(
            scoped(select(Job.job_type, func.count(Job.id))).group_by(Job.job_type)
        )
        stats.jobs_by_type = {job_type: count for job_type, count in by_type.all()}

        # Computed in Python so the same code runs on PostgreSQL and SQLite
        started = await self.db.execute(
            scoped(select(Job.started_at, Job.created_at).where(Job.started_at.is_not(None)))
        )
        waits = [
            (ensure_utc(started_at) - ensure_utc(created_at)).total_seconds()
            for started_at, created_at in started.all()
        ]
        if waits:
            stats.average_wait_time_seconds = sum(waits) / len(waits)

        return stats

    async def count_by_status(self, queue: str) -> dict[str, int]:
        """Per-status counts for one queue; every status is present"""
        result = await self.db.execute(
            select(Job.status, func.count(Job.id)).where(Job.queue == queue).group_by(Job.status)
        )
        counts = {status: 0 for status in JobStatus.values()}
        counts.update({status: count for status, count in result.all()})
        return counts

    async def delete_old_jobs(self, older_than: datetime) -> int:
        """Purge completed/failed jobs that finished before the cutoff"""
        result = await self.db.execute(
            delete(Job)
            .where(
                Job.status.in_(PURGEABLE_STATUSES),
                or_(Job.completed_at < older_than, Job.failed_at < older_than),
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
