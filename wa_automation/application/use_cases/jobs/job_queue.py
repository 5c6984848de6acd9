"""
Persistent job queue.

Every operation runs in its own short transaction, so the queue can be
shared by any number of concurrent workers.
"""

from datetime import timedelta
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from wa_automation.domain.entities.job import EnqueueOptions, JobFilter, JobStats
from wa_automation.domain.exceptions import JobNotCancellableError, ResourceNotFoundException
from wa_automation.infrastructure.persistence.models.job import Job
from wa_automation.infrastructure.persistence.repositories.job_repo import JobRepository
from wa_automation.shared.enums import JobStatus
from wa_automation.shared.telemetry.logging import get_logger
from wa_automation.shared.utils import utc_now

logger = get_logger(__name__)


class JobQueue:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def enqueue(
        self,
        tenant_id: str | None,
        job_type: str,
        payload: dict[str, Any] | None = None,
        options: EnqueueOptions | None = None,
    ) -> Job:
        options = (options or EnqueueOptions()).with_defaults()
        async with self.session_factory.begin() as session:
            job = await JobRepository(session).enqueue(tenant_id, job_type, payload, options)

        logger.info(
            "Job enqueued: %s (type: %s, queue: %s, priority: %d)",
            job.id,
            job.job_type,
            job.queue,
            job.priority,
        )
        return job

    async def dequeue(self, queue: str) -> Job | None:
        """Claim the next eligible job, or None when the queue has nothing due"""
        async with self.session_factory.begin() as session:
            return await JobRepository(session).claim_next(queue)

    async def mark_completed(self, job_id: str, result: dict[str, Any] | None = None) -> None:
        async with self.session_factory.begin() as session:
            found = await JobRepository(session).mark_completed(job_id, result)
        if not found:
            raise ResourceNotFoundException("Job", job_id)

    async def mark_failed(self, job_id: str, error: str) -> Job:
        async with self.session_factory.begin() as session:
            job = await JobRepository(session).mark_failed(job_id, error)
        if job is None:
            raise ResourceNotFoundException("Job", job_id)

        if job.status == JobStatus.RETRYING.value:
            logger.warning(
                "Job %s failed (attempt %d/%d), retrying at %s: %s",
                job.id,
                job.attempts,
                job.max_retries,
                job.scheduled_at,
                error,
            )
        else:
            logger.error("Job %s failed permanently after %d attempts: %s", job.id, job.attempts, error)
        return job

    async def cancel(self, job_id: str) -> None:
        async with self.session_factory.begin() as session:
            cancelled = await JobRepository(session).cancel(job_id)
        if not cancelled:
            raise JobNotCancellableError(job_id)
        logger.info("Job cancelled: %s", job_id)

    async def get_job(self, job_id: str) -> Job:
        async with self.session_factory() as session:
            job = await JobRepository(session).get_by_id(job_id)
        if job is None:
            raise ResourceNotFoundException("Job", job_id)
        return job

    async def list_jobs(self, job_filter: JobFilter | None = None) -> list[Job]:
        async with self.session_factory() as session:
            return await JobRepository(session).list_jobs(job_filter or JobFilter())

    async def get_stats(self, tenant_id: str | None = None) -> JobStats:
        async with self.session_factory() as session:
            return await JobRepository(session).get_stats(tenant_id)

    async def count_by_status(self, queue: str) -> dict[str, int]:
        async with self.session_factory() as session:
            return await JobRepository(session).count_by_status(queue)

    async def delete_old_jobs(self, older_than: timedelta) -> int:
        """Purge completed/failed jobs that finished more than `older_than` ago"""
        cutoff = utc_now() - older_than
        async with self.session_factory.begin() as session:
            deleted = await JobRepository(session).delete_old_jobs(cutoff)
        logger.info("Deleted %d old jobs", deleted)
        return deleted
