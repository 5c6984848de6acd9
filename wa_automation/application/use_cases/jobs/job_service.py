"""
Job service.

Facade over the job queue and the worker pool used by the HTTP layer, the
application lifespan and other services that need background work.
"""

from dataclasses import replace
from datetime import datetime, timedelta
from typing import Any

from wa_automation.application.interfaces.services import JobHandler
from wa_automation.application.use_cases.jobs.job_queue import JobQueue
from wa_automation.application.use_cases.jobs.worker import Worker, WorkerPool
from wa_automation.domain.entities.job import EnqueueOptions, JobFilter, JobStats, WorkerConfig
from wa_automation.infrastructure.persistence.models.job import Job
from wa_automation.shared.enums import JobPriority
from wa_automation.shared.utils import utc_now

EXECUTE_WORKFLOW_JOB = "execute_workflow"


class JobService:
    def __init__(self, queue: JobQueue, pool: WorkerPool | None = None):
        self.queue = queue
        self.pool = pool or WorkerPool()

    # --- Enqueue ---

    async def enqueue(
        self,
        tenant_id: str | None,
        job_type: str,
        payload: dict[str, Any] | None = None,
        options: EnqueueOptions | None = None,
    ) -> Job:
        return await self.queue.enqueue(tenant_id, job_type, payload, options)

    async def enqueue_delayed(
        self,
        tenant_id: str | None,
        job_type: str,
        payload: dict[str, Any] | None,
        delay: timedelta,
        options: EnqueueOptions | None = None,
    ) -> Job:
        return await self.enqueue_at(tenant_id, job_type, payload, utc_now() + delay, options)

    async def enqueue_at(
        self,
        tenant_id: str | None,
        job_type: str,
        payload: dict[str, Any] | None,
        schedule_at: datetime,
        options: EnqueueOptions | None = None,
    ) -> Job:
        options = replace(options or EnqueueOptions(), schedule_at=schedule_at)
        return await self.queue.enqueue(tenant_id, job_type, payload, options)

    async def enqueue_email_job(self, tenant_id: str | None, payload: dict[str, Any]) -> Job:
        return await self.enqueue(
            tenant_id, "send_email", payload, EnqueueOptions(queue="emails", priority=JobPriority.NORMAL)
        )

    async def enqueue_notification_job(self, tenant_id: str | None, payload: dict[str, Any]) -> Job:
        return await self.enqueue(
            tenant_id,
            "send_notification",
            payload,
            EnqueueOptions(queue="notifications", priority=JobPriority.HIGH),
        )

    async def enqueue_report_job(self, tenant_id: str | None, payload: dict[str, Any]) -> Job:
        return await self.enqueue(
            tenant_id, "generate_report", payload, EnqueueOptions(queue="reports", priority=JobPriority.LOW)
        )

    async def enqueue_data_export_job(self, tenant_id: str | None, payload: dict[str, Any]) -> Job:
        # Exports are expensive; retry at most once
        return await self.enqueue(
            tenant_id,
            "export_data",
            payload,
            EnqueueOptions(queue="exports", priority=JobPriority.NORMAL, max_retries=1),
        )

    async def enqueue_workflow_execution(
        self,
        tenant_id: str,
        workflow_id: str,
        trigger_data: dict[str, Any] | None = None,
        options: EnqueueOptions | None = None,
    ) -> Job:
        """Queue a workflow run for ExecuteWorkflowJobHandler"""
        payload = {
            "workflow_id": workflow_id,
            "tenant_id": tenant_id,
            "trigger_data": trigger_data or {},
        }
        return await self.enqueue(tenant_id, EXECUTE_WORKFLOW_JOB, payload, options)

    # --- Inspection ---

    async def cancel(self, job_id: str) -> None:
        await self.queue.cancel(job_id)

    async def get_job(self, job_id: str) -> Job:
        return await self.queue.get_job(job_id)

    async def list_jobs(self, job_filter: JobFilter | None = None) -> list[Job]:
        return await self.queue.list_jobs(job_filter)

    async def get_stats(self, tenant_id: str | None = None) -> JobStats:
        return await self.queue.get_stats(tenant_id)

    async def get_queue_stats(self, queue: str) -> dict[str, int]:
        return await self.queue.count_by_status(queue)

    async def cleanup(self, older_than: timedelta) -> int:
        return await self.queue.delete_old_jobs(older_than)

    # --- Workers ---

    def register_worker(self, config: WorkerConfig, *handlers: JobHandler) -> Worker:
        worker = Worker(self.queue, config)
        for handler in handlers:
            worker.register_handler(handler)
        self.pool.add_worker(worker)
        return worker

    async def start_workers(self) -> None:
        await self.pool.start()

    async def stop_workers(self) -> None:
        await self.pool.stop()

    async def wait_for_workers(self) -> None:
        await self.pool.wait()
