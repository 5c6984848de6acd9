"""
Job workers.

A Worker runs N poller tasks against one queue. Each poller wakes once per
poll interval and performs at most one dequeue-and-process cycle. Stopping
is cooperative: pollers exit at their next tick and in-flight jobs finish.
"""

import asyncio

from wa_automation.application.interfaces.services import JobHandler
from wa_automation.application.use_cases.jobs.job_queue import JobQueue
from wa_automation.domain.entities.job import WorkerConfig
from wa_automation.domain.exceptions import AutomationException, JobTimeoutError
from wa_automation.infrastructure.persistence.models.job import Job
from wa_automation.shared.telemetry.logging import get_logger
from wa_automation.shared.utils import elapsed_ms, utc_now

logger = get_logger(__name__)


class Worker:
    """Processes jobs from a single queue"""

    def __init__(self, queue: JobQueue, config: WorkerConfig):
        self.queue = queue
        self.config = config
        self.handlers: dict[str, JobHandler] = {}
        self._tasks: list[asyncio.Task] = []
        self._stopping = asyncio.Event()
        self._stopped = False

    @property
    def is_running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    def register_handler(self, handler: JobHandler) -> None:
        self.handlers[handler.job_type] = handler
        logger.info("Registered job handler: %s (queue: %s)", handler.job_type, self.config.queue)

    async def start(self) -> None:
        if self._stopped:
            raise RuntimeError("worker is stopped, cannot restart")

        logger.info(
            "Starting job worker for queue '%s' with %d pollers",
            self.config.queue,
            self.config.concurrency,
        )
        for worker_id in range(1, self.config.concurrency + 1):
            self._tasks.append(
                asyncio.create_task(self._run(worker_id), name=f"{self.config.queue}-worker-{worker_id}")
            )

    async def stop(self) -> None:
        """Signal every poller to exit and wait until they have"""
        self._stopped = True
        self._stopping.set()
        logger.info("Stopping job worker for queue '%s'", self.config.queue)
        await self.wait()
        logger.info("Job worker for queue '%s' stopped", self.config.queue)

    async def wait(self) -> None:
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    async def _run(self, worker_id: int) -> None:
        logger.debug("Worker #%d started for queue '%s'", worker_id, self.config.queue)
        while not await self._wait_for_tick():
            try:
                await self.process_next_job(worker_id)
            except Exception:
                # Keep polling after a failed cycle (e.g. database unavailable)
                logger.exception("Worker #%d error on queue '%s'", worker_id, self.config.queue)
        logger.debug("Worker #%d stopping", worker_id)

    async def _wait_for_tick(self) -> bool:
        """Sleep one poll interval. Returns True once stop has been requested."""
        try:
            await asyncio.wait_for(self._stopping.wait(), timeout=self.config.poll_interval)
        except asyncio.TimeoutError:
            return self._stopped
        return True

    async def process_next_job(self, worker_id: int = 0) -> Job | None:
        """Dequeue and process one job. Returns the job, or None if none was due."""
        job = await self.queue.dequeue(self.config.queue)
        if job is None:
            return None

        logger.info(
            "Worker #%d processing job %s (type: %s, attempt: %d)",
            worker_id,
            job.id,
            job.job_type,
            job.attempts,
        )

        handler = self.handlers.get(job.job_type)
        if handler is None:
            logger.error("Worker #%d: no handler registered for job type '%s'", worker_id, job.job_type)
            await self.queue.mark_failed(job.id, f"no handler registered for job type: {job.job_type}")
            return job

        started_at = utc_now()
        try:
            result = await asyncio.wait_for(handler.handle(job), timeout=self.config.timeout)
        except asyncio.TimeoutError:
            error = JobTimeoutError(job.id, self.config.timeout)
            logger.error("Worker #%d: %s", worker_id, error.message)
            await self.queue.mark_failed(job.id, error.message)
            return job
        except Exception as e:
            detail = e.message if isinstance(e, AutomationException) else str(e)
            logger.error(
                "Worker #%d: job %s failed after %dms: %s",
                worker_id,
                job.id,
                elapsed_ms(started_at),
                detail,
            )
            await self.queue.mark_failed(job.id, detail or type(e).__name__)
            return job

        logger.info("Worker #%d: job %s completed in %dms", worker_id, job.id, elapsed_ms(started_at))
        await self.queue.mark_completed(job.id, result if isinstance(result, dict) else None)
        return job


class WorkerPool:
    """Aggregates per-queue workers"""

    def __init__(self):
        self.workers: list[Worker] = []

    def add_worker(self, worker: Worker) -> None:
        self.workers.append(worker)

    async def start(self) -> None:
        for worker in self.workers:
            await worker.start()

    async def stop(self) -> None:
        """Stop all workers concurrently"""
        await asyncio.gather(*(worker.stop() for worker in self.workers))

    async def wait(self) -> None:
        for worker in self.workers:
            await worker.wait()
