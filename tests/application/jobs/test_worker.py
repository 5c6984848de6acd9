"""Tests for job workers and the worker pool"""

import asyncio

import pytest

from wa_automation.application.use_cases.jobs import JobQueue, Worker, WorkerPool
from wa_automation.domain.entities.job import EnqueueOptions, WorkerConfig
from wa_automation.shared.enums import JobStatus


class RecordingHandler:
    job_type = "send_notification"

    def __init__(self, result=None, error: Exception | None = None, delay: float = 0):
        self.result = result
        self.error = error
        self.delay = delay
        self.seen: list[str] = []

    async def handle(self, job):
        self.seen.append(job.id)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.result


@pytest.fixture
def queue(session_factory) -> JobQueue:
    return JobQueue(session_factory)


def make_worker(job_queue, *handlers, **config) -> Worker:
    worker = Worker(job_queue, WorkerConfig(**{"poll_interval": 0.01, "timeout": 1.0, **config}))
    for handler in handlers:
        worker.register_handler(handler)
    return worker


async def test_process_next_job_completes_with_result(queue):
    handler = RecordingHandler(result={"delivered": 1})
    worker = make_worker(queue, handler)
    job = await queue.enqueue("tenant-1", "send_notification", {"text": "hi"})

    processed = await worker.process_next_job()

    stored = await queue.get_job(job.id)
    assert processed.id == job.id
    assert handler.seen == [job.id]
    assert stored.status == JobStatus.COMPLETED.value
    assert stored.result == {"delivered": 1}
    assert stored.completed_at is not None


async def test_process_next_job_with_empty_queue(queue):
    assert await make_worker(queue).process_next_job() is None


async def test_missing_handler_fails_the_job(queue):
    job = await queue.enqueue("tenant-1", "generate_report", {}, EnqueueOptions(max_retries=1))

    await make_worker(queue).process_next_job()

    stored = await queue.get_job(job.id)
    assert stored.status == JobStatus.RETRYING.value
    assert stored.error == "no handler registered for job type: generate_report"


async def test_handler_error_goes_through_retry(queue):
    worker = make_worker(queue, RecordingHandler(error=RuntimeError("gateway down")))
    job = await queue.enqueue("tenant-1", "send_notification")

    await worker.process_next_job()

    stored = await queue.get_job(job.id)
    assert stored.status == JobStatus.RETRYING.value
    assert stored.error == "gateway down"
    assert stored.scheduled_at is not None


async def test_handler_exceeding_timeout_fails_the_job(queue):
    worker = make_worker(queue, RecordingHandler(delay=1.0), timeout=0.05)
    job = await queue.enqueue("tenant-1", "send_notification")

    await worker.process_next_job()

    stored = await queue.get_job(job.id)
    assert stored.status == JobStatus.RETRYING.value
    assert "exceeded timeout" in stored.error


async def test_running_worker_drains_queue_and_stops(queue):
    handler = RecordingHandler(result={"ok": True})
    worker = make_worker(queue, handler, concurrency=3)
    jobs = [await queue.enqueue("tenant-1", "send_notification", {"n": n}) for n in range(5)]

    await worker.start()
    for _ in range(200):
        if len(handler.seen) == len(jobs):
            break
        await asyncio.sleep(0.02)
    await worker.stop()

    assert sorted(handler.seen) == sorted(job.id for job in jobs)
    assert not worker.is_running
    counts = await queue.count_by_status("default")
    assert counts["completed"] == 5


async def test_stopped_worker_cannot_restart(queue):
    worker = make_worker(queue)
    await worker.start()
    await worker.stop()

    with pytest.raises(RuntimeError, match="worker is stopped, cannot restart"):
        await worker.start()


async def test_pool_stops_all_workers(queue):
    pool = WorkerPool()
    first = make_worker(queue)
    second = make_worker(queue, queue="reports")
    pool.add_worker(first)
    pool.add_worker(second)

    await pool.start()
    assert first.is_running and second.is_running

    await pool.stop()
    await pool.wait()

    assert not first.is_running
    assert not second.is_running
