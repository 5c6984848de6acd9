"""
Job queue domain types.

Options, filters and statistics passed between the job service, the queue
and the HTTP layer. The persisted job row lives in
infrastructure/persistence/models/job.py.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any

from wa_automation.shared.enums import JobPriority, JobStatus

DEFAULT_QUEUE = "default"
DEFAULT_MAX_RETRIES = 3
MAX_BACKOFF_SECONDS = 3600


def calculate_backoff(attempt: int) -> int:
    """Exponential backoff in seconds: 2^attempt, capped at one hour"""
    if attempt >= 12:  # 2^12 already exceeds the cap
        return MAX_BACKOFF_SECONDS
    return min(2 ** max(attempt, 0), MAX_BACKOFF_SECONDS)


@dataclass
class EnqueueOptions:
    """Options for enqueueing a job. Zero/empty values fall back to defaults."""

    queue: str = DEFAULT_QUEUE
    priority: int = JobPriority.NORMAL
    max_retries: int = DEFAULT_MAX_RETRIES
    schedule_at: datetime | None = None
    metadata: dict[str, Any] | None = None

    def with_defaults(self) -> "EnqueueOptions":
        return replace(
            self,
            queue=self.queue or DEFAULT_QUEUE,
            max_retries=self.max_retries or DEFAULT_MAX_RETRIES,
        )


@dataclass
class JobFilter:
    """Filters for listing jobs; unset fields are ignored"""

    tenant_id: str | None = None
    queue: str | None = None
    job_type: str | None = None
    status: JobStatus | None = None
    priority: int | None = None
    limit: int = 0


@dataclass
class JobStats:
    """Aggregate job counts"""

    total_jobs: int = 0
    pending_jobs: int = 0
    processing_jobs: int = 0
    completed_jobs: int = 0
    failed_jobs: int = 0
    retrying_jobs: int = 0
    cancelled_jobs: int = 0
    jobs_by_queue: dict[str, int] = field(default_factory=dict)
    jobs_by_type: dict[str, int] = field(default_factory=dict)
    average_wait_time_seconds: float = 0.0


@dataclass
class WorkerConfig:
    """Per-queue worker settings"""

    queue: str = DEFAULT_QUEUE
    concurrency: int = 5
    poll_interval: float = 1.0
    timeout: float = 300.0

    def __post_init__(self):
        if self.concurrency < 1:
            raise ValueError("Worker concurrency must be at least 1")
        if self.poll_interval <= 0:
            raise ValueError("Worker poll interval must be positive")
        if self.timeout <= 0:
            raise ValueError("Worker timeout must be positive")
