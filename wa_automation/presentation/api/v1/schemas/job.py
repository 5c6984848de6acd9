"""Pydantic schemas for background jobs"""
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from wa_automation.domain.entities.job import DEFAULT_MAX_RETRIES, DEFAULT_QUEUE, EnqueueOptions
from wa_automation.shared.enums import JobPriority, JobStatus


class JobCreate(BaseModel):
    """Enqueue job request"""

    job_type: str = Field(..., min_length=1, max_length=100)
    payload: dict[str, Any] | None = None
    queue: str = Field(default=DEFAULT_QUEUE, min_length=1, max_length=100)
    priority: JobPriority = JobPriority.NORMAL
    max_retries: int = Field(default=DEFAULT_MAX_RETRIES, ge=1, le=25)
    schedule_at: datetime | None = None
    delay_seconds: int | None = Field(None, gt=0)
    metadata: dict[str, Any] | None = None

    def to_options(self) -> EnqueueOptions:
        return EnqueueOptions(
            queue=self.queue,
            priority=self.priority,
            max_retries=self.max_retries,
            schedule_at=self.schedule_at,
            metadata=self.metadata,
        )


class JobResponse(BaseModel):
    """Job response"""

    id: str
    tenant_id: str | None
    queue: str
    job_type: str
    payload: dict[str, Any] | None
    status: JobStatus
    priority: int
    attempts: int
    max_retries: int
    scheduled_at: datetime | None
    started_at: datetime | None
    completed_at: datetime | None
    failed_at: datetime | None
    error: str | None
    result: dict[str, Any] | None
    metadata: dict[str, Any] | None = Field(None, validation_alias="job_metadata")
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class JobStatsResponse(BaseModel):
    total_jobs: int
    pending_jobs: int
    processing_jobs: int
    completed_jobs: int
    failed_jobs: int
    retrying_jobs: int
    cancelled_jobs: int
    jobs_by_queue: dict[str, int]
    jobs_by_type: dict[str, int]
    average_wait_time_seconds: float

    model_config = ConfigDict(from_attributes=True)
