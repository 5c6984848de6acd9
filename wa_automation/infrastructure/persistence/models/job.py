"""
Persistent background job.

The jobs table is the only state shared between workers; claims go through
JobRepository.claim_next so a job is handed to at most one worker.
"""
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from wa_automation.infrastructure.persistence.database import Base
from wa_automation.infrastructure.persistence.models.mixins import CuidMixin
from wa_automation.shared.enums import JobPriority, JobStatus


class Job(CuidMixin, Base):
    """
    Queued unit of asynchronous work.

    tenant_id is a plain column: system jobs (cleanup, reports) may run
    without a tenant.
    """

    __tablename__ = "jobs"

    tenant_id: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    queue: Mapped[str] = mapped_column(String, nullable=False, default="default")
    job_type: Mapped[str] = mapped_column(String, nullable=False, index=True)
    payload: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    status: Mapped[str] = mapped_column(
        String, nullable=False, default=JobStatus.PENDING.value, index=True
    )
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=int(JobPriority.NORMAL))
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_retries: Mapped[int] = mapped_column(Integer, nullable=False, default=3)

    scheduled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    failed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    result: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    job_metadata: Mapped[dict[str, Any] | None] = mapped_column("metadata", JSON, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("ix_jobs_queue_status_priority", "queue", "status", "priority"),
    )

    def __repr__(self):
        return f"<Job(id={self.id}, type={self.job_type}, queue={self.queue}, status={self.status})>"
