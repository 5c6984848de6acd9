from wa_automation.infrastructure.persistence.repositories.base import BaseRepository
from wa_automation.infrastructure.persistence.repositories.job_repo import JobRepository
from wa_automation.infrastructure.persistence.repositories.record_repo import RecordRepository
from wa_automation.infrastructure.persistence.repositories.tenant_repo import TenantRepository
from wa_automation.infrastructure.persistence.repositories.workflow_repo import (
    WorkflowExecutionRepository, WorkflowRepository)

__all__ = [
    "BaseRepository",
    "TenantRepository",
    "WorkflowRepository",
    "WorkflowExecutionRepository",
    "JobRepository",
    "RecordRepository",
]
