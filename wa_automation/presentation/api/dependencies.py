from datetime import timedelta

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from wa_automation.application.use_cases.jobs import (ExecuteWorkflowJobHandler, JobQueue,
                                                      JobService)
from wa_automation.application.use_cases.workflows import ActionExecutor, WorkflowEngine
from wa_automation.domain.entities.job import WorkerConfig
from wa_automation.infrastructure.config.settings import get_settings
from wa_automation.infrastructure.external.llm import LLMService
from wa_automation.infrastructure.external.messaging import WhatsAppMessenger
from wa_automation.infrastructure.external.records import DatabaseRecordUpdater
from wa_automation.infrastructure.persistence.database import (AsyncSessionLocal, get_db,
                                                               get_db_transactional)
from wa_automation.infrastructure.persistence.models.tenant import Tenant
from wa_automation.infrastructure.persistence.repositories import TenantRepository
from wa_automation.infrastructure.scheduling import CronScheduler
from wa_automation.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

JOB_RETENTION_JOB = "purge-finished-jobs"

__all__ = [
    "get_db",
    "get_db_transactional",
    "get_current_tenant",
    "get_workflow_engine",
    "set_workflow_engine",
    "get_job_service",
    "set_job_service",
    "build_workflow_engine",
    "build_job_service",
    "register_job_retention",
]

# Global service instances (singletons)
_workflow_engine: WorkflowEngine | None = None
_job_service: JobService | None = None


def build_workflow_engine(session_factory: async_sessionmaker[AsyncSession]) -> WorkflowEngine:
    """Wire the workflow engine with its production collaborators"""
    settings = get_settings()
    executor = ActionExecutor(
        messaging_service=WhatsAppMessenger(),
        llm_service=LLMService(),
        record_updater=DatabaseRecordUpdater(session_factory),
        http_timeout=settings.call_api_timeout_seconds,
    )
    return WorkflowEngine(
        session_factory,
        executor,
        scheduler=CronScheduler(timezone=settings.scheduler_timezone),
    )


def build_job_service(
    session_factory: async_sessionmaker[AsyncSession], engine: WorkflowEngine
) -> JobService:
    """Job service with the default worker (default queue, workflow runs)"""
    settings = get_settings()
    service = JobService(JobQueue(session_factory))
    service.register_worker(
        WorkerConfig(
            concurrency=settings.jobs_default_concurrency,
            poll_interval=settings.jobs_poll_interval_seconds,
            timeout=settings.jobs_timeout_seconds,
        ),
        ExecuteWorkflowJobHandler(engine),
    )
    return service


def register_job_retention(
    scheduler: CronScheduler, service: JobService, retention_days: int
) -> str:
    """Purge finished jobs older than the retention window once a day"""
    older_than = timedelta(days=retention_days)

    async def purge_finished_jobs() -> None:
        removed = await service.cleanup(older_than)
        logger.info("Purged %d finished jobs older than %d days", removed, retention_days)

    return scheduler.add_interval_job(JOB_RETENTION_JOB, purge_finished_jobs, timedelta(days=1))


def get_workflow_engine() -> WorkflowEngine:
    """
    Workflow engine dependency (singleton)

    Initialized on app startup in main.py
    """
    global _workflow_engine
    if _workflow_engine is None:
        _workflow_engine = build_workflow_engine(AsyncSessionLocal)
    return _workflow_engine


def set_workflow_engine(engine: WorkflowEngine | None):
    """Set global workflow engine (called on app startup)"""
    global _workflow_engine
    _workflow_engine = engine


def get_job_service() -> JobService:
    """Job service dependency (singleton)"""
    global _job_service
    if _job_service is None:
        _job_service = build_job_service(AsyncSessionLocal, get_workflow_engine())
    return _job_service


def set_job_service(service: JobService | None):
    """Set global job service (called on app startup)"""
    global _job_service
    _job_service = service


async def get_current_tenant(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> Tenant:
    """
    Resolve the tenant from the tenant header.

    Only active tenants may use the automation API.
    """
    header_name = get_settings().tenant_header_name
    tenant_id = request.headers.get(header_name)
    if not tenant_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{header_name} header is required",
        )

    tenant = await TenantRepository(db).get_active(tenant_id)
    if not tenant:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Tenant not found or access denied",
        )
    return tenant
