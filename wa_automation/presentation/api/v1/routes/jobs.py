"""Background job API endpoints"""

from datetime import timedelta
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from wa_automation.application.use_cases.jobs import JobService
from wa_automation.domain.entities.job import JobFilter
from wa_automation.domain.exceptions import ResourceNotFoundException
from wa_automation.infrastructure.persistence.models.tenant import Tenant
from wa_automation.presentation.api.dependencies import get_current_tenant, get_job_service
from wa_automation.presentation.api.v1.schemas.job import (JobCreate, JobResponse,
                                                           JobStatsResponse)
from wa_automation.shared.enums import JobStatus

router = APIRouter()


@router.post("/", response_model=JobResponse, status_code=status.HTTP_201_CREATED)
async def enqueue_job(
    data: JobCreate,
    tenant: Annotated[Tenant, Depends(get_current_tenant)],
    jobs: Annotated[JobService, Depends(get_job_service)],
):
    """Enqueue a job, optionally delayed or scheduled"""
    options = data.to_options()
    if data.delay_seconds:
        job = await jobs.enqueue_delayed(
            tenant.id, data.job_type, data.payload, timedelta(seconds=data.delay_seconds), options
        )
    else:
        job = await jobs.enqueue(tenant.id, data.job_type, data.payload, options)
    return JobResponse.model_validate(job)


@router.get("/", response_model=list[JobResponse])
async def list_jobs(
    tenant: Annotated[Tenant, Depends(get_current_tenant)],
    jobs: Annotated[JobService, Depends(get_job_service)],
    queue: str | None = Query(None),
    job_type: str | None = Query(None),
    job_status: JobStatus | None = Query(None, alias="status"),
    priority: int | None = Query(None),
    limit: int = Query(100, ge=1, le=1000),
):
    """List the tenant's jobs, newest first"""
    result = await jobs.list_jobs(
        JobFilter(
            tenant_id=tenant.id,
            queue=queue,
            job_type=job_type,
            status=job_status,
            priority=priority,
            limit=limit,
        )
    )
    return [JobResponse.model_validate(j) for j in result]


@router.get("/stats", response_model=JobStatsResponse)
async def get_job_stats(
    tenant: Annotated[Tenant, Depends(get_current_tenant)],
    jobs: Annotated[JobService, Depends(get_job_service)],
):
    """Aggregate job statistics for the tenant"""
    stats = await jobs.get_stats(tenant.id)
    return JobStatsResponse.model_validate(stats)


@router.get("/{job_id}", response_model=JobResponse)
async def get_job(
    job_id: str,
    tenant: Annotated[Tenant, Depends(get_current_tenant)],
    jobs: Annotated[JobService, Depends(get_job_service)],
):
    job = await jobs.get_job(job_id)
    if job.tenant_id != tenant.id:
        raise ResourceNotFoundException("Job", job_id)
    return JobResponse.model_validate(job)


@router.post("/{job_id}/cancel", response_model=JobResponse)
async def cancel_job(
    job_id: str,
    tenant: Annotated[Tenant, Depends(get_current_tenant)],
    jobs: Annotated[JobService, Depends(get_job_service)],
):
    """Cancel a pending or retrying job (409 otherwise)"""
    job = await jobs.get_job(job_id)
    if job.tenant_id != tenant.id:
        raise ResourceNotFoundException("Job", job_id)

    await jobs.cancel(job_id)
    return JobResponse.model_validate(await jobs.get_job(job_id))
