from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from wa_automation.infrastructure.config.settings import get_settings
from wa_automation.infrastructure.persistence.database import (AsyncSessionLocal,
                                                               create_tables, engine, get_db)
from wa_automation.presentation.api.dependencies import (build_job_service,
                                                         build_workflow_engine,
                                                         register_job_retention,
                                                         set_job_service,
                                                         set_workflow_engine)
from wa_automation.presentation.api.errors import register_exception_handlers
from wa_automation.presentation.api.v1.routes import jobs, tenants, workflows
from wa_automation.shared.telemetry.logging import get_logger, setup_logging

logger = get_logger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan events for application initialization and cleanup"""
    setup_logging()

    if settings.database_auto_create:
        await create_tables()
        logger.info("Database tables ensured")

    workflow_engine = build_workflow_engine(AsyncSessionLocal)
    set_workflow_engine(workflow_engine)
    if settings.scheduler_enabled:
        await workflow_engine.initialize()
    else:
        logger.info("Workflow scheduler disabled in configuration")

    job_service = build_job_service(AsyncSessionLocal, workflow_engine)
    set_job_service(job_service)
    if settings.jobs_enabled:
        await job_service.start_workers()
    else:
        logger.info("Job workers disabled in configuration")

    if settings.jobs_enabled and settings.scheduler_enabled:
        register_job_retention(
            workflow_engine.scheduler, job_service, settings.jobs_retention_days
        )

    yield

    if settings.jobs_enabled:
        await job_service.stop_workers()
    await workflow_engine.shutdown()
    set_job_service(None)
    set_workflow_engine(None)

    await engine.dispose()
    logger.info("Database engine disposed")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    debug=settings.debug,
    lifespan=lifespan,
)

register_exception_handlers(app)

# Routers
app.include_router(tenants.router, prefix="/tenants", tags=["tenants"])
app.include_router(workflows.router, prefix="/workflows", tags=["workflows"])
app.include_router(jobs.router, prefix="/jobs", tags=["jobs"])


@app.get("/")
async def root():
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "status": "running",
    }


@app.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)):
    """
    Health check endpoint for load balancers and monitoring.

    Returns:
    - 200 OK if the API and database respond
    - 503 Service Unavailable otherwise
    """
    checks: dict[str, Any] = {
        "api": True,  # If we got here, API is responding
        "database": False,
    }

    try:
        await db.execute(text("SELECT 1"))
        checks["database"] = True
    except Exception as e:
        checks["error"] = str(e)
        return JSONResponse(status_code=503, content={"status": "unhealthy", "checks": checks})

    return {"status": "healthy", "checks": checks}
