"""Shared test fixtures for pytest"""
import os

# Settings are read at import time; point them at a throwaway database first
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SCHEDULER_ENABLED", "false")
os.environ.setdefault("JOBS_ENABLED", "false")

from unittest.mock import AsyncMock  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (AsyncSession, async_sessionmaker,  # noqa: E402
                                    create_async_engine)
from sqlalchemy.pool import NullPool  # noqa: E402

from wa_automation.application.use_cases.jobs import JobQueue, JobService  # noqa: E402
from wa_automation.application.use_cases.workflows import (ActionExecutor,  # noqa: E402
                                                           WorkflowEngine)
from wa_automation.infrastructure.persistence import models  # noqa: E402,F401
from wa_automation.infrastructure.persistence.database import Base  # noqa: E402
from wa_automation.infrastructure.persistence.models.tenant import Tenant  # noqa: E402
from wa_automation.infrastructure.scheduling import CronScheduler  # noqa: E402
from wa_automation.main import app  # noqa: E402
from wa_automation.presentation.api.dependencies import (get_db,  # noqa: E402
                                                         get_db_transactional,
                                                         get_job_service,
                                                         get_workflow_engine)


@pytest.fixture
async def test_engine(tmp_path):
    """
    File-backed SQLite engine.

    NullPool gives every session its own connection, so concurrent sessions
    behave like separate database clients.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
        autocommit=False,
    )


@pytest.fixture
async def test_db(session_factory):
    """Create test database session"""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def test_tenant(session_factory):
    """Create test tenant"""
    tenant = Tenant(id="tenant-1", code="acme", name="Acme Store", status="active")
    async with session_factory.begin() as session:
        session.add(tenant)
    return tenant


@pytest.fixture
async def second_tenant(session_factory):
    """Create second tenant for isolation tests"""
    tenant = Tenant(id="tenant-2", code="globex", name="Globex Mart", status="active")
    async with session_factory.begin() as session:
        session.add(tenant)
    return tenant


@pytest.fixture
def workflow_engine(session_factory):
    """Engine with mocked messaging and language model collaborators"""
    executor = ActionExecutor(messaging_service=AsyncMock(), llm_service=AsyncMock())
    return WorkflowEngine(session_factory, executor, scheduler=CronScheduler())


@pytest.fixture
def job_service(session_factory):
    return JobService(JobQueue(session_factory))


@pytest.fixture
async def client(session_factory, workflow_engine, job_service):
    """HTTP client for API testing"""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    async def override_get_db_transactional():
        async with session_factory.begin() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_db_transactional] = override_get_db_transactional
    app.dependency_overrides[get_workflow_engine] = lambda: workflow_engine
    app.dependency_overrides[get_job_service] = lambda: job_service

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    # Let background workflow runs finish before the database goes away
    await workflow_engine.shutdown()
    app.dependency_overrides.clear()


@pytest.fixture
def tenant_headers(test_tenant):
    return {"X-Tenant-ID": test_tenant.id}
