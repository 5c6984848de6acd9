"""Repository for workflow data access"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from wa_automation.infrastructure.persistence.models.workflow import (Workflow,
                                                                      WorkflowExecution)
from wa_automation.infrastructure.persistence.repositories.base import BaseRepository
from wa_automation.shared.enums import TriggerType
from wa_automation.shared.utils import utc_now


class WorkflowRepository(BaseRepository[Workflow]):
    """Repository for Workflow model. Soft-deleted rows are never returned."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, Workflow)

    async def get_by_id(self, workflow_id: str, tenant_id: str | None = None) -> Workflow | None:
        """
        Get workflow by ID, optionally scoped to a tenant.

        Scheduler and job callbacks look workflows up by id alone.
        """
        stmt = select(Workflow).where(Workflow.id == workflow_id, Workflow.deleted_at.is_(None))
        if tenant_id is not None:
            stmt = stmt.where(Workflow.tenant_id == tenant_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_tenant(
        self,
        tenant_id: str,
        skip: int = 0,
        limit: int = 100,
        include_inactive: bool = True,
    ) -> list[Workflow]:
        """Get all workflows for tenant, newest first"""
        stmt = select(Workflow).where(
            Workflow.tenant_id == tenant_id, Workflow.deleted_at.is_(None)
        )

        if not include_inactive:
            stmt = stmt.where(Workflow.is_active.is_(True))

        stmt = stmt.order_by(Workflow.created_at.desc()).offset(skip).limit(limit)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def find_active_by_trigger(
        self, trigger_type: TriggerType, tenant_id: str | None = None
    ) -> list[Workflow]:
        """Get active workflows with the given trigger type, across tenants unless scoped"""
        stmt = select(Workflow).where(
            Workflow.trigger_type == trigger_type.value,
            Workflow.is_active.is_(True),
            Workflow.deleted_at.is_(None),
        )
        if tenant_id is not None:
            stmt = stmt.where(Workflow.tenant_id == tenant_id)

        result = await self.db.execute(stmt.order_by(Workflow.created_at.asc()))
        return list(result.scalars().all())

    async def find_active_scheduled(self) -> list[Workflow]:
        return await self.find_active_by_trigger(TriggerType.SCHEDULED)

    async def find_active_event_workflows(self, tenant_id: str | None = None) -> list[Workflow]:
        return await self.find_active_by_trigger(TriggerType.EVENT, tenant_id)

    async def soft_delete(self, workflow_id: str, tenant_id: str) -> bool:
        """Soft delete workflow"""
        workflow = await self.get_by_id(workflow_id, tenant_id)
        if not workflow:
            return False

        workflow.deleted_at = utc_now()
        workflow.is_active = False
        await self.db.flush()
        return True


class WorkflowExecutionRepository(BaseRepository[WorkflowExecution]):
    """Repository for WorkflowExecution model"""

    def __init__(self, db: AsyncSession):
        super().__init__(db, WorkflowExecution)

    async def get_by_id(
        self, execution_id: str, tenant_id: str | None = None
    ) -> WorkflowExecution | None:
        """Get execution by ID"""
        stmt = select(WorkflowExecution).where(WorkflowExecution.id == execution_id)
        if tenant_id is not None:
            stmt = stmt.where(WorkflowExecution.tenant_id == tenant_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_workflow(
        self, workflow_id: str, tenant_id: str, skip: int = 0, limit: int = 50
    ) -> list[WorkflowExecution]:
        """Get executions for workflow, newest first"""
        stmt = (
            select(WorkflowExecution)
            .where(
                WorkflowExecution.workflow_id == workflow_id,
                WorkflowExecution.tenant_id == tenant_id,
            )
            .order_by(WorkflowExecution.started_at.desc(), WorkflowExecution.created_at.desc())
            .offset(skip)
            .limit(limit)
        )

        result = await self.db.execute(stmt)
        return list(result.scalars().all())
