"""Built-in job handlers"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from wa_automation.application.use_cases.jobs.job_service import EXECUTE_WORKFLOW_JOB
from wa_automation.domain.exceptions import ValidationException
from wa_automation.shared.enums import WorkflowExecutionStatus

if TYPE_CHECKING:
    from wa_automation.application.use_cases.workflows.workflow_engine import WorkflowEngine
    from wa_automation.infrastructure.persistence.models.job import Job


class ExecuteWorkflowJobHandler:
    """
    Runs a workflow from the job queue.

    Payload: {"workflow_id", "tenant_id", "trigger_data"}. The tenant falls
    back to the job's own tenant. The run counts as successful even when
    some of its actions fail; only run-level failures are retried.
    """

    job_type = EXECUTE_WORKFLOW_JOB

    def __init__(self, engine: WorkflowEngine):
        self.engine = engine

    async def handle(self, job: Job) -> dict[str, Any]:
        payload = job.payload or {}
        workflow_id = payload.get("workflow_id")
        tenant_id = payload.get("tenant_id") or job.tenant_id
        if not workflow_id or not tenant_id:
            raise ValidationException("execute_workflow jobs require workflow_id and tenant_id")

        execution = await self.engine.execute_workflow(
            workflow_id, tenant_id, payload.get("trigger_data") or {}
        )
        if execution.status == WorkflowExecutionStatus.FAILED.value:
            raise RuntimeError(f"workflow execution {execution.id} failed: {execution.error_message}")

        return {
            "execution_id": execution.id,
            "status": execution.status,
            "actions_completed": execution.actions_completed,
            "actions_failed": execution.actions_failed,
        }
