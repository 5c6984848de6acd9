"""Workflow API endpoints"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from wa_automation.application.use_cases.workflows import WorkflowEngine
from wa_automation.infrastructure.persistence.models.tenant import Tenant
from wa_automation.presentation.api.dependencies import get_current_tenant, get_workflow_engine
from wa_automation.presentation.api.v1.schemas.workflow import (
    EventTriggerRequest, EventTriggerResponse, WorkflowCreate, WorkflowExecuteRequest,
    WorkflowExecuteResponse, WorkflowExecutionResponse, WorkflowResponse, WorkflowUpdate)

router = APIRouter()


@router.post("/", response_model=WorkflowResponse, status_code=status.HTTP_201_CREATED)
async def create_workflow(
    data: WorkflowCreate,
    tenant: Annotated[Tenant, Depends(get_current_tenant)],
    engine: Annotated[WorkflowEngine, Depends(get_workflow_engine)],
):
    """
    Create new workflow.

    Scheduled workflows that are active are registered with the scheduler
    immediately.
    """
    payload = data.model_dump(mode="json")
    workflow = await engine.create_workflow(
        tenant.id,
        name=data.name,
        description=data.description,
        trigger_type=data.trigger_type.value,
        trigger_config={k: v for k, v in payload["trigger_config"].items() if v},
        conditions=payload["conditions"],
        actions=payload["actions"],
        is_active=data.is_active,
    )
    return WorkflowResponse.model_validate(workflow)


@router.get("/", response_model=list[WorkflowResponse])
async def list_workflows(
    tenant: Annotated[Tenant, Depends(get_current_tenant)],
    engine: Annotated[WorkflowEngine, Depends(get_workflow_engine)],
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    include_inactive: bool = Query(True),
):
    """List all workflows for tenant"""
    workflows = await engine.list_workflows(
        tenant.id, skip=skip, limit=limit, include_inactive=include_inactive
    )
    return [WorkflowResponse.model_validate(w) for w in workflows]


@router.post("/events", response_model=EventTriggerResponse, status_code=status.HTTP_202_ACCEPTED)
async def trigger_event(
    data: EventTriggerRequest,
    tenant: Annotated[Tenant, Depends(get_current_tenant)],
    engine: Annotated[WorkflowEngine, Depends(get_workflow_engine)],
):
    """Publish an event; matching workflows run in the background"""
    tasks = await engine.handle_event(data.event_name, data.data, tenant_id=tenant.id)
    return EventTriggerResponse(event_name=data.event_name, workflows_triggered=len(tasks))


@router.get("/executions/{execution_id}", response_model=WorkflowExecutionResponse)
async def get_execution(
    execution_id: str,
    tenant: Annotated[Tenant, Depends(get_current_tenant)],
    engine: Annotated[WorkflowEngine, Depends(get_workflow_engine)],
):
    """Get workflow execution details"""
    execution = await engine.get_execution(execution_id, tenant.id)
    return WorkflowExecutionResponse.model_validate(execution)


@router.get("/{workflow_id}", response_model=WorkflowResponse)
async def get_workflow(
    workflow_id: str,
    tenant: Annotated[Tenant, Depends(get_current_tenant)],
    engine: Annotated[WorkflowEngine, Depends(get_workflow_engine)],
):
    """Get workflow by ID"""
    workflow = await engine.get_workflow(workflow_id, tenant.id)
    return WorkflowResponse.model_validate(workflow)


@router.put("/{workflow_id}", response_model=WorkflowResponse)
async def update_workflow(
    workflow_id: str,
    data: WorkflowUpdate,
    tenant: Annotated[Tenant, Depends(get_current_tenant)],
    engine: Annotated[WorkflowEngine, Depends(get_workflow_engine)],
):
    """Update workflow"""
    workflow = await engine.update_workflow(workflow_id, tenant.id, data.to_changes())
    return WorkflowResponse.model_validate(workflow)


@router.delete("/{workflow_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_workflow(
    workflow_id: str,
    tenant: Annotated[Tenant, Depends(get_current_tenant)],
    engine: Annotated[WorkflowEngine, Depends(get_workflow_engine)],
):
    """Soft delete workflow (unschedules it first)"""
    await engine.delete_workflow(workflow_id, tenant.id)


@router.post(
    "/{workflow_id}/execute",
    response_model=WorkflowExecuteResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def execute_workflow(
    workflow_id: str,
    tenant: Annotated[Tenant, Depends(get_current_tenant)],
    engine: Annotated[WorkflowEngine, Depends(get_workflow_engine)],
    data: WorkflowExecuteRequest | None = None,
):
    """
    Run a workflow manually.

    Only reports that execution started; the outcome is available from the
    execution history.
    """
    trigger_data = data.trigger_data if data else {}
    await engine.start_workflow(workflow_id, tenant.id, trigger_data)
    return WorkflowExecuteResponse(message="Workflow execution started", workflow_id=workflow_id)


@router.get("/{workflow_id}/executions", response_model=list[WorkflowExecutionResponse])
async def get_workflow_executions(
    workflow_id: str,
    tenant: Annotated[Tenant, Depends(get_current_tenant)],
    engine: Annotated[WorkflowEngine, Depends(get_workflow_engine)],
    limit: int = Query(50, ge=1, le=1000),
):
    """Get execution history for workflow, newest first"""
    # Verify workflow exists and belongs to tenant
    await engine.get_workflow(workflow_id, tenant.id)

    executions = await engine.get_executions(workflow_id, tenant.id, limit=limit)
    return [WorkflowExecutionResponse.model_validate(e) for e in executions]
