"""Pydantic schemas for workflows"""
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from wa_automation.shared.enums import ActionType, ConditionOperator, TriggerType


class ConditionSchema(BaseModel):
    """One predicate over the trigger data"""

    field: str = Field(..., min_length=1)
    operator: str
    value: Any = None
    logic: str | None = None

    @field_validator("operator")
    @classmethod
    def validate_operator(cls, v: str) -> str:
        if v not in ConditionOperator.values():
            raise ValueError(f"operator must be one of: {', '.join(ConditionOperator.values())}")
        return v

    @field_validator("logic")
    @classmethod
    def validate_logic(cls, v: str | None) -> str | None:
        if v and v.upper() not in ("AND", "OR"):
            raise ValueError("logic must be AND or OR")
        return v


class ActionSchema(BaseModel):
    """One workflow step"""

    type: str
    config: dict[str, Any] = Field(default_factory=dict)

    @field_validator("type")
    @classmethod
    def validate_type(cls, v: str) -> str:
        if v not in ActionType.values():
            raise ValueError(f"type must be one of: {', '.join(ActionType.values())}")
        return v


class TriggerConfigSchema(BaseModel):
    event_name: str | None = None
    schedule: str | None = None


class WorkflowCreate(BaseModel):
    """Create workflow request"""

    name: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    trigger_type: TriggerType
    trigger_config: TriggerConfigSchema = Field(default_factory=TriggerConfigSchema)
    conditions: list[ConditionSchema] = Field(default_factory=list)
    actions: list[ActionSchema] = Field(..., min_length=1)
    is_active: bool = True

    @model_validator(mode="after")
    def validate_trigger(self) -> "WorkflowCreate":
        if self.trigger_type == TriggerType.EVENT and not self.trigger_config.event_name:
            raise ValueError("trigger_config.event_name is required for event workflows")
        if self.trigger_type == TriggerType.SCHEDULED and not self.trigger_config.schedule:
            raise ValueError("trigger_config.schedule is required for scheduled workflows")
        return self


class WorkflowUpdate(BaseModel):
    """Update workflow request"""

    name: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = None
    trigger_type: TriggerType | None = None
    trigger_config: TriggerConfigSchema | None = None
    conditions: list[ConditionSchema] | None = None
    actions: list[ActionSchema] | None = Field(None, min_length=1)
    is_active: bool | None = None

    def to_changes(self) -> dict[str, Any]:
        """Set fields only, in the stored JSON shape"""
        changes = self.model_dump(exclude_unset=True, mode="json")
        if "trigger_config" in changes and changes["trigger_config"] is not None:
            changes["trigger_config"] = {k: v for k, v in changes["trigger_config"].items() if v}
        return changes


class WorkflowExecuteRequest(BaseModel):
    """Manual execution request"""

    trigger_data: dict[str, Any] = Field(default_factory=dict)


class WorkflowExecuteResponse(BaseModel):
    message: str
    workflow_id: str


class EventTriggerRequest(BaseModel):
    """Publish an event to the tenant's event workflows"""

    event_name: str = Field(..., min_length=1)
    data: dict[str, Any] = Field(default_factory=dict)


class EventTriggerResponse(BaseModel):
    event_name: str
    workflows_triggered: int


class WorkflowResponse(BaseModel):
    """Workflow response"""

    id: str
    tenant_id: str
    name: str
    description: str | None
    is_active: bool
    trigger_type: str
    trigger_config: dict[str, Any] | None
    conditions: list[dict[str, Any]] | None
    actions: list[dict[str, Any]]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class WorkflowExecutionResponse(BaseModel):
    """Workflow execution response"""

    id: str
    tenant_id: str
    workflow_id: str
    trigger_data: dict[str, Any] | None
    status: str
    actions_completed: int
    actions_failed: int
    execution_log: list[dict[str, Any]] | None
    error_message: str | None
    started_at: datetime | None
    completed_at: datetime | None
    duration_ms: int | None

    model_config = ConfigDict(from_attributes=True)
