"""
Workflow automation models.

Workflows define a trigger, conditions and actions:
- Trigger: an event name, a cron schedule, or manual only
- Conditions: predicates over the trigger data (list-wide AND/OR)
- Actions: ordered steps executed when the conditions pass
"""
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, CheckConstraint, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from wa_automation.infrastructure.persistence.database import Base
from wa_automation.infrastructure.persistence.models.mixins import (
    MultiTenantModel, SoftDeleteMixin)
from wa_automation.shared.enums import TriggerType, WorkflowExecutionStatus


class Workflow(MultiTenantModel, SoftDeleteMixin, Base):
    """
    Tenant-scoped automation rule.

    Inherits from MultiTenantModel and SoftDeleteMixin:
        - id: CUID primary key
        - tenant_id: Foreign key to tenant
        - created_at, updated_at: Timestamps
        - deleted_at: Soft delete support

    Example workflow:
    {
        "name": "Thank big spenders",
        "trigger_type": "event",
        "trigger_config": {"event_name": "transaction_created"},
        "conditions": [
            {"field": "total_amount", "operator": "greater_than", "value": 100000}
        ],
        "actions": [
            {
                "type": "send_whatsapp",
                "config": {"message": "Thanks {customer_name}, total {total_amount}"}
            }
        ]
    }
    """

    __tablename__ = "workflow"

    # Workflow metadata
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)

    # Trigger configuration
    trigger_type: Mapped[str] = mapped_column(
        String,
        nullable=False,
        index=True,
        comment="event | scheduled | manual",
    )
    trigger_config: Mapped[dict[str, Any] | None] = mapped_column(
        JSON, nullable=True, comment="{event_name} for event, {schedule} for scheduled"
    )

    # Rule body
    conditions: Mapped[list[dict[str, Any]] | None] = mapped_column(
        JSON, nullable=True, comment="Array of conditions [{field, operator, value, logic}, ...]"
    )
    actions: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        comment="Array of actions to execute [{type, config}, ...]",
    )

    __table_args__ = (
        CheckConstraint(
            f"trigger_type IN {tuple(TriggerType.values())}", name="workflow_trigger_type_check"
        ),
    )

    @property
    def event_name(self) -> str | None:
        return (self.trigger_config or {}).get("event_name")

    @property
    def schedule(self) -> str | None:
        return (self.trigger_config or {}).get("schedule")

    @property
    def is_scheduled(self) -> bool:
        return self.trigger_type == TriggerType.SCHEDULED.value

    def __repr__(self):
        return f"<Workflow(id={self.id}, name={self.name}, trigger={self.trigger_type})>"


class WorkflowExecution(MultiTenantModel, Base):
    """
    Run record for one workflow execution.

    Inherits from MultiTenantModel:
        - id: CUID primary key
        - tenant_id: Foreign key to tenant
        - created_at: Creation timestamp
        - updated_at: Last update timestamp

    workflow_id is a weak reference (no foreign key) so history survives
    later edits or deletion of the workflow.
    """

    __tablename__ = "workflow_execution"

    workflow_id: Mapped[str] = mapped_column(String, nullable=False, index=True)

    # Trigger context
    trigger_data: Mapped[dict[str, Any] | None] = mapped_column(
        JSON, nullable=True, comment="Snapshot of the data the run was triggered with"
    )

    # Execution status
    status: Mapped[str] = mapped_column(
        String,
        nullable=False,
        default=WorkflowExecutionStatus.PENDING.value,
        comment="pending | running | completed | failed",
    )
    started_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    duration_ms: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # Execution results
    actions_completed: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Number of actions successfully executed",
    )
    actions_failed: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, comment="Number of actions that failed"
    )
    execution_log: Mapped[list[dict[str, Any]] | None] = mapped_column(
        JSON, nullable=True, comment="Ordered log of condition checks and action results"
    )
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self):
        return f"<WorkflowExecution(id={self.id}, workflow_id={self.workflow_id}, status={self.status})>"
