"""
Domain layer - Enterprise Business Rules.

This is the innermost layer containing business entities and domain
exceptions. It has no dependencies on other layers.
"""

from wa_automation.domain.entities import (Action, Condition, EnqueueOptions,
                                           ExecutionLogEntry, JobFilter,
                                           JobStats, TenantEntity,
                                           TriggerConfig, WorkerConfig)
from wa_automation.domain.enums import TenantStatus
from wa_automation.domain.exceptions import (ActionExecutionError,
                                             AutomationException,
                                             ConditionEvaluationError,
                                             JobNotCancellableError,
                                             JobTimeoutError,
                                             ResourceNotFoundException,
                                             SchedulerConfigurationError,
                                             ValidationException,
                                             WorkflowDefinitionError,
                                             WorkflowInactiveError)

__all__ = [
    # Entities
    "TenantEntity",
    "TriggerConfig",
    "Condition",
    "Action",
    "ExecutionLogEntry",
    "EnqueueOptions",
    "JobFilter",
    "JobStats",
    "WorkerConfig",
    # Enums
    "TenantStatus",
    # Exceptions
    "AutomationException",
    "ValidationException",
    "ResourceNotFoundException",
    "ConditionEvaluationError",
    "ActionExecutionError",
    "WorkflowDefinitionError",
    "WorkflowInactiveError",
    "SchedulerConfigurationError",
    "JobNotCancellableError",
    "JobTimeoutError",
]
