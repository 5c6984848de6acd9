"""Domain entities."""

from wa_automation.domain.entities.job import (EnqueueOptions, JobFilter,
                                               JobStats, WorkerConfig,
                                               calculate_backoff)
from wa_automation.domain.entities.tenant import TenantEntity
from wa_automation.domain.entities.workflow import (
    Action, ActionConfig, CallApiConfig, CallLlmConfig, Condition,
    ExecutionLogEntry, LogMessageConfig, SendWhatsAppConfig, TriggerConfig,
    UnknownActionConfig, UpdateDatabaseConfig, parse_actions,
    parse_conditions)

__all__ = [
    "TenantEntity",
    # Workflow
    "TriggerConfig",
    "Condition",
    "Action",
    "ActionConfig",
    "SendWhatsAppConfig",
    "UpdateDatabaseConfig",
    "CallApiConfig",
    "CallLlmConfig",
    "LogMessageConfig",
    "UnknownActionConfig",
    "ExecutionLogEntry",
    "parse_conditions",
    "parse_actions",
    # Jobs
    "EnqueueOptions",
    "JobFilter",
    "JobStats",
    "WorkerConfig",
    "calculate_backoff",
]
