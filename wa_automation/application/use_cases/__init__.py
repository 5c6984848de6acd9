"""Application use cases."""

from wa_automation.application.use_cases.jobs import (ExecuteWorkflowJobHandler, JobQueue,
                                                      JobService, Worker, WorkerPool)
from wa_automation.application.use_cases.workflows import (ActionExecutor, ConditionEvaluator,
                                                           WorkflowEngine)

__all__ = [
    "ActionExecutor",
    "ConditionEvaluator",
    "WorkflowEngine",
    "JobQueue",
    "JobService",
    "Worker",
    "WorkerPool",
    "ExecuteWorkflowJobHandler",
]
