"""
Application layer - Application Business Rules.

This layer contains application-specific business rules, including:
- Interfaces (ports) for infrastructure dependencies
- Use cases that orchestrate domain logic
"""

from wa_automation.application.interfaces import (ILanguageModelService,
                                                  IMessagingService, IRecordUpdater,
                                                  JobHandler)
from wa_automation.application.use_cases import (ActionExecutor, ConditionEvaluator,
                                                 ExecuteWorkflowJobHandler, JobQueue,
                                                 JobService, WorkerPool, WorkflowEngine)

__all__ = [
    # Interfaces
    "IMessagingService",
    "ILanguageModelService",
    "IRecordUpdater",
    "JobHandler",
    # Use Cases
    "ActionExecutor",
    "ConditionEvaluator",
    "WorkflowEngine",
    "JobQueue",
    "JobService",
    "WorkerPool",
    "ExecuteWorkflowJobHandler",
]
