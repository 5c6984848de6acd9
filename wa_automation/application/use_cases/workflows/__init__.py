from wa_automation.application.use_cases.workflows.action_executor import (ActionExecutor,
                                                                           replace_variables)
from wa_automation.application.use_cases.workflows.condition_evaluator import (
    ConditionEvaluator, values_equal)
from wa_automation.application.use_cases.workflows.workflow_engine import WorkflowEngine

__all__ = [
    "ActionExecutor",
    "ConditionEvaluator",
    "WorkflowEngine",
    "replace_variables",
    "values_equal",
]
