"""
Shared enumerations for the automation backend.

Note: TenantStatus is in wa_automation/domain/enums.py as it's a domain concept.
"""

from enum import Enum, IntEnum


class TriggerType(str, Enum):
    """What starts a workflow run"""

    EVENT = "event"
    SCHEDULED = "scheduled"
    MANUAL = "manual"

    @classmethod
    def values(cls) -> list[str]:
        """Get all valid values"""
        return [trigger.value for trigger in cls]


class ConditionOperator(str, Enum):
    """Comparison operators supported by workflow conditions"""

    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    GREATER_THAN = "greater_than"
    GREATER_OR_EQUAL = "greater_or_equal"
    LESS_THAN = "less_than"
    LESS_OR_EQUAL = "less_or_equal"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    IN_LIST = "in_list"
    NOT_IN_LIST = "not_in_list"

    @classmethod
    def values(cls) -> list[str]:
        """Get all valid values"""
        return [operator.value for operator in cls]


class ActionType(str, Enum):
    """Workflow action kinds"""

    SEND_WHATSAPP = "send_whatsapp"
    UPDATE_DATABASE = "update_database"
    CALL_API = "call_api"
    CALL_LLM = "call_llm"
    LOG_MESSAGE = "log_message"

    @classmethod
    def values(cls) -> list[str]:
        """Get all valid values"""
        return [action.value for action in cls]


class WorkflowExecutionStatus(str, Enum):
    """Workflow execution status enumeration"""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @classmethod
    def values(cls) -> list[str]:
        """Get all valid values"""
        return [status.value for status in cls]


class ExecutionStep(str, Enum):
    """Step recorded in a workflow execution log entry"""

    CONDITION_CHECK = "condition_check"
    ACTION_EXECUTE = "action_execute"


class StepStatus(str, Enum):
    """Outcome of one execution log entry"""

    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


class JobStatus(str, Enum):
    """Background job lifecycle"""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    RETRYING = "retrying"
    CANCELLED = "cancelled"

    @classmethod
    def values(cls) -> list[str]:
        """Get all valid values"""
        return [status.value for status in cls]


class JobPriority(IntEnum):
    """Dequeue priority, higher runs first"""

    LOW = 0
    NORMAL = 5
    HIGH = 10
    CRITICAL = 20
