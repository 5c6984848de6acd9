"""
Domain exceptions for the automation backend.

This module defines domain-level exceptions that represent business rule violations.
These exceptions are independent of infrastructure concerns.
"""

from typing import Any


class AutomationException(Exception):
    """
    Base exception for all automation backend errors.

    All custom exceptions should inherit from this class to allow
    for consistent error handling and logging.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable error code for API responses
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationException(AutomationException):
    """Raised when input validation fails."""

    def __init__(self, message: str, field: str | None = None):
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class ResourceNotFoundException(AutomationException):
    """Raised when a requested resource is not found."""

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            "RESOURCE_NOT_FOUND",
            {"resource_type": resource_type, "resource_id": resource_id},
        )


class ConditionEvaluationError(AutomationException):
    """Raised when a condition cannot be evaluated against the trigger data."""

    def __init__(self, message: str, field: str | None = None, operator: str | None = None):
        details: dict[str, Any] = {}
        if field:
            details["field"] = field
        if operator:
            details["operator"] = operator
        super().__init__(message, "CONDITION_EVALUATION_ERROR", details)


class ActionExecutionError(AutomationException):
    """Raised when a workflow action's downstream call fails."""

    def __init__(self, message: str, action_type: str | None = None, status_code: int | None = None):
        details: dict[str, Any] = {}
        if action_type:
            details["action_type"] = action_type
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, "ACTION_EXECUTION_ERROR", details)


class WorkflowDefinitionError(AutomationException):
    """Raised when stored workflow conditions or actions cannot be decoded."""

    def __init__(self, message: str, workflow_id: str | None = None):
        details = {"workflow_id": workflow_id} if workflow_id else {}
        super().__init__(message, "WORKFLOW_DEFINITION_ERROR", details)


class WorkflowInactiveError(AutomationException):
    """Raised when a manual run is requested for an inactive workflow."""

    def __init__(self, workflow_id: str):
        super().__init__(
            "workflow is not active",
            "WORKFLOW_INACTIVE",
            {"workflow_id": workflow_id},
        )


class SchedulerConfigurationError(AutomationException):
    """Raised when a workflow schedule cannot be registered."""

    def __init__(self, message: str, workflow_id: str | None = None, schedule: str | None = None):
        details: dict[str, Any] = {}
        if workflow_id:
            details["workflow_id"] = workflow_id
        if schedule is not None:
            details["schedule"] = schedule
        super().__init__(message, "SCHEDULER_CONFIGURATION_ERROR", details)


class JobNotCancellableError(AutomationException):
    """Raised when a job is missing or no longer pending/retrying."""

    def __init__(self, job_id: str):
        super().__init__(
            "job not found or not in cancellable state",
            "JOB_NOT_CANCELLABLE",
            {"job_id": job_id},
        )


class JobTimeoutError(AutomationException):
    """Raised when a job handler exceeds the worker timeout."""

    def __init__(self, job_id: str, timeout: float):
        super().__init__(
            f"job {job_id} exceeded timeout of {timeout:g}s",
            "JOB_TIMEOUT",
            {"job_id": job_id, "timeout_seconds": timeout},
        )
