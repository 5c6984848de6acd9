"""Maps domain exceptions to HTTP responses"""

from typing import cast

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from wa_automation.domain.exceptions import (AutomationException, JobNotCancellableError,
                                             ResourceNotFoundException, WorkflowInactiveError)
from wa_automation.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

_STATUS_BY_EXCEPTION: list[tuple[type[AutomationException], int]] = [
    (ResourceNotFoundException, status.HTTP_404_NOT_FOUND),
    (JobNotCancellableError, status.HTTP_409_CONFLICT),
    (WorkflowInactiveError, status.HTTP_409_CONFLICT),
]


def status_code_for(exc: AutomationException) -> int:
    for exc_type, code in _STATUS_BY_EXCEPTION:
        if isinstance(exc, exc_type):
            return code
    return status.HTTP_400_BAD_REQUEST


async def automation_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    # Registered for AutomationException only
    error = cast(AutomationException, exc)
    code = status_code_for(error)
    logger.info("%s %s -> %d %s", request.method, request.url.path, code, error.error_code)
    return JSONResponse(status_code=code, content=error.to_dict())


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AutomationException, automation_exception_handler)
