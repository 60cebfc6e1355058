"""Domain errors and their HTTP rendering.

Services raise these; the handlers registered in ``main.py`` turn them into a
stable JSON body: ``status``, ``reason``, ``message``, ``timestamp``.
"""
import logging
from datetime import datetime, timezone

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base application error with a user-safe message and an HTTP status."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    reason: str = "Internal server error."

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFoundError(AppError):
    """Referenced entity (event, user, category, request) does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    reason = "The required object was not found."


class ForbiddenError(AppError):
    """Caller is not the owner/organizer of the entity."""

    status_code = status.HTTP_403_FORBIDDEN
    reason = "Access to the object is not allowed."


class InvalidArgumentError(AppError):
    """Structurally invalid input, e.g. an event date inside the lead time."""

    status_code = status.HTTP_400_BAD_REQUEST
    reason = "Incorrectly made request."


class ConflictError(AppError):
    """Business-rule violation: duplicate request, capacity reached, wrong state."""

    status_code = status.HTTP_409_CONFLICT
    reason = "For the requested operation the conditions are not met."


class InvalidStateError(ConflictError):
    """Requested lifecycle transition is not allowed from the current state."""


def _body(status_code: int, reason: str, message: str) -> dict:
    return {
        "status": status_code,
        "reason": reason,
        "message": message,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    logger.warning(
        "%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=_body(exc.status_code, exc.reason, exc.message),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed payloads and query parameters are client errors (400)."""
    message = "; ".join(
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
    )
    logger.warning("Validation error on %s %s: %s", request.method, request.url.path, message)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_body(status.HTTP_400_BAD_REQUEST, InvalidArgumentError.reason, message),
    )
