"""Application error taxonomy and its HTTP rendering."""
import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class TrackerError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "internal_error"

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(TrackerError):
    """Malformed or missing input."""
    status_code = status.HTTP_400_BAD_REQUEST
    code = "validation_error"


class NotFoundError(TrackerError):
    """A referenced entity does not exist."""
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class ConflictError(TrackerError):
    """A uniqueness or restrict constraint was violated."""
    status_code = status.HTTP_409_CONFLICT
    code = "conflict"


class UnauthorizedError(TrackerError):
    """Missing, unknown or expired session."""
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "unauthorized"


class PermissionDeniedError(TrackerError):
    """Authenticated user tried to act on another user's rows."""
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"


class PersistenceError(TrackerError):
    """Unexpected store failure."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "persistence_error"


def error_payload(exc: TrackerError) -> dict:
    payload = {"error": exc.message, "code": exc.code}
    if exc.details is not None:
        payload["details"] = exc.details
    return payload


def install_error_handlers(application: FastAPI) -> None:
    """Register handlers rendering TrackerError and request validation failures."""

    @application.exception_handler(TrackerError)
    async def _handle_tracker_error(request: Request, exc: TrackerError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(f"{type(exc).__name__} in {request.method} {request.url.path}: {exc.message}")
        else:
            logger.info(f"{request.method} {request.url.path} -> {exc.status_code} {exc.code}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=error_payload(exc))

    @application.exception_handler(RequestValidationError)
    async def _handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        message = "Invalid request"
        if errors:
            first = errors[0]
            location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
            message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": message, "code": ValidationError.code},
        )
