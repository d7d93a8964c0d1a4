"""Server error handling - sanitizes errors for client responses.

Prevents exposure of sensitive information like file paths, stack traces,
and internal configuration to HTTP clients.
"""

import logging
import uuid

from fastapi import Request
from fastapi.responses import JSONResponse

from anamnesis.core.errors import (
    AlreadyCompleteError,
    ConfigError,
    DelegateFailure,
    SessionNotFoundError,
    StateError,
    UnknownSlotError,
    ValidationRejected,
)

logger = logging.getLogger(__name__)


# Error messages safe to expose to clients
SAFE_ERROR_MESSAGES = {
    "ConfigError": "Configuration error. Please contact support.",
    "SessionNotFoundError": "Session not found. Please start a new interview.",
    "StateError": "Session state error. Please start a new interview.",
    "UnknownSlotError": "Unknown question for this interview.",
    "ValidationRejected": "Invalid answer provided.",
    "AlreadyCompleteError": "The interview is already complete.",
    "DelegateFailure": "The language service is unavailable. Please try again.",
    "DelegateTimeoutError": "The language service timed out. Please try again.",
    "DelegateParsingError": "The language service returned an invalid response.",
}

DEFAULT_ERROR_MESSAGE = "An internal error occurred. Please try again later."


def create_error_reference() -> str:
    """Generate unique error reference for client/server correlation."""
    return f"ERR-{uuid.uuid4().hex[:8].upper()}"


def get_safe_error_message(exception: Exception) -> str:
    """Get client-safe error message for exception type."""
    return SAFE_ERROR_MESSAGES.get(type(exception).__name__, DEFAULT_ERROR_MESSAGE)


def get_http_status_for_exception(exception: Exception) -> int:
    """Map exception types to appropriate HTTP status codes."""
    # Client errors (4xx)
    if isinstance(exception, SessionNotFoundError):
        return 404
    if isinstance(exception, (UnknownSlotError, ValidationRejected)):
        return 422
    if isinstance(exception, AlreadyCompleteError):
        return 409

    # Server errors (5xx)
    if isinstance(exception, DelegateFailure):
        return 502
    if isinstance(exception, (ConfigError, StateError)):
        return 500

    return 500


def log_error_with_context(
    error_ref: str,
    exception: Exception,
    session_id: str | None = None,
    endpoint: str | None = None,
) -> None:
    """Log full error details server-side for debugging."""
    logger.error(
        f"[{error_ref}] Error in {endpoint or 'unknown'} "
        f"for session {session_id or 'unknown'}: {type(exception).__name__}: {exception}",
        exc_info=True,
        extra={
            "error_reference": error_ref,
            "session_id": session_id,
            "endpoint": endpoint,
            "exception_type": type(exception).__name__,
        },
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler for uncaught exceptions."""
    error_ref = create_error_reference()
    session_id = request.path_params.get("session_id")

    log_error_with_context(error_ref, exc, session_id, request.url.path)

    return JSONResponse(
        status_code=get_http_status_for_exception(exc),
        content={
            "error": get_safe_error_message(exc),
            "reference": error_ref,
            "message": "If this problem persists, contact support with the reference code.",
        },
    )
