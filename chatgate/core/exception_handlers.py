"""Global exception handlers for errors that escape a route.

The chat pipeline renders its own rejections; these handlers are the safety
net for everything else (misconfiguration surfacing mid-request, framework
validation, bugs). Clients always get the same ``{"error", "response"}`` shape
as gate rejections, with a localized generic message. Error details are
logged server-side only.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from chatgate.core.errors import (
    AppError,
    UpstreamQuotaExhaustedError,
    UpstreamRateLimitedError,
    UpstreamUnavailableError,
    ValidationAppError,
)
from chatgate.core.logging import get_request_id
from chatgate.core.messages import (
    DEFAULT_LANGUAGE,
    RejectionReason,
    message_for,
    status_for,
)

logger = logging.getLogger(__name__)


def _reason_for(exc: AppError) -> RejectionReason:
    if isinstance(exc, ValidationAppError):
        return RejectionReason.MALFORMED_INPUT
    if isinstance(exc, UpstreamRateLimitedError):
        return RejectionReason.UPSTREAM_RATE_LIMITED
    if isinstance(exc, UpstreamQuotaExhaustedError):
        return RejectionReason.UPSTREAM_QUOTA_EXHAUSTED
    if isinstance(exc, UpstreamUnavailableError):
        return RejectionReason.UPSTREAM_UNAVAILABLE
    return RejectionReason.INTERNAL_ERROR


def _error_response(reason: RejectionReason) -> JSONResponse:
    return JSONResponse(
        status_code=status_for(reason),
        content={
            "error": reason.value,
            "response": message_for(reason, DEFAULT_LANGUAGE),
            "request_id": get_request_id(),
        },
    )


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Map a domain error to its rejection code.

    - ValidationAppError → 400 ``malformed_input``
    - Upstream errors → 429 / 402 / 500 by subclass
    - Anything else → 500 ``internal_error``

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with the mapped status code.
    """
    reason = _reason_for(exc)
    logger.warning(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "reason": reason.value,
            "has_details": bool(exc.details),
            "request_path": request.url.path,
        },
    )
    return _error_response(reason)


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    logger.info(
        "request_validation_failed",
        extra={"request_path": request.url.path, "error_count": len(exc.errors())},
    )
    return _error_response(RejectionReason.MALFORMED_INPUT)


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors.

    Logs the exception type and path; the client gets a generic message and
    never a stack trace.
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "request_path": request.url.path,
            "request_method": request.method,
        },
        exc_info=exc,
    )
    return _error_response(RejectionReason.INTERNAL_ERROR)


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(RequestValidationError)(request_validation_handler)
    app.exception_handler(Exception)(general_exception_handler)
