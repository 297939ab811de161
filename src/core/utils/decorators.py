"""
Common decorators and helpers for API Gateway Lambda handlers.
"""

from __future__ import annotations

import os
from collections.abc import Callable
from functools import wraps
from typing import Any

from aws_lambda_powertools import Logger

from core.models.errors import (
    AuthenticationError,
    AuthorizationError,
    ImageServiceError,
    NotFoundError,
    ValidationError,
)
from core.utils.constants import ENV_CORS_ORIGIN, ERROR_CODE_INTERNAL_ERROR
from core.utils.response import ResponseBuilder

logger = Logger(service="api-gateway-handler", UTC=True)

JsonDict = dict[str, Any]

# Client errors and the builder answering them
_CLIENT_ERROR_RESPONSES: tuple[tuple[type[ImageServiceError], Callable[..., JsonDict]], ...] = (
    (AuthenticationError, ResponseBuilder.unauthorized),
    (AuthorizationError, ResponseBuilder.forbidden),
    (NotFoundError, ResponseBuilder.not_found),
)

CLIENT_ERRORS = (ValidationError, *(error_type for error_type, _ in _CLIENT_ERROR_RESPONSES))

INTERNAL_ERROR_MESSAGE = "Internal server error"


def error_response(
    exc: Exception,
    *,
    request_id: str | None = None,
    cors_origin: str | None = None,
) -> JsonDict:
    """Map an exception to exactly one API Gateway error response.

    Only domain client errors expose their message; everything else becomes
    a generic 500.
    """
    if isinstance(exc, ValidationError):
        return ResponseBuilder.bad_request(
            exc.message,
            error=exc.error_code,
            details=exc.details,
            request_id=request_id,
            cors_origin=cors_origin,
        )

    for error_type, build in _CLIENT_ERROR_RESPONSES:
        if isinstance(exc, error_type):
            return build(
                exc.message,
                error=exc.error_code,
                request_id=request_id,
                cors_origin=cors_origin,
            )

    return ResponseBuilder.internal_error(
        INTERNAL_ERROR_MESSAGE,
        error=ERROR_CODE_INTERNAL_ERROR,
        request_id=request_id,
        cors_origin=cors_origin,
    )


def request_log_context(event: JsonDict, context: Any) -> JsonDict:
    """Structured summary of an inbound request; never includes headers or body."""
    return {
        "http_method": event.get("httpMethod"),
        "path": event.get("path"),
        "path_params": event.get("pathParameters"),
        "request_id": getattr(context, "aws_request_id", None),
        "function_name": getattr(context, "function_name", None),
        "remaining_time_ms": context.get_remaining_time_in_millis()
        if hasattr(context, "get_remaining_time_in_millis")
        else None,
    }


def _log_error(
    message: str,
    *,
    handler_name: str,
    request_id: str | None,
    exc: Exception,
    level: str = "warning",
) -> None:
    """
    Log error with consistent structure and full context.

    Args:
        message: Log message
        handler_name: Name of the handler function
        request_id: AWS request ID
        exc: Exception that was raised
        level: Log level ('warning' or 'exception')
    """
    log_extra: JsonDict = {
        "handler": handler_name,
        "request_id": request_id,
        "error": str(exc),
        "error_type": type(exc).__name__,
    }

    if isinstance(exc, ImageServiceError):
        log_extra["error_code"] = exc.error_code
        log_extra["failed_step"] = exc.failed_step
        if exc.__cause__ is not None:
            log_extra["cause_type"] = type(exc.__cause__).__name__

    if level == "exception":
        # logger.exception includes the traceback and the chained cause
        logger.exception(message, extra=log_extra)
    else:
        logger.warning(message, extra=log_extra)


def api_gateway_handler(
    func: Callable[..., JsonDict],
) -> Callable[..., JsonDict]:
    """
    Decorator for API Gateway Lambda handlers.

    Provides:
    - Automatic CORS preflight (OPTIONS) handling
    - Centralized mapping of domain errors to HTTP responses
    - Request ID tracking and structured logging

    Example:
        @api_gateway_handler
        def lambda_handler(event, context):
            return ResponseBuilder.ok({"status": "ok"})
    """

    @wraps(func)
    def wrapper(
        event: Any,
        context: Any,
        *,
        cors_origin: str | None = None,
    ) -> JsonDict:
        cors_origin = cors_origin or os.environ.get(ENV_CORS_ORIGIN) or None
        request_id = getattr(context, "aws_request_id", None)

        # Handle CORS preflight requests
        if (event.get("httpMethod") or "").upper() == "OPTIONS":
            return ResponseBuilder.no_content(
                request_id=request_id,
                cors_origin=cors_origin,
            )

        try:
            response = func(event, context)
            if cors_origin:
                response.setdefault("headers", {})["Access-Control-Allow-Origin"] = cors_origin
            return response

        except ImageServiceError as exc:
            client_error = isinstance(exc, CLIENT_ERRORS)
            _log_error(
                "Request rejected" if client_error else "Request failed",
                handler_name=func.__name__,
                request_id=request_id,
                exc=exc,
                level="warning" if client_error else "exception",
            )
            return error_response(exc, request_id=request_id, cors_origin=cors_origin)

        # Catch-all for unexpected errors
        except Exception as exc:
            _log_error(
                "Unexpected error in handler",
                handler_name=func.__name__,
                request_id=request_id,
                exc=exc,
                level="exception",
            )
            return error_response(exc, request_id=request_id, cors_origin=cors_origin)

    return wrapper
