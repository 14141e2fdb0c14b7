"""Global exception handlers for consistent error responses.

This module provides FastAPI exception handlers that intercept all errors
(domain, request validation, HTTP and unexpected) and return consistent
JSON responses with proper HTTP status codes and traceability.

Design:
- AppError subclasses → appropriate HTTP status (400, 403, 500)
- Request body validation errors → 400 invalid_request
- Starlette HTTP errors (404, 405, ...) → same envelope, same status
- Unexpected Exception → generic 500 (safety net)
- All responses include request_id for distributed tracing
"""

import logging
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.errors import AppError, AuthenticationAppError, RealtimeAppError
from app.core.logging import get_request_id

logger = logging.getLogger(__name__)

_HTTP_ERROR_CODES = {
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
    429: "rate_limited",
}


def _error_response(
    status_code: int,
    code: str,
    message: str,
    details: Any = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    error_content: dict[str, Any] = {
        "code": code,
        "message": message,
        "request_id": get_request_id(),
    }
    # Include details only if present (optional structured context)
    if details:
        error_content["details"] = details

    return JSONResponse(
        status_code=status_code,
        content={"error": error_content},
        headers=headers,
    )


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors with consistent JSON format.

    Routes domain errors to appropriate HTTP status codes:
    - ValidationAppError → 400 Bad Request (client fault)
    - AuthenticationAppError → 403 Forbidden (authorization fault)
    - RealtimeAppError → 500 Internal Server Error (transport fault)

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with appropriate status code and error details.
    """
    status_code = 400
    if isinstance(exc, AuthenticationAppError):
        status_code = 403
    elif isinstance(exc, RealtimeAppError):
        status_code = 500

    logger.warning(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "has_details": bool(exc.details),
            "request_id": get_request_id(),
        },
    )

    return _error_response(status_code, exc.code, exc.message, exc.details)


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Map malformed request bodies to 400 invalid_request.

    The first offending field is named in the message; the full list of
    problems goes into details.
    """
    errors = exc.errors()
    fields = [
        ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        for err in errors
    ]
    fields = [field for field in fields if field]
    message = "Invalid request body"
    if fields:
        message = f"Invalid or missing field: {fields[0]}"

    logger.warning(
        "request_validation_failed",
        extra={
            "request_path": request.url.path,
            "invalid_fields": fields,
        },
    )

    return _error_response(
        400,
        "invalid_request",
        message,
        {"context": {"fields": fields}} if fields else None,
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Wrap framework HTTP errors in the standard error envelope."""
    if exc.status_code == 404:
        logger.warning(
            "http.unhandled_route",
            extra={
                "request_path": request.url.path,
                "request_method": request.method,
            },
        )
        message = f"Route not found: {request.method} {request.url.path}"
    else:
        message = str(exc.detail)

    code = _HTTP_ERROR_CODES.get(exc.status_code, "http_error")
    return _error_response(
        exc.status_code,
        code,
        message,
        headers=getattr(exc, "headers", None),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Logs detailed information for debugging while returning a generic
    message, so no stack traces reach the client.
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
            "request_id": get_request_id(),
        },
    )

    return _error_response(
        500,
        "internal_server_error",
        "An unexpected error occurred. Please try again later.",
    )


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with FastAPI app.

    Example:
        >>> from fastapi import FastAPI
        >>> from app.core.exception_handlers import setup_exception_handlers
        >>> app = FastAPI()
        >>> setup_exception_handlers(app)
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(RequestValidationError)(request_validation_handler)
    app.exception_handler(StarletteHTTPException)(http_exception_handler)
    app.exception_handler(Exception)(general_exception_handler)
