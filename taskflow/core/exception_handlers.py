"""Exception handlers: map engine and framework errors to JSON responses.

Every error body has the same shape: {"error": code, "message": text,
"details": ...}. Register once with register_exception_handlers(app).
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from taskflow.core.config import get_settings
from taskflow.domain.exceptions import TaskflowException

logger = logging.getLogger(__name__)

# Domain error_code -> HTTP status; anything else is a client error (400)
_ERROR_CODE_STATUS: dict[str, int] = {
    "RESOURCE_NOT_FOUND": 404,
    "VALIDATION_ERROR": 400,
    "SCHEDULER_AUTH_ERROR": 401,
    "SERVICE_UNAVAILABLE": 503,
}


def _error_body(error: str, message: Any, details: Any = None) -> dict[str, Any]:
    body: dict[str, Any] = {"error": error, "message": message}
    if details is not None:
        body["details"] = details
    return body


def _taskflow_exception_handler(request: Request, exc: TaskflowException) -> JSONResponse:
    status = _ERROR_CODE_STATUS.get(exc.error_code, 400)
    if status >= 500:
        logger.error("%s %s: %s", request.method, request.url.path, exc.message)
    else:
        logger.info(
            "%s %s -> %s %s", request.method, request.url.path, status, exc.error_code
        )
    return JSONResponse(status_code=status, content=exc.to_dict())


def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request (path, query or body) -> 422."""
    return JSONResponse(
        status_code=422,
        content=_error_body("VALIDATION_ERROR", "Request validation failed", exc.errors()),
    )


def _stored_data_validation_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """A stored workflow definition no longer validates -> 500 with the model name."""
    logger.error(
        "Stored %s failed validation on %s %s: %s error(s)",
        exc.title,
        request.method,
        request.url.path,
        exc.error_count(),
    )
    details = exc.errors(include_url=False) if get_settings().debug else None
    return JSONResponse(
        status_code=500,
        content=_error_body("INVALID_STORED_DATA", f"Stored {exc.title} is invalid", details),
    )


def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body("HTTP_ERROR", exc.detail),
        headers=getattr(exc, "headers", None),
    )


def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """500; the exception text is only exposed in debug mode."""
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    message = str(exc) if get_settings().debug else "Internal server error"
    return JSONResponse(status_code=500, content=_error_body("INTERNAL_ERROR", message))


def register_exception_handlers(app: FastAPI) -> None:
    """Register the handlers above on app (most specific first)."""
    app.add_exception_handler(TaskflowException, _taskflow_exception_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(ValidationError, _stored_data_validation_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)
