"""Centralized error handling and logging for the JobFinder API.

This module provides:
- Global exception handler for FastAPI
- Structured logging with correlation IDs
- Environment-aware error responses (generic in production, detailed in dev)
- HTTP status mapping for summary pipeline domain errors
- Prevention of sensitive data leakage
"""

import logging
import sys
import uuid
from contextvars import ContextVar
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from pythonjsonlogger.json import JsonFormatter
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from core.config import get_settings
from core.security_config import get_allowed_error_fields, is_sensitive_key
from schemas.api import ErrorResponse
from services.ai.exceptions import SummaryServiceError


# Note: sensitive keys are centralized in `core.security_config.SENSITIVE_KEYS` and
# exposed via `is_sensitive_key`. Avoid duplicating that list here.

# Context variable for correlation ID tracking across async calls
_correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)

logger = logging.getLogger(__name__)

# Error type mappings for consistent responses
ERROR_TYPE_MESSAGES = {
    ValidationError: "Invalid request data provided",
    IntegrityError: "A data integrity constraint was violated",
}

# HTTP status per summary pipeline error code (synchronous failures only;
# failures after streaming began are delivered as terminal NDJSON records)
SUMMARY_ERROR_STATUS: dict[str, int] = {
    "not_configured": 503,
    "not_found": 404,
    "fetch_failed": 400,
    "empty_input": 400,
    "invalid_comparison": 400,
    "unsupported_format": 415,
    "rate_limited": 429,
    "backend_error": 502,
    "persistence_failed": 500,
}


def get_correlation_id() -> str:
    """Return the current correlation ID, creating one if none is set."""
    correlation_id: str | None = _correlation_id_var.get()
    if not correlation_id:
        correlation_id = str(uuid.uuid4())
        _correlation_id_var.set(correlation_id)
    return correlation_id


def set_correlation_id(correlation_id: str | None) -> None:
    _correlation_id_var.set(correlation_id)


class StructuredLogger:
    """Logger wrapper that attaches the correlation ID and redacts sensitive keys.

    Keyword arguments passed to the level methods become structured fields;
    any key matching `core.security_config.SENSITIVE_KEYS` is replaced by
    ``[REDACTED]`` at every nesting depth.
    """

    def __init__(self, logger_name: str):
        self.logger = logging.getLogger(logger_name)

    def _log_with_context(
        self,
        level: int,
        message: str,
        extra_data: dict[str, Any] | None = None,
        exc_info: bool = False,
    ) -> None:
        correlation_id = get_correlation_id()
        log_data = {
            "correlation_id": correlation_id,
            "message": message,
            **self._sanitize_data(extra_data or {}),
        }

        # The JSON formatter used in production renders message and fields
        # separately; elsewhere the correlation id is prefixed for humans.
        if get_settings().ENVIRONMENT != "production":
            message = f"[{correlation_id}] {message}"
        self.logger.log(
            level, message, extra={"structured_data": log_data}, exc_info=exc_info
        )

    def _sanitize_data(self, data: dict[str, Any]) -> dict[str, Any]:
        if not isinstance(data, dict) or not data:
            return {}

        header_redaction = self._redact_header_like(data)
        if header_redaction is not None:
            return header_redaction

        return {
            key: "[REDACTED]" if is_sensitive_key(key) else self._sanitize_value(value)
            for key, value in data.items()
        }

    def _sanitize_value(self, value: Any) -> Any:
        if isinstance(value, dict):
            return self._sanitize_data(value)
        if isinstance(value, list):
            return [self._sanitize_value(item) for item in value]
        return value

    def _redact_header_like(self, data: dict[str, Any]) -> dict[str, Any] | None:
        """Redact `{"name": <sensitive>, "value": ...}` shaped entries.

        Returns None when `data` is not header-like or its name is harmless.
        """
        if "value" not in data or not ("name" in data or "key" in data):
            return None

        header_name = data.get("name") or data.get("key")
        if not isinstance(header_name, str) or not is_sensitive_key(header_name):
            return None

        redacted: dict[str, Any] = {}
        for sub_k, sub_v in data.items():
            if sub_k.lower() in {"value", "val", "v"} or is_sensitive_key(sub_k):
                redacted[sub_k] = "[REDACTED]"
            elif isinstance(sub_v, dict):
                redacted[sub_k] = self._sanitize_data(sub_v)
            else:
                redacted[sub_k] = sub_v
        return redacted

    def info(self, message: str, **kwargs: Any) -> None:
        self._log_with_context(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._log_with_context(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self._log_with_context(logging.ERROR, message, kwargs)

    def exception(self, message: str, **kwargs: Any) -> None:
        """Log at ERROR level with the active traceback."""
        self._log_with_context(logging.ERROR, message, kwargs, exc_info=True)


structured_logger = StructuredLogger(__name__)


class ExceptionNormalizationMiddleware(BaseHTTPMiddleware):
    """Final safety net: render any uncaught Exception via the global handler."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:  # noqa: BLE001
            return await global_exception_handler(request, exc)


def _build_error_response(
    *,
    correlation_id: str,
    error_type: str,
    message: str,
    environment: str,
    details: dict[str, Any] | None = None,
    traceback_str: str | None = None,
    exception_type: str | None = None,
    validation_errors: Any | None = None,
    status_code: int = 500,
) -> JSONResponse:
    """Construct a sanitized JSON error response respecting environment rules."""
    allowed_fields = get_allowed_error_fields(environment)

    error_body: dict[str, Any] = {
        "correlation_id": correlation_id,
        "type": error_type,
    }
    optional = {
        "details": details,
        "traceback": traceback_str,
        "exception_type": exception_type,
        "validation_errors": validation_errors,
    }
    for field, value in optional.items():
        if field in allowed_fields and value is not None and value != {}:
            error_body[field] = value

    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            message=message,
            error=error_body,
            success=False,
        ).model_dump(),
    )


def summary_error_response(exc: SummaryServiceError) -> JSONResponse:
    """Render a summary pipeline error with its mapped HTTP status.

    The message of these errors is written for end users, so it is returned
    in every environment.
    """
    settings = get_settings()
    status_code = SUMMARY_ERROR_STATUS.get(exc.error_code, 500)
    log = structured_logger.error if status_code >= 500 else structured_logger.warning
    log(
        "Summary request failed",
        error_code=exc.error_code,
        status_code=status_code,
    )
    return _build_error_response(
        correlation_id=get_correlation_id(),
        error_type=exc.error_code,
        message=exc.message,
        environment=settings.ENVIRONMENT,
        exception_type=exc.__class__.__name__,
        status_code=status_code,
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler providing structured, sanitized responses.

    Every error leaves as the `ErrorResponse` envelope with a correlation ID.
    Tracebacks and exception types are only included outside production.
    """
    settings = get_settings()
    environment = settings.ENVIRONMENT
    correlation_id = get_correlation_id()

    if isinstance(exc, SummaryServiceError):
        return summary_error_response(exc)

    # HTTP exceptions keep their status code; detail only outside production
    if isinstance(exc, StarletteHTTPException):
        status_code = getattr(exc, "status_code", 500)
        detail = getattr(exc, "detail", "An error occurred")
        response = _build_error_response(
            correlation_id=correlation_id,
            error_type="http_error",
            message="An HTTP error occurred",
            environment=environment,
            details={"detail": detail},
            exception_type=exc.__class__.__name__,
            status_code=status_code,
        )
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    if isinstance(exc, ValidationError | RequestValidationError):
        validation_details = exc.errors()
        structured_logger.warning(
            "Validation error", validation_errors=validation_details
        )
        return _build_error_response(
            correlation_id=correlation_id,
            error_type="validation_error",
            message="Invalid request data provided",
            environment=environment,
            validation_errors=jsonable_errors(validation_details),
            status_code=422,
        )

    if isinstance(exc, IntegrityError):
        structured_logger.error("Integrity constraint violation", error=str(exc))
        return _build_error_response(
            correlation_id=correlation_id,
            error_type="integrity_error",
            message=ERROR_TYPE_MESSAGES[IntegrityError],
            environment=environment,
        )

    structured_logger.exception(
        "Unhandled exception", exception_type=exc.__class__.__name__, error=str(exc)
    )
    traceback_str: str | None = None
    if environment != "production":
        import traceback as _tb

        traceback_str = "".join(_tb.format_exception(exc)).strip()

    return _build_error_response(
        correlation_id=correlation_id,
        error_type="internal_server_error",
        message="An internal error occurred",
        environment=environment,
        traceback_str=traceback_str,
        exception_type=exc.__class__.__name__,
    )


def jsonable_errors(errors: Any) -> Any:
    """Drop non-serializable `ctx`/`input` members from pydantic error dicts."""
    if not isinstance(errors, list | tuple):
        return errors
    cleaned = []
    for err in errors:
        if isinstance(err, dict):
            cleaned.append(
                {k: v for k, v in err.items() if k not in {"ctx", "input", "url"}}
            )
        else:
            cleaned.append(err)
    return cleaned


def setup_logging() -> None:
    """Configure root logging once: JSON in production, plain text elsewhere."""
    settings = get_settings()

    log_level = logging.DEBUG if settings.ENVIRONMENT == "development" else logging.INFO
    root_logger = logging.getLogger()

    # Idempotent: never stack handlers
    if root_logger.handlers:
        return

    formatter: logging.Formatter
    if settings.ENVIRONMENT == "production":
        formatter = JsonFormatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s",
            rename_fields={"asctime": "timestamp", "levelname": "level"},
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.setLevel(log_level)

    root_logger.setLevel(log_level)
    root_logger.addHandler(handler)

    # Quiet noisy third-party loggers in production
    if settings.ENVIRONMENT == "production":
        logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
        logging.getLogger("httpx").setLevel(logging.WARNING)
