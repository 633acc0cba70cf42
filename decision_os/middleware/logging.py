"""
Logging setup and request middleware.

Every event carries the request's correlation id. Credentials are
redacted and long text (prompts, model replies, dataset previews) is
cut short before an event is rendered.
"""
import logging
import sys
import time
import uuid
from contextvars import ContextVar
from typing import Any, Callable

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

# Correlation ID of the request being handled
correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")

logger = structlog.get_logger(__name__)

# Keys whose values never reach the logs
SENSITIVE_FIELDS = {
    "api_key", "x-api-key", "anthropic_api_key",
    "authorization", "token", "secret", "password",
}

MAX_LOGGED_CHARS = 500

SLOW_REQUEST_MS = 1000

# These wait on the model, so their duration says nothing about the service
LLM_PATH_PREFIXES = ("/api/claude", "/api/v1/chat", "/api/v1/scans", "/api/v1/brief")


def get_correlation_id() -> str:
    """Get the current request's correlation ID."""
    return correlation_id.get()


def is_llm_path(path: str) -> bool:
    return path.startswith(LLM_PATH_PREFIXES)


def redact_sensitive_data(data: Any, depth: int = 0) -> Any:
    """
    Recursively replace values of sensitive keys with "[REDACTED]".

    Args:
        data: Dictionary to redact.
        depth: Current recursion depth; nesting beyond 5 levels is left as is.
    """
    if depth > 5 or not isinstance(data, dict):
        return data

    redacted = {}
    for key, value in data.items():
        if isinstance(key, str) and any(s in key.lower() for s in SENSITIVE_FIELDS):
            redacted[key] = "[REDACTED]"
        elif isinstance(value, dict):
            redacted[key] = redact_sensitive_data(value, depth + 1)
        elif isinstance(value, list):
            redacted[key] = [redact_sensitive_data(item, depth + 1) for item in value]
        else:
            redacted[key] = value
    return redacted


def truncate_text(value: Any, limit: int = MAX_LOGGED_CHARS) -> Any:
    if isinstance(value, str) and len(value) > limit:
        return f"{value[:limit]}... [{len(value) - limit} more chars]"
    return value


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Reads X-Correlation-ID or assigns one, and echoes it on the response."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Correlation-ID") or str(uuid.uuid4())
        correlation_id.set(request_id)

        response = await call_next(request)
        response.headers["X-Correlation-ID"] = request_id
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs each request with its status and duration.

    Streaming replies are timed to their first byte. Requests that wait on
    the model are tagged llm=True and never reported as slow.
    """

    SKIP_PATHS = {"/health", "/api/health", "/docs", "/redoc", "/openapi.json"}

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        if path in self.SKIP_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        request_info = {
            "method": request.method,
            "path": path,
            "llm": is_llm_path(path),
            "correlation_id": get_correlation_id(),
        }
        logger.info("request_started", **request_info)

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "request_failed",
                **request_info,
                error=str(e),
                error_type=type(e).__name__,
                duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
            )
            raise

        duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
        logger.info(
            "request_completed",
            **request_info,
            status_code=response.status_code,
            duration_ms=duration_ms,
        )
        if duration_ms > SLOW_REQUEST_MS and not request_info["llm"]:
            logger.warning("slow_request", **request_info, duration_ms=duration_ms)

        return response


def add_correlation_id_processor(logger: Any, method_name: str, event_dict: dict) -> dict:
    """Structlog processor that adds correlation ID to all log entries."""
    event_dict["correlation_id"] = get_correlation_id()
    return event_dict


def redact_sensitive_processor(logger: Any, method_name: str, event_dict: dict) -> dict:
    """Structlog processor that redacts sensitive data from log entries."""
    return redact_sensitive_data(event_dict)


def truncate_text_processor(logger: Any, method_name: str, event_dict: dict) -> dict:
    return {key: truncate_text(value) for key, value in event_dict.items()}


def configure_logging(log_level: str = "INFO", json_logs: bool = True) -> None:
    """
    Route structlog through stdlib logging.

    Args:
        log_level: Name of the stdlib level.
        json_logs: JSON lines when true, coloured console output otherwise.
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )
    renderer = structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            add_correlation_id_processor,
            redact_sensitive_processor,
            truncate_text_processor,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
