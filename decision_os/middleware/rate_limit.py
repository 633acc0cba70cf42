"""
Rate limiting for endpoints that spend LLM tokens.

Uses slowapi with in-memory storage; a single device has one client.
Limits are read from settings on each request, e.g. "30/minute".
"""
from fastapi import Request, Response
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse
import structlog

from decision_os.config import get_settings

logger = structlog.get_logger(__name__)

WINDOW_SECONDS = {"second": 1, "minute": 60, "hour": 3600, "day": 86400}


def get_client_identifier(request: Request) -> str:
    """Client IP, honouring the first X-Forwarded-For hop."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return get_remote_address(request)


limiter = Limiter(key_func=get_client_identifier)


def retry_after_seconds(limit: str) -> int:
    """Length of the window in a limit string like "10 per minute" or "30/minute"."""
    for unit, seconds in WINDOW_SECONDS.items():
        if unit in limit.lower():
            return seconds
    return WINDOW_SECONDS["minute"]


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> Response:
    """Return the standard error body with retry information."""
    retry_after = retry_after_seconds(str(exc.detail))
    logger.warning(
        "rate_limit_exceeded",
        client=get_client_identifier(request),
        path=request.url.path,
        limit=str(exc.detail),
    )
    return JSONResponse(
        status_code=429,
        content={
            "error": True,
            "error_code": "DAO-429",
            "message": "Too many requests. Please slow down.",
            "details": {
                "limit": str(exc.detail),
                "retry_after_seconds": retry_after,
            },
        },
        headers={"Retry-After": str(retry_after)},
    )


def llm_rate_limit():
    """Limit for the completion proxy and chat."""
    return limiter.limit(lambda: get_settings().llm_rate_limit)


def scan_rate_limit():
    """Limit for scans and the executive brief, which send whole datasets."""
    return limiter.limit(lambda: get_settings().scan_rate_limit)
