"""
Middleware module initialization.
"""
from decision_os.middleware.logging import (
    CorrelationIdMiddleware,
    RequestLoggingMiddleware,
    add_correlation_id_processor,
    configure_logging,
    get_correlation_id,
    redact_sensitive_data,
    redact_sensitive_processor,
    truncate_text_processor,
)
from decision_os.middleware.rate_limit import (
    limiter,
    llm_rate_limit,
    rate_limit_exceeded_handler,
    scan_rate_limit,
)

__all__ = [
    "CorrelationIdMiddleware",
    "RequestLoggingMiddleware",
    "add_correlation_id_processor",
    "configure_logging",
    "get_correlation_id",
    "redact_sensitive_data",
    "redact_sensitive_processor",
    "truncate_text_processor",
    "limiter",
    "llm_rate_limit",
    "rate_limit_exceeded_handler",
    "scan_rate_limit",
]
