"""
FastAPI application entry point.

Builds the app, wires middleware and routers, and maps DecisionOSError
to the JSON error body every route shares.
"""
import traceback

import sentry_sdk
import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration
from slowapi.errors import RateLimitExceeded

from decision_os import __version__
from decision_os.api.routes import (
    brief,
    change_projects,
    chat,
    findings,
    journal,
    llm_proxy,
    monitoring,
    parse,
    profile,
    scans,
    state,
)
from decision_os.config import get_settings
from decision_os.database import init_db
from decision_os.exceptions import DecisionOSError
from decision_os.middleware.logging import (
    CorrelationIdMiddleware,
    RequestLoggingMiddleware,
    configure_logging,
    redact_sensitive_data,
)
from decision_os.middleware.rate_limit import limiter, rate_limit_exceeded_handler


def scrub_sentry_event(event: dict, hint: dict) -> dict:
    """
    Strip request bodies and credentials from Sentry events.

    Bodies hold prompts, uploaded business data and journal text.
    """
    request_data = event.get("request")
    if request_data:
        request_data.pop("data", None)
        if "headers" in request_data:
            request_data["headers"] = redact_sensitive_data(request_data["headers"])
    if "extra" in event:
        event["extra"] = redact_sensitive_data(event["extra"])
    return event


settings = get_settings()

configure_logging(settings.log_level, json_logs=not settings.debug)

logger = structlog.get_logger(__name__)

if settings.sentry_dsn:
    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.environment,
        release=__version__,
        traces_sample_rate=settings.sentry_traces_sample_rate,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
            LoggingIntegration(level=None, event_level="ERROR"),
        ],
        send_default_pii=False,
        before_send=scrub_sentry_event,
    )

app = FastAPI(
    title="Decision Accountability OS API",
    description="""
## Decision intelligence for executives

Runs enterprise and revenue scans over uploaded business data, parses the
model's reply into findings and opportunities, and tracks decisions and
change projects.

### Key Features

- **Advisor Chat**: questions answered with the profile, data and journal in context
- **Enterprise Scan**: FINDING records with exposure, daily cost and severity tier
- **Revenue Scan**: OPPORTUNITY records with potential, horizon and quick wins
- **Command Centre**: exposure, resolution health and top priorities
- **Decision Journal**: tiered decisions with review dates and an audit trail
- **Executive Brief**: one-screen JSON summary

Without an API key every model call is answered by a canned demo assistant.
    """,
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {"name": "LLM", "description": "Completion proxy, streaming or whole"},
        {"name": "Chat", "description": "Advisor chat over stored context"},
        {"name": "Scans", "description": "Dataset upload and scans"},
        {"name": "Parse", "description": "Parse raw scan text into records"},
        {"name": "Findings", "description": "Resolution state and the command centre"},
        {"name": "Profile", "description": "CEO profile"},
        {"name": "Journal", "description": "Decision journal and audit log"},
        {"name": "Change", "description": "Change projects and workstreams"},
        {"name": "Brief", "description": "Executive brief"},
        {"name": "State", "description": "Reset stored data"},
        {"name": "Monitoring", "description": "Health checks"},
    ],
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Correlation-ID"],
)

# Add logging middleware (order matters: correlation ID first)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(CorrelationIdMiddleware)

# Add GZip compression for responses > 1KB
app.add_middleware(GZipMiddleware, minimum_size=1000)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

app.include_router(llm_proxy.router, tags=["LLM"])
app.include_router(chat.router, prefix="/api/v1", tags=["Chat"])
app.include_router(scans.router, prefix="/api/v1", tags=["Scans"])
app.include_router(parse.router, prefix="/api/v1", tags=["Parse"])
app.include_router(findings.router, prefix="/api/v1", tags=["Findings"])
app.include_router(profile.router, prefix="/api/v1", tags=["Profile"])
app.include_router(journal.router, prefix="/api/v1", tags=["Journal"])
app.include_router(change_projects.router, prefix="/api/v1", tags=["Change"])
app.include_router(brief.router, prefix="/api/v1", tags=["Brief"])
app.include_router(state.router, prefix="/api/v1", tags=["State"])

# Monitoring routes (no prefix for easy access)
app.include_router(monitoring.router, tags=["Monitoring"])


@app.exception_handler(DecisionOSError)
async def decision_os_exception_handler(request: Request, exc: DecisionOSError):
    """Render application errors as the shared JSON error body."""
    log = logger.error if exc.http_status >= 500 else logger.warning
    log(
        "decision_os_error",
        error_code=exc.error_code,
        message=exc.message,
        details=exc.details,
        path=str(request.url.path),
    )
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions with consistent format."""
    sentry_sdk.capture_exception(exc)

    logger.error(
        "unhandled_error",
        error_type=type(exc).__name__,
        message=str(exc),
        path=str(request.url.path),
        traceback=traceback.format_exc(),
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": True,
            "error_code": "DAO-999",
            "message": "An unexpected error occurred. Please try again.",
            "details": {"error_type": type(exc).__name__} if settings.debug else {},
        },
    )


@app.on_event("startup")
async def startup_event() -> None:
    """Initialize application on startup."""
    logger.info("decision_os_starting", debug=settings.debug, mode=settings.mode.value)

    if settings.sentry_dsn:
        logger.info("sentry_enabled", environment=settings.environment)
    else:
        logger.info("sentry_disabled")

    init_db()

    logger.info("decision_os_started", api_configured=settings.api_configured)


@app.on_event("shutdown")
async def shutdown_event() -> None:
    logger.info("decision_os_shutting_down")
