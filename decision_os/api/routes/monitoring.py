"""
Health endpoints.

/api/health tells a client whether live completions are available.
"""
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from decision_os import __version__
from decision_os.api.dependencies import get_app_settings
from decision_os.config import Settings
from decision_os.database import get_db
from decision_os.schemas.state import HealthResponse
from decision_os.services.llm_client import check_health

router = APIRouter()


class ServiceHealthResponse(BaseModel):
    """Process and database status."""
    status: str
    database: str
    timestamp: str
    version: str = __version__


@router.get("/api/health", response_model=HealthResponse)
async def api_health(settings: Settings = Depends(get_app_settings)) -> HealthResponse:
    """Report whether an API key is configured and which mode calls run in."""
    return HealthResponse(**check_health(settings))


@router.get("/health", response_model=ServiceHealthResponse)
async def health_check(db: Session = Depends(get_db)) -> ServiceHealthResponse:
    """
    Basic health check endpoint.

    Returns 200 while the server runs; database reports "unhealthy" when a
    trivial query fails.
    """
    db_status = "healthy"
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        db_status = "unhealthy"

    return ServiceHealthResponse(
        status="healthy" if db_status == "healthy" else "degraded",
        database=db_status,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )
