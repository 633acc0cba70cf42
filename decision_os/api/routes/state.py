"""
State reset route.
"""
import structlog
from fastapi import APIRouter, Depends, Response

from decision_os.api.dependencies import get_store
from decision_os.services.storage import KeyValueStore

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.delete("/state", status_code=204, summary="Reset all data")
async def reset_state(store: KeyValueStore = Depends(get_store)) -> Response:
    """Delete the profile, scans, journal, audit log and change projects."""
    store.reset_all()
    logger.warning("state_reset")
    return Response(status_code=204)
