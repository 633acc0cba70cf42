"""
Executive brief route.
"""
import structlog
from fastapi import APIRouter, Depends, Request

from decision_os.api.dependencies import get_app_settings, get_store
from decision_os.config import Settings
from decision_os.middleware.rate_limit import scan_rate_limit
from decision_os.schemas.state import BriefResponse
from decision_os.services.brief import generate_brief
from decision_os.services.storage import KEY_JOURNAL, KEY_PROFILE, KEY_SCAN, KeyValueStore

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.post(
    "/brief",
    response_model=BriefResponse,
    summary="Generate executive brief",
    description="Summarise the latest scan and recent decisions into situation, risks, opportunities and decisions needed.",
)
@scan_rate_limit()
async def create_brief(
    request: Request,
    store: KeyValueStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
) -> BriefResponse:
    brief = await generate_brief(
        store.get(KEY_PROFILE),
        store.get_list(KEY_JOURNAL),
        store.get(KEY_SCAN),
        settings.completion_config(),
        scan_chars=settings.brief_scan_chars,
    )
    return BriefResponse(**brief.model_dump())
