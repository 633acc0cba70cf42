"""
Profile routes.
"""
import structlog
from fastapi import APIRouter, Depends, HTTPException

from decision_os.api.dependencies import get_store
from decision_os.schemas.state import ProfileRequest, ProfileResponse
from decision_os.services.storage import KEY_PROFILE, KeyValueStore
from decision_os.utils.identifiers import now_iso

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(store: KeyValueStore = Depends(get_store)) -> ProfileResponse:
    profile = store.get(KEY_PROFILE)
    if not profile:
        raise HTTPException(status_code=404, detail="No profile saved yet")
    return ProfileResponse(**profile)


@router.put("/profile", response_model=ProfileResponse)
async def save_profile(body: ProfileRequest, store: KeyValueStore = Depends(get_store)) -> ProfileResponse:
    """Create or replace the profile; created_at is kept across edits."""
    existing = store.get(KEY_PROFILE) or {}
    profile = {**body.model_dump(), "created_at": existing.get("created_at") or now_iso()}
    store.set(KEY_PROFILE, profile)
    logger.info("profile_saved", industry=profile["industry"], style=profile["style"])
    return ProfileResponse(**profile)
