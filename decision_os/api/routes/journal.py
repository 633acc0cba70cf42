"""
Decision journal routes.

Entries are stored newest first. Every create and edit is written to the
audit log with the entry's version.
"""
from typing import Any, Dict, List

import structlog
from fastapi import APIRouter, Depends

from decision_os.api.dependencies import get_app_settings, get_store
from decision_os.config import Settings
from decision_os.exceptions import ValidationError
from decision_os.schemas.state import (
    ExtractDecisionRequest,
    ExtractDecisionResponse,
    JournalEntryRequest,
    JournalEntryResponse,
    JournalEntryUpdate,
    JournalResponse,
)
from decision_os.services import journal as journal_service
from decision_os.services.storage import (
    KEY_DECISION_PROFILE,
    KEY_JOURNAL,
    KEY_PROFILE,
    KeyValueStore,
)

logger = structlog.get_logger(__name__)

router = APIRouter()

DEFAULT_ACTOR = "CEO"


def _actor(store: KeyValueStore) -> str:
    profile = store.get(KEY_PROFILE) or {}
    return profile.get("name") or DEFAULT_ACTOR


def _journal_response(entries: List[Dict[str, Any]], store: KeyValueStore) -> JournalResponse:
    return JournalResponse(
        entries=[JournalEntryResponse(**journal_service.upgrade_decision(e)) for e in entries],
        pending=journal_service.pending_count(entries),
        overdue=[e["id"] for e in journal_service.overdue_reviews(entries)],
        decision_profile=store.get(KEY_DECISION_PROFILE),
    )


@router.get("/journal", response_model=JournalResponse, summary="List decisions")
async def list_journal(store: KeyValueStore = Depends(get_store)) -> JournalResponse:
    return _journal_response(store.get_list(KEY_JOURNAL), store)


@router.post(
    "/journal",
    response_model=JournalEntryResponse,
    status_code=201,
    summary="Log a decision",
    description="Tier 2 and 3 decisions need an owner, a review date and an expected outcome.",
)
async def create_journal_entry(
    body: JournalEntryRequest,
    store: KeyValueStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
) -> JournalEntryResponse:
    actor = _actor(store)
    entry = journal_service.upgrade_decision(
        journal_service.create_entry(
            body.model_dump(),
            decided_by=actor,
            default_review_days=settings.default_review_days,
        )
    )
    valid, errors = journal_service.validate_decision(entry)
    if not valid:
        raise ValidationError("Decision is missing required fields", errors=errors)

    entries = [entry] + store.get_list(KEY_JOURNAL)
    store.set(KEY_JOURNAL, entries)
    journal_service.log_audit(store, actor, entry["id"], "create", entry["version"])
    logger.info("decision_logged", decision_id=entry["id"], tier=entry["tier"], total=len(entries))

    decision_profile = await journal_service.build_decision_profile(
        entries,
        store.get(KEY_PROFILE),
        settings.completion_config(),
        threshold=settings.decision_profile_threshold,
    )
    if decision_profile is not None:
        store.set(KEY_DECISION_PROFILE, decision_profile)

    return JournalEntryResponse(**entry)


@router.patch("/journal/{decision_id}", response_model=JournalEntryResponse, summary="Edit a decision")
async def update_journal_entry(
    decision_id: str,
    body: JournalEntryUpdate,
    store: KeyValueStore = Depends(get_store),
) -> JournalEntryResponse:
    entries, updated = journal_service.update_entry(
        store.get_list(KEY_JOURNAL),
        decision_id,
        body.model_dump(exclude_unset=True),
    )
    valid, errors = journal_service.validate_decision(updated)
    if not valid:
        raise ValidationError("Decision is missing required fields", errors=errors)

    store.set(KEY_JOURNAL, entries)
    journal_service.log_audit(store, _actor(store), decision_id, "update", updated["version"])
    return JournalEntryResponse(**updated)


@router.post(
    "/journal/extract",
    response_model=ExtractDecisionResponse,
    summary="Pre-fill from chat",
    description="Read an assistant reply and suggest a journal form.",
)
async def extract_decision(
    body: ExtractDecisionRequest,
    settings: Settings = Depends(get_app_settings),
) -> ExtractDecisionResponse:
    form = journal_service.extract_decision_from_message(
        body.ai_message,
        body.user_message,
        default_review_days=settings.default_review_days,
    )
    return ExtractDecisionResponse(
        detected=journal_service.detect_decision_in_message(body.ai_message),
        form=JournalEntryRequest(**form),
    )
