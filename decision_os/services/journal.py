"""
Decision journal.

Entries are plain dicts so they persist as JSON unchanged. New entries go
to the front of the journal list. Tier is kept as a string ("1".."3") to
match the scan records.
"""
import re
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Sequence, Tuple

import structlog

from decision_os.config import CompletionConfig
from decision_os.exceptions import DecisionNotFoundError, LLMServiceError
from decision_os.services import llm_client
from decision_os.services.prompts import (
    DECISION_PROFILE_SYSTEM_PROMPT,
    build_decision_profile_request,
)
from decision_os.services.storage import KEY_AUDIT_LOG, KeyValueStore
from decision_os.utils.identifiers import now_iso, parse_iso_date, timestamp_id, today_utc

logger = structlog.get_logger(__name__)

STATUS_PENDING = "pending"
STATUS_RESOLVED = "resolved"
STATUS_DRAFT = "Draft"


# Fields a user may change after logging; anything else is fixed at creation
EDITABLE_FIELDS = (
    "statement",
    "tier",
    "type",
    "evidence",
    "assumptions",
    "confidence",
    "expected",
    "expected_outcome",
    "owner",
    "review_date",
    "status",
    "actual_outcome",
    "learning",
)

DECISION_LANGUAGE_PATTERNS = [
    re.compile(r"I recommend|recommend that you|my recommendation", re.IGNORECASE),
    re.compile(r"you should decide|decision is|suggest deciding", re.IGNORECASE),
    re.compile(r"approved|approving|approve", re.IGNORECASE),
    re.compile(r"rejected|rejecting|reject", re.IGNORECASE),
    re.compile(r"postponed|postponing|postpone", re.IGNORECASE),
    re.compile(r"proceeding with|go with|moving forward with", re.IGNORECASE),
    re.compile(r"tier [123]|severity", re.IGNORECASE),
    re.compile(r"FIX:|RECOMMENDATION:|DECISION:", re.IGNORECASE),
]

STATEMENT_PATTERN = re.compile(
    r"(?:recommend|suggest|decision is|approved?|rejected?)[:\s]+([^.\n]{20,200})", re.IGNORECASE
)
EVIDENCE_PATTERN = re.compile(r"(?:evidence|data shows?|based on)[:\s]+([^.\n]{20,300})", re.IGNORECASE)
ASSUMPTION_PATTERN = re.compile(r"(?:assum(?:e|ing|ption))[:\s]+([^.\n]{20,300})", re.IGNORECASE)
SENTENCE_SPLIT_PATTERN = re.compile(r"[.!?]\s+")

# Later matches override earlier ones
TIER_HINTS = [
    ("3", re.compile(r"critical|urgent|tier 3|high severity", re.IGNORECASE)),
    ("1", re.compile(r"low impact|minor|tier 1", re.IGNORECASE)),
]
TYPE_HINTS = [
    ("human", re.compile(r"people|team|hiring|cultural|leadership", re.IGNORECASE)),
    ("political", re.compile(r"political|stakeholder|board|regulatory", re.IGNORECASE)),
    ("cultural", re.compile(r"culture|values|norms|behavior", re.IGNORECASE)),
]
CONFIDENCE_HINTS = [
    ("high", re.compile(r"high confidence|very confident|certain", re.IGNORECASE)),
    ("low", re.compile(r"low confidence|uncertain|unclear", re.IGNORECASE)),
]


def tier_value(tier: Any, default: int = 1) -> int:
    try:
        return int(str(tier).strip())
    except (TypeError, ValueError):
        return default


def create_entry(
    form: Dict[str, Any],
    decided_by: str,
    today: Optional[date] = None,
    default_review_days: int = 30,
    entry_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Build a new journal entry from a submitted form.

    Args:
        form: statement, tier, type, evidence, assumptions, confidence,
            expected, review_days and optionally owner.
        decided_by: Name of the person logging the decision.
        today: Decision date; review_date is today + review_days.

    Returns:
        Entry dict with status "pending" and version 1.
    """
    today = today or today_utc()
    review_days = form.get("review_days") or default_review_days
    expected = form.get("expected", "") or ""
    entry = {
        "id": entry_id or timestamp_id("DEC"),
        "date": today.isoformat(),
        "statement": form.get("statement", ""),
        "tier": str(form.get("tier", "2")),
        "type": form.get("type", "technical"),
        "evidence": form.get("evidence", ""),
        "assumptions": form.get("assumptions", ""),
        "confidence": form.get("confidence", "moderate"),
        "expected": expected,
        "expected_outcome": form.get("expected_outcome") or expected,
        "owner": form.get("owner") or decided_by,
        "review_date": (today + timedelta(days=int(review_days))).isoformat(),
        "decided_by": decided_by,
        "status": STATUS_PENDING,
        "actual_outcome": "",
        "learning": "",
        "version": 1,
        "reviews": [],
    }
    return entry


def upgrade_decision(entry: Dict[str, Any]) -> Dict[str, Any]:
    """Fill fields missing from entries logged by older versions."""
    upgraded = dict(entry)
    if upgraded.get("tier") is None:
        upgraded["tier"] = "1"
    upgraded["owner"] = upgraded.get("owner") or ""
    upgraded["review_date"] = upgraded.get("review_date") or ""
    upgraded["expected_outcome"] = upgraded.get("expected_outcome") or upgraded.get("expected") or ""
    upgraded["status"] = upgraded.get("status") or STATUS_DRAFT
    upgraded["version"] = upgraded.get("version") or 1
    upgraded["reviews"] = upgraded.get("reviews") or []
    return upgraded


def validate_decision(entry: Dict[str, Any]) -> Tuple[bool, List[str]]:
    """
    Tier 2 and above must name an owner, a review date and an expected outcome.

    Returns:
        (valid, errors)
    """
    errors = []
    if tier_value(entry.get("tier")) >= 2:
        if not str(entry.get("owner") or "").strip():
            errors.append("Owner required for Tier 2+")
        if not str(entry.get("review_date") or "").strip():
            errors.append("Review date required for Tier 2+")
        if not str(entry.get("expected_outcome") or "").strip():
            errors.append("Expected outcome required for Tier 2+")
    return len(errors) == 0, errors


def bump_version(entry: Dict[str, Any]) -> Dict[str, Any]:
    bumped = dict(entry)
    bumped["version"] = (entry.get("version") or 1) + 1
    return bumped


def log_audit(
    store: KeyValueStore,
    actor: str,
    entity_id: str,
    action: str,
    version: int,
    timestamp: Optional[str] = None,
) -> Dict[str, Any]:
    """Append one record to the audit log and return it."""
    record = {
        "ts": timestamp or now_iso(),
        "actor": actor,
        "entity_id": entity_id,
        "action": action,
        "version": version,
    }
    store.append(KEY_AUDIT_LOG, record)
    logger.info("decision_audit_logged", entity_id=entity_id, action=action, version=version)
    return record


def find_entry(journal: Sequence[Dict[str, Any]], decision_id: str) -> Dict[str, Any]:
    for entry in journal:
        if entry.get("id") == decision_id:
            return entry
    raise DecisionNotFoundError(decision_id)


def update_entry(
    journal: Sequence[Dict[str, Any]], decision_id: str, changes: Dict[str, Any]
) -> Tuple[List[Dict[str, Any]], Dict[str, Any]]:
    """
    Apply edits to one entry and bump its version.

    Returns:
        (new journal list, updated entry). The input journal is not modified.
    """
    current = upgrade_decision(find_entry(journal, decision_id))
    edits = {key: value for key, value in changes.items() if key in EDITABLE_FIELDS and value is not None}
    if "tier" in edits:
        edits["tier"] = str(edits["tier"])
    if "expected" in edits and "expected_outcome" not in edits:
        edits["expected_outcome"] = edits["expected"]

    updated = bump_version({**current, **edits})
    new_journal = [updated if entry.get("id") == decision_id else entry for entry in journal]
    return new_journal, updated


def overdue_reviews(journal: Sequence[Dict[str, Any]], today: Optional[date] = None) -> List[Dict[str, Any]]:
    """Entries whose review date has passed and which are not resolved."""
    today = today or today_utc()
    overdue = []
    for entry in journal:
        review_date = parse_iso_date(entry.get("review_date"))
        if review_date is not None and review_date < today and entry.get("status") != STATUS_RESOLVED:
            overdue.append(entry)
    return overdue


def pending_count(journal: Sequence[Dict[str, Any]]) -> int:
    return sum(1 for entry in journal if entry.get("status") == STATUS_PENDING)


def detect_decision_in_message(content: str) -> bool:
    """True when an assistant message reads like it contains a decision."""
    if not content:
        return False
    return any(pattern.search(content) for pattern in DECISION_LANGUAGE_PATTERNS)


def _last_match(content: str, hints, default: str) -> str:
    value = default
    for candidate, pattern in hints:
        if pattern.search(content):
            value = candidate
    return value


def extract_decision_from_message(
    ai_message: str,
    user_message: Optional[str] = None,
    default_review_days: int = 30,
) -> Dict[str, Any]:
    """
    Pre-fill a journal form from an assistant message.

    Statement, evidence and assumptions come from cue phrases; tier, type
    and confidence from keyword hints. The user message only supplies a
    statement when the assistant message has none.
    """
    content = ai_message or ""

    match = STATEMENT_PATTERN.search(content)
    if match:
        statement = match.group(1).strip()
    else:
        sentences = SENTENCE_SPLIT_PATTERN.split(content)
        statement = next((s for s in sentences if 20 < len(s) < 200), "")
    if not statement and user_message:
        statement = user_message.strip()

    evidence_match = EVIDENCE_PATTERN.search(content)
    assumption_match = ASSUMPTION_PATTERN.search(content)

    return {
        "statement": statement[:200] or "Decision from conversation",
        "tier": _last_match(content, TIER_HINTS, "2"),
        "type": _last_match(content, TYPE_HINTS, "technical"),
        "evidence": evidence_match.group(1).strip()[:300] if evidence_match else "",
        "assumptions": assumption_match.group(1).strip()[:300] if assumption_match else "",
        "confidence": _last_match(content, CONFIDENCE_HINTS, "moderate"),
        "expected": "",
        "review_days": default_review_days,
    }


async def build_decision_profile(
    journal: List[Dict[str, Any]],
    profile: Optional[Dict[str, Any]],
    config: CompletionConfig,
    threshold: int = 10,
) -> Optional[Dict[str, Any]]:
    """
    Ask the LLM for a decision-pattern profile once the journal is large enough.

    Returns:
        {text, generated_at, based_on}, or None below the threshold or when
        the completion fails.
    """
    if len(journal) < threshold:
        return None

    request = build_decision_profile_request(journal, profile)
    try:
        text = await llm_client.complete(
            config,
            DECISION_PROFILE_SYSTEM_PROMPT,
            [{"role": "user", "content": request}],
        )
    except LLMServiceError as e:
        logger.error("decision_profile_failed", error=e.message, error_code=e.error_code)
        return None

    logger.info("decision_profile_built", based_on=len(journal))
    return {"text": text, "generated_at": now_iso(), "based_on": len(journal)}
