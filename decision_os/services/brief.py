"""
Executive brief generation.

The LLM is asked for a strict JSON document; the reply is cleaned of
markdown fences and validated with pydantic. Anything unreadable raises
BriefParseError carrying the raw reply so it can still be shown.
"""
import json
import re
from typing import Any, Dict, List, Optional, Sequence

import structlog
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator

from decision_os.config import CompletionConfig
from decision_os.exceptions import BriefParseError
from decision_os.services import llm_client
from decision_os.services.prompts import BRIEF_SYSTEM_PROMPT

logger = structlog.get_logger(__name__)

OPENING_FENCE_PATTERN = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
CLOSING_FENCE_PATTERN = re.compile(r"```\s*$")

MAX_RISKS = 3
MAX_OPPORTUNITIES = 3
MAX_DECISIONS = 2


class BriefInsight(BaseModel):
    """A risk or opportunity line in the brief."""

    text: str
    confidence: str = ""
    evidence: str = ""


class BriefDecision(BaseModel):
    text: str


class ExecutiveBrief(BaseModel):
    """One-screen summary of where the organisation stands."""

    situation: str = Field(..., description="One-line summary of what is happening")
    risks: List[BriefInsight] = Field(default_factory=list)
    opportunities: List[BriefInsight] = Field(default_factory=list)
    decisions_needed: List[BriefDecision] = Field(default_factory=list)

    @field_validator("risks")
    @classmethod
    def keep_first_risks(cls, value: List[BriefInsight]) -> List[BriefInsight]:
        return value[:MAX_RISKS]

    @field_validator("opportunities")
    @classmethod
    def keep_first_opportunities(cls, value: List[BriefInsight]) -> List[BriefInsight]:
        return value[:MAX_OPPORTUNITIES]

    @field_validator("decisions_needed")
    @classmethod
    def keep_first_two(cls, value: List[BriefDecision]) -> List[BriefDecision]:
        return value[:MAX_DECISIONS]


def strip_fences(raw: str) -> str:
    cleaned = OPENING_FENCE_PATTERN.sub("", raw.strip())
    return CLOSING_FENCE_PATTERN.sub("", cleaned).strip()


def parse_brief(raw: str) -> ExecutiveBrief:
    """
    Read an LLM reply as an ExecutiveBrief.

    Raises:
        BriefParseError: reply is empty, not JSON, or the wrong shape.
    """
    if not raw or not raw.strip():
        raise BriefParseError("empty response", raw_text=raw or "")

    cleaned = strip_fences(raw)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.warning("brief_not_json", error=str(e), chars=len(raw))
        raise BriefParseError(str(e), raw_text=raw)

    try:
        return ExecutiveBrief.model_validate(data)
    except PydanticValidationError as e:
        logger.warning("brief_invalid_shape", errors=e.error_count())
        raise BriefParseError("response did not match the brief schema", raw_text=raw)


def build_brief_message(
    profile: Optional[Dict[str, Any]],
    journal: Sequence[Dict[str, Any]],
    scan: Optional[Dict[str, Any]],
    scan_chars: int = 1200,
    journal_limit: int = 5,
) -> str:
    """Compose the user message: organisation line, recent decisions, scan excerpt."""
    lines = [
        f"[{index}] {entry.get('date') or '?'} - {entry.get('statement')} | "
        f"Tier:{entry.get('tier', '?')} | Status:{entry.get('status', '?')}"
        for index, entry in enumerate(list(journal)[:journal_limit], start=1)
    ]
    if lines:
        journal_text = f"RECENT DECISIONS (last {len(lines)}):\n" + "\n".join(lines)
    else:
        journal_text = "RECENT DECISIONS: none logged yet."

    scan_text = (scan or {}).get("text")
    if scan_text:
        scan_block = f"ENTERPRISE SCAN SUMMARY:\n{scan_text[:scan_chars]}"
    else:
        scan_block = "ENTERPRISE SCAN: no scan data available."

    org_line = ""
    if profile:
        org_line = (
            f"Organisation: {profile.get('org', '')} | Industry: {profile.get('industry', '')} | "
            f"Region: {profile.get('region') or '-'}"
        )

    return f"{org_line}\n\n{journal_text}\n\n{scan_block}\n\nGenerate the executive brief JSON."


async def generate_brief(
    profile: Optional[Dict[str, Any]],
    journal: Sequence[Dict[str, Any]],
    scan: Optional[Dict[str, Any]],
    config: CompletionConfig,
    scan_chars: int = 1200,
) -> ExecutiveBrief:
    """
    Request and parse an executive brief.

    Raises:
        LLMServiceError: the completion failed.
        BriefParseError: the reply could not be read.
    """
    message = build_brief_message(profile, journal, scan, scan_chars=scan_chars)
    raw = await llm_client.complete(config, BRIEF_SYSTEM_PROMPT, [{"role": "user", "content": message}])
    brief = parse_brief(raw)
    logger.info(
        "brief_generated",
        risks=len(brief.risks),
        opportunities=len(brief.opportunities),
        decisions=len(brief.decisions_needed),
    )
    return brief
