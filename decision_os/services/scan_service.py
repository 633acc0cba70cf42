"""
Enterprise and revenue scans.

Runs a scan prompt over uploaded datasets, stores the raw reply, and
parses it into findings or opportunities. Parsing happens on every read
of the stored reply; only the text is persisted.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import structlog

from decision_os.config import CompletionConfig
from decision_os.exceptions import LLMServiceError, NoDatasetsError, UnknownScanKindError
from decision_os.services import llm_client
from decision_os.services.dataset_loader import Dataset, dataset_meta, summarize_datasets
from decision_os.services.finding_parser import Finding, parse_findings_report
from decision_os.services.opportunity_parser import Opportunity, parse_opportunities_report
from decision_os.services.prompts import (
    SCAN_KIND_OPERATIONAL,
    SCAN_KIND_REVENUE,
    build_scan_request,
    build_scan_system_prompt,
)
from decision_os.services.record_parser import ParseReport
from decision_os.services.storage import (
    KEY_DATA_SUMMARY,
    KEY_DATASETS_META,
    KEY_REVENUE_SCAN,
    KEY_SCAN,
    KeyValueStore,
)
from decision_os.utils.identifiers import now_iso

logger = structlog.get_logger(__name__)

SCAN_KINDS = (SCAN_KIND_OPERATIONAL, SCAN_KIND_REVENUE)

SCAN_STORAGE_KEYS = {
    SCAN_KIND_OPERATIONAL: KEY_SCAN,
    SCAN_KIND_REVENUE: KEY_REVENUE_SCAN,
}


@dataclass
class ScanOutcome:
    """A stored scan reply together with the records parsed from it."""

    kind: str
    text: str = ""
    timestamp: Optional[str] = None
    error: bool = False
    industry: Optional[str] = None
    findings: List[Finding] = field(default_factory=list)
    opportunities: List[Opportunity] = field(default_factory=list)
    report: Optional[ParseReport] = None

    @property
    def record_count(self) -> int:
        return len(self.findings) + len(self.opportunities)

    @property
    def fallback_text(self) -> Optional[str]:
        """Raw reply to show when it parsed to nothing."""
        if self.text and self.record_count == 0:
            return self.text
        return None

    @property
    def parse_warnings(self) -> List[str]:
        return self.report.warnings if self.report is not None else []


def check_kind(kind: str) -> str:
    if kind not in SCAN_KINDS:
        raise UnknownScanKindError(kind)
    return kind


def outcome_from_record(kind: str, record: Optional[Dict[str, Any]]) -> ScanOutcome:
    """Parse a stored {text, timestamp, ...} record into a ScanOutcome."""
    record = record or {}
    outcome = ScanOutcome(
        kind=kind,
        text=record.get("text") or "",
        timestamp=record.get("timestamp"),
        error=bool(record.get("error")),
        industry=record.get("industry"),
    )
    if kind == SCAN_KIND_REVENUE:
        report = parse_opportunities_report(outcome.text)
        outcome.opportunities = report.records
    else:
        report = parse_findings_report(outcome.text)
        outcome.findings = report.records
    outcome.report = report
    return outcome


def load_scan(kind: str, store: KeyValueStore) -> ScanOutcome:
    """Latest stored scan of a kind, re-parsed."""
    check_kind(kind)
    return outcome_from_record(kind, store.get(SCAN_STORAGE_KEYS[kind]))


async def run_scan(
    kind: str,
    profile: Optional[Dict[str, Any]],
    datasets: Sequence[Dataset],
    config: CompletionConfig,
    store: KeyValueStore,
    scan_rows: int = 15,
    chat_rows: int = 3,
    text_chars: int = 2000,
) -> ScanOutcome:
    """
    Run a scan and replace the stored result for its kind.

    LLM failures do not raise: the stored text becomes
    "Error running scan: <message>" with error set, which the parsers
    read as no records.

    Raises:
        UnknownScanKindError: kind is not operational or revenue.
        NoDatasetsError: nothing to scan.
    """
    check_kind(kind)
    if not datasets:
        raise NoDatasetsError()

    store.set(KEY_DATASETS_META, dataset_meta(datasets))
    # Chat questions reuse a smaller sample of the same uploads
    store.set(
        KEY_DATA_SUMMARY,
        summarize_datasets(datasets, full_scan=False, chat_rows=chat_rows, text_chars=text_chars),
    )

    summary = summarize_datasets(datasets, full_scan=True, scan_rows=scan_rows, text_chars=text_chars)
    system_prompt = build_scan_system_prompt(profile, kind)
    messages = [{"role": "user", "content": build_scan_request(profile, kind, summary)}]

    logger.info("scan_started", kind=kind, datasets=len(datasets), mode=config.mode.value)
    try:
        text = await llm_client.complete(config, system_prompt, messages)
        record: Dict[str, Any] = {"text": text, "timestamp": now_iso(), "kind": kind}
    except LLMServiceError as e:
        logger.error("scan_failed", kind=kind, error=e.message, error_code=e.error_code)
        record = {
            "text": f"Error running scan: {e.message}",
            "timestamp": now_iso(),
            "kind": kind,
            "error": True,
        }

    if kind == SCAN_KIND_REVENUE:
        record["industry"] = (profile or {}).get("industry")

    store.set(SCAN_STORAGE_KEYS[kind], record)

    outcome = outcome_from_record(kind, record)
    logger.info(
        "scan_completed",
        kind=kind,
        records=outcome.record_count,
        error=outcome.error,
        warnings=len(outcome.parse_warnings),
    )
    return outcome
