"""
Shared machinery for turning a scan response into typed records.

Subclasses describe one record type; this base handles the parts every
scan parser shares: upstream-error passthrough, segmentation, id fallback,
the non-empty pattern admission rule, and absorbing failures into a
partial result.
"""
import re
from dataclasses import dataclass, field
from typing import Generic, List, Optional, Tuple, TypeVar

import structlog

from decision_os.services.amount_extractor import daily_cost_for, get_amount_extractor
from decision_os.services.field_extractor import extract_field
from decision_os.services.record_segmenter import record_number, segment_records

logger = structlog.get_logger(__name__)

R = TypeVar("R")

# Responses that are an upstream failure message rather than scan output
UPSTREAM_ERROR_PATTERN = re.compile(r"^Error", re.IGNORECASE)

TIER_PATTERN = re.compile(r"Tier\s*([123])", re.IGNORECASE)
DEFAULT_TIER = "2"


@dataclass
class ParseReport(Generic[R]):
    """Records plus the counts needed to surface parse warnings."""

    records: List[R] = field(default_factory=list)
    segments_seen: int = 0
    dropped_segments: int = 0
    upstream_error: bool = False
    error: Optional[str] = None

    @property
    def has_warnings(self) -> bool:
        return self.dropped_segments > 0 or self.error is not None

    @property
    def warnings(self) -> List[str]:
        messages = []
        if self.dropped_segments:
            messages.append(f"{self.dropped_segments} record(s) skipped: no PATTERN field")
        if self.error:
            messages.append(f"Parsing stopped early: {self.error}")
        return messages


def parse_tier(severity: str) -> str:
    """
    Read "1", "2" or "3" from a SEVERITY value, defaulting to "2".

    Only tiers 1-3 exist, so "Tier 4" or "Tier 0" also reads as "2".
    """
    match = TIER_PATTERN.search(severity or "")
    return match.group(1) if match else DEFAULT_TIER


def is_upstream_error(text: str) -> bool:
    return bool(text) and UPSTREAM_ERROR_PATTERN.match(text) is not None


class RecordParser(Generic[R]):
    """
    Base parser for numbered scan records.

    Subclasses set KEYWORD and implement _build_record.
    """

    KEYWORD: str = ""
    AMOUNT_LABEL: str = ""

    def __init__(self):
        self._amounts = get_amount_extractor()

    def text_of(self, segment: str, label: str) -> str:
        return extract_field(segment, label)

    def amounts_for(self, segment: str) -> Tuple[str, int, int]:
        """Return (raw amount field, max amount, daily cost) for a segment."""
        raw = self.text_of(segment, self.AMOUNT_LABEL)
        max_amount = self._amounts.max_amount(raw)
        return raw, max_amount, daily_cost_for(max_amount)

    def _build_record(self, segment: str, record_id: int) -> R:
        raise NotImplementedError

    def parse_report(self, text: Optional[str]) -> ParseReport[R]:
        """
        Parse a full response and report what was kept and dropped.

        Never raises; a failure mid-way returns the records built so far.
        """
        report: ParseReport[R] = ParseReport()
        if not text:
            return report

        if is_upstream_error(text):
            report.upstream_error = True
            return report

        try:
            segments = segment_records(text, self.KEYWORD)
            report.segments_seen = len(segments)

            for segment in segments:
                record_id = record_number(segment, self.KEYWORD)
                if record_id is None:
                    record_id = len(report.records) + 1

                record = self._build_record(segment, record_id)
                if not getattr(record, "pattern", ""):
                    report.dropped_segments += 1
                    continue
                report.records.append(record)

        except Exception as e:
            report.error = str(e)
            logger.error(
                "record_parse_failed",
                keyword=self.KEYWORD,
                parsed=len(report.records),
                error=str(e),
                error_type=type(e).__name__,
            )
            return report

        if report.dropped_segments:
            logger.warning(
                "record_segments_dropped",
                keyword=self.KEYWORD,
                dropped=report.dropped_segments,
                kept=len(report.records),
            )

        return report

    def parse(self, text: Optional[str]) -> List[R]:
        return self.parse_report(text).records
