"""
Finding parser for operational Enterprise Scan output.

Turns blocks of the form

    FINDING 1
    PATTERN: ...
    IMPACT: RM 180,000 - RM 320,000
    SEVERITY: Tier 1
    ...

into Finding records with tier, exposure and daily cost derived.
"""
import hashlib
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional

from decision_os.services.record_parser import ParseReport, RecordParser, parse_tier
from decision_os.services.record_segmenter import FINDING_KEYWORD


@dataclass
class Finding:
    """One operational-risk record from a scan."""

    id: int
    pattern: str
    evidence: str = ""
    recurrence: str = ""
    impact: str = ""
    root_cause: str = ""
    fix: str = ""
    tier: str = "2"
    confidence: str = ""
    assumptions: str = ""
    max_amount: int = 0
    daily_cost: int = 0

    @property
    def tier_rank(self) -> int:
        return int(self.tier)

    @property
    def exposure_known(self) -> bool:
        return self.max_amount > 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class FindingParser(RecordParser[Finding]):
    """Parser for FINDING blocks."""

    KEYWORD = FINDING_KEYWORD
    AMOUNT_LABEL = "IMPACT"

    def _build_record(self, segment: str, record_id: int) -> Finding:
        impact, max_amount, daily_cost = self.amounts_for(segment)
        return Finding(
            id=record_id,
            pattern=self.text_of(segment, "PATTERN"),
            evidence=self.text_of(segment, "EVIDENCE"),
            recurrence=self.text_of(segment, "RECURRENCE"),
            impact=impact,
            root_cause=self.text_of(segment, "ROOT CAUSE"),
            fix=self.text_of(segment, "FIX"),
            tier=parse_tier(self.text_of(segment, "SEVERITY")),
            confidence=self.text_of(segment, "CONFIDENCE"),
            assumptions=self.text_of(segment, "ASSUMPTIONS"),
            max_amount=max_amount,
            daily_cost=daily_cost,
        )


def finding_fingerprint(finding: Finding) -> str:
    """
    Content key for a finding, independent of its position in the scan.

    Positional ids can point at a different finding after a re-scan; this
    hash of the normalised pattern text does not.
    """
    normalised = " ".join(finding.pattern.lower().split())
    return hashlib.sha256(normalised.encode("utf-8")).hexdigest()[:16]


# Singleton instance
_parser_instance: Optional[FindingParser] = None


def get_finding_parser() -> FindingParser:
    """Get singleton FindingParser instance."""
    global _parser_instance
    if _parser_instance is None:
        _parser_instance = FindingParser()
    return _parser_instance


def parse_findings(text: Optional[str]) -> List[Finding]:
    """Parse scan text into findings. Never raises."""
    return get_finding_parser().parse(text)


def parse_findings_report(text: Optional[str]) -> ParseReport[Finding]:
    return get_finding_parser().parse_report(text)
