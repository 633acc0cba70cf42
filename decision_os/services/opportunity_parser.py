"""
Opportunity parser for Revenue Intelligence Scan output.
"""
import re
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional

from decision_os.services.record_parser import ParseReport, RecordParser
from decision_os.services.record_segmenter import OPPORTUNITY_KEYWORD

# "Quick Win (0-90 days)", "0–90 days", "0 - 90 days"
QUICK_WIN_PATTERN = re.compile(r"quick\s+win|\b0\s*[-–—]\s*90\b", re.IGNORECASE)
MEDIUM_TERM_PATTERN = re.compile(r"medium", re.IGNORECASE)


@dataclass
class Opportunity:
    """One revenue-potential record from a scan."""

    id: int
    pattern: str
    category: str = ""
    evidence: str = ""
    potential: str = ""
    timeframe: str = ""
    action: str = ""
    confidence: str = ""
    assumptions: str = ""
    max_amount: int = 0
    daily_cost: int = 0
    is_quick_win: bool = False

    @property
    def horizon(self) -> str:
        """Display bucket: "Quick Win", "Medium Term" or "Strategic"."""
        if self.is_quick_win:
            return "Quick Win"
        if MEDIUM_TERM_PATTERN.search(self.timeframe):
            return "Medium Term"
        return "Strategic"

    @property
    def timeframe_label(self) -> str:
        """Timeframe without its parenthesised range, e.g. "Quick Win"."""
        return self.timeframe.split("(")[0].strip()

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def is_quick_win(timeframe: str) -> bool:
    return bool(timeframe) and QUICK_WIN_PATTERN.search(timeframe) is not None


class OpportunityParser(RecordParser[Opportunity]):
    """Parser for OPPORTUNITY blocks."""

    KEYWORD = OPPORTUNITY_KEYWORD
    AMOUNT_LABEL = "REVENUE POTENTIAL"

    def _build_record(self, segment: str, record_id: int) -> Opportunity:
        potential, max_amount, daily_cost = self.amounts_for(segment)
        timeframe = self.text_of(segment, "TIMEFRAME")
        return Opportunity(
            id=record_id,
            category=self.text_of(segment, "CATEGORY"),
            pattern=self.text_of(segment, "PATTERN"),
            evidence=self.text_of(segment, "EVIDENCE"),
            potential=potential,
            timeframe=timeframe,
            action=self.text_of(segment, "ACTION"),
            confidence=self.text_of(segment, "CONFIDENCE"),
            assumptions=self.text_of(segment, "ASSUMPTIONS"),
            max_amount=max_amount,
            daily_cost=daily_cost,
            is_quick_win=is_quick_win(timeframe),
        )


# Singleton instance
_parser_instance: Optional[OpportunityParser] = None


def get_opportunity_parser() -> OpportunityParser:
    """Get singleton OpportunityParser instance."""
    global _parser_instance
    if _parser_instance is None:
        _parser_instance = OpportunityParser()
    return _parser_instance


def parse_opportunities(text: Optional[str]) -> List[Opportunity]:
    """Parse revenue scan text into opportunities. Never raises."""
    return get_opportunity_parser().parse(text)


def parse_opportunities_report(text: Optional[str]) -> ParseReport[Opportunity]:
    return get_opportunity_parser().parse_report(text)
