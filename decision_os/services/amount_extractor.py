"""
Amount extractor for monetary figures in LLM free text.

Pulls every comma-grouped digit run out of an IMPACT or REVENUE POTENTIAL
field and resolves a representative value:
- Ranges: "RM 180,000 - RM 320,000" resolves to the upper bound
- Small numbers (years, percentages, counts) are ignored
- No qualifying figure resolves to 0, meaning "amount unknown"
"""
import re
from dataclasses import dataclass, field
from typing import List, Optional

import structlog

logger = structlog.get_logger(__name__)

DAYS_PER_MONTH = 30


@dataclass
class ExtractedAmounts:
    """Result of scanning a text fragment for monetary figures."""

    raw_text: str
    amounts: List[int] = field(default_factory=list)

    @property
    def max_amount(self) -> int:
        return max(self.amounts) if self.amounts else 0

    @property
    def is_known(self) -> bool:
        """False when nothing qualified; callers show "See details", not zero."""
        return bool(self.amounts)


class AmountExtractor:
    """
    Extractor for currency-like figures in semi-structured text.

    Any run of digits and commas is a candidate:
    - "180,000" -> 180000
    - "RM1,200,000/yr" -> 1200000
    - "2024", "45%" and "3 times" are discarded by the minimum threshold
    """

    # Anything below this is treated as a count, year fragment or percentage
    MIN_AMOUNT = 1_000

    DIGIT_RUN_PATTERN = re.compile(r"[\d,]+")

    def extract(self, text: Optional[str]) -> ExtractedAmounts:
        """
        Find all qualifying amounts in a text fragment.

        Args:
            text: Field value to scan.

        Returns:
            ExtractedAmounts in order of appearance.
        """
        if not text:
            return ExtractedAmounts(raw_text=text or "")

        amounts = []
        for run in self.DIGIT_RUN_PATTERN.findall(text):
            digits = run.replace(",", "")
            if not digits:
                continue
            try:
                value = int(digits)
            except ValueError as e:
                # int() refuses digit strings beyond the interpreter's conversion limit
                logger.warning("Failed to parse amount", digits=len(digits), error=str(e))
                continue
            if value < self.MIN_AMOUNT:
                continue
            amounts.append(value)

        return ExtractedAmounts(raw_text=text, amounts=amounts)

    def max_amount(self, text: Optional[str]) -> int:
        """Largest qualifying amount in the text, or 0."""
        return self.extract(text).max_amount


def daily_cost_for(max_amount: int) -> int:
    """
    Spread a monthly exposure over 30 days, rounding half up.

    Args:
        max_amount: Non-negative exposure estimate.

    Returns:
        Daily cost, 0 when the amount is unknown.
    """
    if max_amount <= 0:
        return 0
    return (max_amount + DAYS_PER_MONTH // 2) // DAYS_PER_MONTH


# Singleton instance
_extractor_instance: Optional[AmountExtractor] = None


def get_amount_extractor() -> AmountExtractor:
    """Get singleton AmountExtractor instance."""
    global _extractor_instance
    if _extractor_instance is None:
        _extractor_instance = AmountExtractor()
    return _extractor_instance


def extract_amounts(text: Optional[str]) -> List[int]:
    return get_amount_extractor().extract(text).amounts


def extract_max_amount(text: Optional[str]) -> int:
    return get_amount_extractor().max_amount(text)
