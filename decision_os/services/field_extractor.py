"""
Labeled field extraction from one record segment.

The model is asked for "LABEL: value" lines. Matching is lenient: labels are
case-insensitive, only the first occurrence counts, and the value stops at the
first newline even when the model wraps it onto more lines.
"""
import re
from functools import lru_cache
from typing import Dict, Iterable, Pattern


@lru_cache(maxsize=64)
def _label_pattern(label: str) -> Pattern[str]:
    return re.compile(re.escape(label.strip()) + r":", re.IGNORECASE)


def extract_field(segment: str, label: str) -> str:
    """
    Get the single-line value that follows "<label>:".

    Args:
        segment: Raw text of one record.
        label: Field label without the colon, e.g. "ROOT CAUSE".

    Returns:
        Trimmed value, or "" when the label is absent.
    """
    if not segment or not label or not label.strip():
        return ""

    match = _label_pattern(label).search(segment)
    if match is None:
        return ""

    rest = segment[match.end():]
    return rest.split("\n", 1)[0].strip()


def extract_fields(segment: str, labels: Iterable[str]) -> Dict[str, str]:
    """Extract several labels at once, keyed by label as given."""
    return {label: extract_field(segment, label) for label in labels}
