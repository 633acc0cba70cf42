"""
Record segmentation for numbered LLM output blocks.

Splits a full response into one raw segment per "<KEYWORD> <n>" header,
e.g. "FINDING 3" or "OPPORTUNITY 2". The split is a zero-width lookahead so
each header stays at the start of its own segment; preamble and trailing
summary text that does not start with a header is dropped.
"""
import re
from functools import lru_cache
from typing import List, Optional, Pattern, Tuple

FINDING_KEYWORD = "FINDING"
OPPORTUNITY_KEYWORD = "OPPORTUNITY"


@lru_cache(maxsize=8)
def _patterns(keyword: str) -> Tuple[Pattern[str], Pattern[str]]:
    """Build (split, header) patterns for a keyword."""
    header = re.escape(keyword) + r"\s+(\d+)"
    return (
        re.compile(r"(?=" + re.escape(keyword) + r"\s+\d+)", re.IGNORECASE),
        re.compile(header, re.IGNORECASE),
    )


def has_records(text: str, keyword: str) -> bool:
    """True when the text contains at least one header."""
    if not text:
        return False
    return _patterns(keyword)[1].search(text) is not None


def segment_records(text: str, keyword: str) -> List[str]:
    """
    Split a response into per-record segments.

    Args:
        text: Full LLM response.
        keyword: Record keyword, e.g. "FINDING".

    Returns:
        Ordered segments, each starting with its header. Empty when the
        text has no headers at all.
    """
    if not text or not has_records(text, keyword):
        return []

    split_pattern, header_pattern = _patterns(keyword)
    return [
        part
        for part in split_pattern.split(text)
        if part.strip() and header_pattern.match(part)
    ]


def record_number(segment: str, keyword: str) -> Optional[int]:
    """
    Read the number from a segment's header.

    Returns:
        Header number, or None when the segment has no readable header.
    """
    match = _patterns(keyword)[1].match(segment or "")
    if match is None:
        return None
    try:
        return int(match.group(1))
    except ValueError:
        return None
