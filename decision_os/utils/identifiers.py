"""
Identifier and date helpers shared by the journal and change tracker.
"""
import string
import time
from datetime import date, datetime, timezone
from typing import Optional

_BASE36_DIGITS = string.digits + string.ascii_uppercase


def to_base36(value: int) -> str:
    """Render a non-negative integer in upper-case base 36."""
    if value < 0:
        raise ValueError("value must be non-negative")
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def timestamp_id(prefix: str, millis: Optional[int] = None) -> str:
    """
    Build an id like "DEC-LZ3K9Q2A" from the current time in milliseconds.

    Two ids created in the same millisecond collide; callers create one
    entity per user action.
    """
    if millis is None:
        millis = int(time.time() * 1000)
    return f"{prefix}-{to_base36(millis)}"


def today_utc() -> date:
    return datetime.now(timezone.utc).date()


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def parse_iso_date(value: Optional[str]) -> Optional[date]:
    """Read a YYYY-MM-DD prefix, or None when the value is missing or malformed."""
    if not value:
        return None
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None
