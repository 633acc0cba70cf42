"""Utilities package."""
from decision_os.utils.identifiers import (
    now_iso,
    parse_iso_date,
    timestamp_id,
    to_base36,
    today_utc,
)

__all__ = [
    "now_iso",
    "parse_iso_date",
    "timestamp_id",
    "to_base36",
    "today_utc",
]
