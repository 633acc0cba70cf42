"""
Unit tests for id and date helpers.
"""
from datetime import date

import pytest

from decision_os.utils.identifiers import parse_iso_date, timestamp_id, to_base36


class TestIdentifiers:

    @pytest.mark.parametrize("value,expected", [(0, "0"), (35, "Z"), (36, "10"), (1295, "ZZ"), (46656, "1000")])
    def test_to_base36(self, value: int, expected: str):
        assert to_base36(value) == expected

    def test_negative_rejected(self):
        with pytest.raises(ValueError):
            to_base36(-1)

    def test_timestamp_id(self):
        assert timestamp_id("DEC", millis=36) == "DEC-10"
        assert timestamp_id("CP").startswith("CP-")

    @pytest.mark.parametrize(
        "value,expected",
        [("2026-02-03", date(2026, 2, 3)), ("2026-02-03T10:00:00Z", date(2026, 2, 3)), ("", None), (None, None), ("soon", None)],
    )
    def test_parse_iso_date(self, value, expected):
        assert parse_iso_date(value) == expected
