"""
Unit tests for record segmentation.
"""
from decision_os.services.record_segmenter import (
    FINDING_KEYWORD,
    OPPORTUNITY_KEYWORD,
    has_records,
    record_number,
    segment_records,
)


class TestSegmentRecords:
    """Tests for segment_records."""

    def test_one_segment_per_header(self):
        text = "".join(f"FINDING {n}\nPATTERN: p{n}\n" for n in range(1, 6))
        segments = segment_records(text, FINDING_KEYWORD)
        assert len(segments) == 5
        assert all(s.startswith("FINDING") for s in segments)

    def test_preamble_is_dropped(self):
        text = "Summary of the scan.\n\nFINDING 1\nPATTERN: a\n"
        segments = segment_records(text, FINDING_KEYWORD)
        assert segments == ["FINDING 1\nPATTERN: a\n"]

    def test_trailing_text_stays_with_last_record(self):
        text = "FINDING 1\nPATTERN: a\nSCAN SUMMARY: done\n"
        assert segment_records(text, FINDING_KEYWORD)[0].endswith("SCAN SUMMARY: done\n")

    def test_no_headers_returns_empty(self):
        assert segment_records("Nothing structured here.", FINDING_KEYWORD) == []

    def test_empty_text(self):
        assert segment_records("", FINDING_KEYWORD) == []

    def test_header_match_is_case_insensitive(self):
        text = "finding 1\nPATTERN: a\nFinding 2\nPATTERN: b\n"
        assert len(segment_records(text, FINDING_KEYWORD)) == 2

    def test_keyword_without_number_does_not_split(self):
        text = "FINDING 1\nPATTERN: this FINDING repeats\n"
        assert len(segment_records(text, FINDING_KEYWORD)) == 1

    def test_other_keyword_ignored(self):
        text = "OPPORTUNITY 1\nPATTERN: x\n"
        assert segment_records(text, FINDING_KEYWORD) == []
        assert len(segment_records(text, OPPORTUNITY_KEYWORD)) == 1


class TestRecordNumber:

    def test_reads_header_number(self):
        assert record_number("FINDING 12\nPATTERN: x", FINDING_KEYWORD) == 12

    def test_none_without_header(self):
        assert record_number("PATTERN: x", FINDING_KEYWORD) is None

    def test_has_records(self):
        assert has_records("intro OPPORTUNITY 3", OPPORTUNITY_KEYWORD) is True
        assert has_records("intro", OPPORTUNITY_KEYWORD) is False
