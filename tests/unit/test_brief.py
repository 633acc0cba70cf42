"""
Unit tests for executive brief parsing and generation.
"""
import json

import pytest

from decision_os.config import CompletionConfig, Mode
from decision_os.exceptions import BriefParseError
from decision_os.services.brief import build_brief_message, generate_brief, parse_brief, strip_fences

BRIEF = {
    "situation": "Cash is tight.",
    "risks": [{"text": f"risk {i}", "confidence": "High", "evidence": "e"} for i in range(5)],
    "opportunities": [{"text": "opp"}],
    "decisions_needed": [{"text": "d1"}, {"text": "d2"}, {"text": "d3"}],
}


class TestParseBrief:

    def test_plain_json(self):
        brief = parse_brief(json.dumps(BRIEF))
        assert brief.situation == "Cash is tight."
        assert len(brief.risks) == 3
        assert [d.text for d in brief.decisions_needed] == ["d1", "d2"]
        assert brief.opportunities[0].confidence == ""

    def test_fenced_json(self):
        raw = "```json\n" + json.dumps(BRIEF) + "\n```"
        assert parse_brief(raw).situation == "Cash is tight."

    def test_strip_fences(self):
        assert strip_fences("```\n{}\n```  ") == "{}"
        assert strip_fences("{}") == "{}"

    @pytest.mark.parametrize("raw", ["", "   ", "not json", '{"risks": []}', "[1, 2]"])
    def test_unreadable(self, raw: str):
        with pytest.raises(BriefParseError) as exc_info:
            parse_brief(raw)
        assert exc_info.value.raw_text == raw
        assert exc_info.value.http_status == 502


class TestBriefMessage:

    def test_recent_decisions_and_scan(self):
        journal = [{"date": "2026-01-0%d" % i, "statement": f"d{i}", "tier": "2", "status": "pending"} for i in range(1, 8)]
        message = build_brief_message(
            {"org": "Acme", "industry": "Logistics", "region": ""},
            journal,
            {"text": "x" * 2000},
            scan_chars=100,
        )
        assert message.startswith("Organisation: Acme | Industry: Logistics | Region: -")
        assert "RECENT DECISIONS (last 5):" in message
        assert "[5] 2026-01-05 - d5 | Tier:2 | Status:pending" in message
        assert "d6" not in message
        assert "x" * 100 in message and "x" * 101 not in message
        assert message.endswith("Generate the executive brief JSON.")

    def test_empty_state(self):
        message = build_brief_message(None, [], None)
        assert "RECENT DECISIONS: none logged yet." in message
        assert "ENTERPRISE SCAN: no scan data available." in message


@pytest.mark.asyncio
class TestGenerateBrief:

    async def test_demo_brief(self):
        brief = await generate_brief(None, [], None, CompletionConfig(mode=Mode.DEMO))
        assert brief.situation
        assert len(brief.risks) == 3
        assert len(brief.decisions_needed) == 1
