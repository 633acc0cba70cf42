"""
Unit tests for OpportunityParser.
"""
import pytest

from decision_os.services.opportunity_parser import (
    Opportunity,
    OpportunityParser,
    is_quick_win,
    parse_opportunities,
)


class TestOpportunityParser:
    """Tests for OpportunityParser class."""

    @pytest.fixture
    def parser(self) -> OpportunityParser:
        return OpportunityParser()

    def test_quick_win_opportunity(self, parser: OpportunityParser):
        text = (
            "OPPORTUNITY 1\nPATTERN: Unused API data\n"
            "REVENUE POTENTIAL: RM 50,000 - RM 120,000\n"
            "TIMEFRAME: Quick Win (0-90 days)\n"
        )
        opportunity = parser.parse(text)[0]
        assert opportunity.max_amount == 120000
        assert opportunity.daily_cost == 4000
        assert opportunity.is_quick_win is True
        assert opportunity.potential == "RM 50,000 - RM 120,000"

    def test_all_fields(self, parser: OpportunityParser, revenue_text: str):
        first, second = parser.parse(revenue_text)
        assert first.category == "Pricing"
        assert first.action == "Package usage reports"
        assert second.pattern == "Regional distributor demand"
        assert second.max_amount == 400000
        assert second.is_quick_win is False

    def test_error_response_is_not_parsed(self, parser: OpportunityParser):
        assert parser.parse("Error running scan: upstream unavailable") == []

    def test_empty_pattern_drops_record(self, parser: OpportunityParser):
        text = "OPPORTUNITY 1\nCATEGORY: Pricing\nOPPORTUNITY 2\nPATTERN: Kept\n"
        assert [o.id for o in parser.parse(text)] == [2]

    def test_horizon_and_label(self):
        medium = Opportunity(id=1, pattern="p", timeframe="Medium Term (3-6 months)")
        assert medium.horizon == "Medium Term"
        assert medium.timeframe_label == "Medium Term"
        assert Opportunity(id=2, pattern="p", timeframe="Strategic (6-12 months)").horizon == "Strategic"
        assert Opportunity(id=3, pattern="p", is_quick_win=True).horizon == "Quick Win"

    def test_module_function(self, revenue_text: str):
        assert len(parse_opportunities(revenue_text)) == 2


class TestQuickWin:
    """Tests for timeframe classification."""

    @pytest.mark.parametrize(
        "timeframe",
        ["Quick Win", "quick  win within a quarter", "0-90 days", "0–90 days", "0 - 90 days", "(0—90)"],
    )
    def test_quick_win_timeframes(self, timeframe: str):
        assert is_quick_win(timeframe) is True

    @pytest.mark.parametrize(
        "timeframe",
        ["", "Medium Term (3-6 months)", "Strategic (6-12 months)", "10-90 days", "0-900 days"],
    )
    def test_not_quick_win(self, timeframe: str):
        assert is_quick_win(timeframe) is False
