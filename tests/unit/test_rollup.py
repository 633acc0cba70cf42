"""
Unit tests for finding and opportunity rollups.
"""
import copy
from datetime import date

import pytest

from decision_os.services import rollup
from decision_os.services.amount_extractor import daily_cost_for
from decision_os.services.finding_parser import Finding, parse_findings
from decision_os.services.opportunity_parser import Opportunity


def make_finding(id: int, tier: str, max_amount: int) -> Finding:
    return Finding(
        id=id,
        pattern=f"Pattern {id}",
        tier=tier,
        max_amount=max_amount,
        daily_cost=daily_cost_for(max_amount),
    )


@pytest.fixture
def findings():
    return [
        make_finding(1, "3", 50000),
        make_finding(2, "3", 10000),
        make_finding(3, "1", 99999),
    ]


class TestActiveAndExposure:

    def test_active_excludes_resolved(self, findings):
        assert [f.id for f in rollup.active_findings(findings, {2})] == [1, 3]

    def test_resolved(self, findings):
        assert [f.id for f in rollup.resolved_findings(findings, {2, 3})] == [2, 3]

    def test_total_exposure(self, findings):
        assert rollup.total_exposure(findings, set()) == 159999
        assert rollup.total_exposure(findings, {1}) == 109999

    def test_unknown_amounts_add_nothing(self):
        assert rollup.total_exposure([make_finding(1, "2", 0)], set()) == 0

    def test_stale_ids_are_harmless(self, findings):
        assert rollup.total_exposure(findings, {42}) == 159999


class TestPriorityOrder:

    def test_tier_then_daily_cost(self, findings):
        assert [f.id for f in rollup.priority_order(findings, set())] == [1, 2, 3]

    def test_daily_cost_breaks_ties_within_tier(self):
        findings = [make_finding(1, "2", 3000), make_finding(2, "2", 90000)]
        assert [f.id for f in rollup.priority_order(findings, set())] == [2, 1]

    def test_equal_keys_keep_scan_order(self):
        findings = [make_finding(5, "2", 6000), make_finding(2, "2", 6000)]
        assert [f.id for f in rollup.priority_order(findings, set())] == [5, 2]

    def test_resolved_left_out(self, findings):
        assert [f.id for f in rollup.priority_order(findings, {1})] == [2, 3]

    def test_top_priorities_limit(self, findings):
        assert [f.id for f in rollup.top_priorities(findings, set(), limit=2)] == [1, 2]

    def test_parsed_scan(self, scan_text: str):
        parsed = parse_findings(scan_text)
        assert [f.id for f in rollup.priority_order(parsed, set())] == [2, 3, 1]


class TestResolution:

    def test_ratio_empty_scan(self):
        assert rollup.resolution_ratio([], {1}) == 0.0

    def test_ratio(self, findings):
        assert rollup.resolution_ratio(findings, {1}) == pytest.approx(1 / 3)

    def test_ratio_capped(self, findings):
        assert rollup.resolution_ratio(findings, {1, 2, 3, 4, 5}) == 1.0

    @pytest.mark.parametrize(
        "ratio,band",
        [(0.0, "critical"), (0.29, "critical"), (0.3, "warning"), (0.69, "warning"), (0.7, "good"), (1.0, "good")],
    )
    def test_health_band(self, ratio: float, band: str):
        assert rollup.health_band(ratio) == band

    def test_critical_only_counts_active(self, findings):
        assert rollup.has_critical_findings(findings, set()) is True
        assert rollup.has_critical_findings(findings, {1, 2}) is False

    def test_toggle_adds_then_removes(self):
        once = rollup.toggle_resolved({1}, 2)
        assert once == frozenset({1, 2})
        assert rollup.toggle_resolved(once, 2) == frozenset({1})

    def test_toggle_does_not_mutate_inputs(self, findings):
        """Toggling changes the rollups but never the findings or the old set."""
        snapshot = copy.deepcopy(findings)
        resolved = {3}
        before = rollup.total_exposure(findings, resolved)

        toggled = rollup.toggle_resolved(resolved, 1)

        assert resolved == {3}
        assert rollup.total_exposure(findings, toggled) == before - 50000
        assert [f.id for f in rollup.active_findings(findings, toggled)] == [2]
        assert findings == snapshot


class TestOpportunities:

    @pytest.fixture
    def opportunities(self):
        return [
            Opportunity(id=1, pattern="a", max_amount=120000, is_quick_win=True),
            Opportunity(id=2, pattern="b", max_amount=400000),
            Opportunity(id=3, pattern="c", max_amount=0, is_quick_win=True),
        ]

    def test_revenue_potential(self, opportunities):
        assert rollup.total_revenue_potential(opportunities) == 520000

    def test_quick_wins(self, opportunities):
        assert rollup.quick_win_count(opportunities) == 2

    def test_rank(self, opportunities):
        assert [o.id for o in rollup.rank_opportunities(opportunities)] == [2, 1, 3]


class TestCommandCentreSummary:

    def test_summary(self, findings):
        journal = [
            {"id": "DEC-1", "status": "pending", "review_date": "2026-01-01"},
            {"id": "DEC-2", "status": "pending", "review_date": "2026-12-31"},
            {"id": "DEC-3", "status": "resolved", "review_date": "2026-01-01"},
        ]
        opportunities = [Opportunity(id=1, pattern="a", max_amount=60000, is_quick_win=True)]

        summary = rollup.command_centre_summary(
            findings, {3}, opportunities=opportunities, journal=journal, today=date(2026, 6, 1)
        )

        assert summary.active_count == 2
        assert summary.resolved_count == 1
        assert summary.total_findings == 3
        assert summary.total_exposure == 60000
        assert summary.health_band == "warning"
        assert summary.has_critical is True
        assert [f.id for f in summary.top_priorities] == [1, 2]
        assert summary.decisions_logged == 3
        assert summary.pending_reviews == 2
        assert summary.overdue_reviews == 1
        assert summary.revenue_potential == 60000
        assert summary.quick_wins == 1

    def test_empty_state(self):
        summary = rollup.command_centre_summary([], frozenset())
        data = summary.to_dict()
        assert data["total_exposure"] == 0
        assert data["resolution_ratio"] == 0.0
        assert data["health_band"] == "critical"
        assert data["top_priorities"] == []
