"""
Rollups over parsed scan records.

Pure functions of (records, resolved ids). Nothing is cached: every view
recomputes from its current inputs, and inputs are never mutated.
"""
from dataclasses import asdict, dataclass, field
from datetime import date
from typing import AbstractSet, Any, Dict, FrozenSet, Iterable, List, Optional, Sequence

from decision_os.services.finding_parser import Finding
from decision_os.services.opportunity_parser import Opportunity

GOOD_THRESHOLD = 0.7
WARNING_THRESHOLD = 0.3

HEALTH_GOOD = "good"
HEALTH_WARNING = "warning"
HEALTH_CRITICAL = "critical"


def active_findings(findings: Sequence[Finding], resolved_ids: AbstractSet[int]) -> List[Finding]:
    """Findings not marked resolved, in scan order."""
    return [f for f in findings if f.id not in resolved_ids]


def resolved_findings(findings: Sequence[Finding], resolved_ids: AbstractSet[int]) -> List[Finding]:
    return [f for f in findings if f.id in resolved_ids]


def total_exposure(findings: Sequence[Finding], resolved_ids: AbstractSet[int]) -> int:
    """Sum of max_amount across active findings."""
    return sum(f.max_amount for f in active_findings(findings, resolved_ids))


def priority_order(findings: Sequence[Finding], resolved_ids: AbstractSet[int]) -> List[Finding]:
    """
    Active findings, highest tier first, then highest daily cost.

    sorted() is stable, so equal keys keep their scan order.
    """
    return sorted(
        active_findings(findings, resolved_ids),
        key=lambda f: (-f.tier_rank, -f.daily_cost),
    )


def top_priorities(
    findings: Sequence[Finding], resolved_ids: AbstractSet[int], limit: int = 3
) -> List[Finding]:
    return priority_order(findings, resolved_ids)[:limit]


def has_critical_findings(findings: Sequence[Finding], resolved_ids: AbstractSet[int]) -> bool:
    """True when any active finding is tier 3."""
    return any(f.tier == "3" for f in active_findings(findings, resolved_ids))


def resolution_ratio(findings: Sequence[Finding], resolved_ids: AbstractSet[int]) -> float:
    """
    Share of findings marked resolved, 0.0 for an empty scan.

    The resolved set can hold ids from an earlier scan, so the ratio is
    capped at 1.0.
    """
    if not findings:
        return 0.0
    return min(1.0, len(resolved_ids) / len(findings))


def health_band(ratio: float) -> str:
    """Map a resolution ratio to "good", "warning" or "critical"."""
    if ratio >= GOOD_THRESHOLD:
        return HEALTH_GOOD
    if ratio >= WARNING_THRESHOLD:
        return HEALTH_WARNING
    return HEALTH_CRITICAL


def toggle_resolved(resolved_ids: Iterable[int], finding_id: int) -> FrozenSet[int]:
    """Return a new resolved set with finding_id flipped."""
    current = frozenset(resolved_ids)
    if finding_id in current:
        return current - {finding_id}
    return current | {finding_id}


def total_revenue_potential(opportunities: Sequence[Opportunity]) -> int:
    return sum(o.max_amount for o in opportunities)


def quick_win_count(opportunities: Sequence[Opportunity]) -> int:
    return sum(1 for o in opportunities if o.is_quick_win)


def rank_opportunities(opportunities: Sequence[Opportunity]) -> List[Opportunity]:
    """Largest potential first."""
    return sorted(opportunities, key=lambda o: -o.max_amount)


@dataclass
class CommandCentreSummary:
    """Headline numbers for the dashboard."""

    active_count: int
    resolved_count: int
    total_findings: int
    total_exposure: int
    resolution_ratio: float
    health_band: str
    has_critical: bool
    top_priorities: List[Finding] = field(default_factory=list)
    decisions_logged: int = 0
    pending_reviews: int = 0
    overdue_reviews: int = 0
    opportunity_count: int = 0
    revenue_potential: int = 0
    quick_wins: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def command_centre_summary(
    findings: Sequence[Finding],
    resolved_ids: AbstractSet[int],
    opportunities: Sequence[Opportunity] = (),
    journal: Sequence[Dict[str, Any]] = (),
    today: Optional[date] = None,
) -> CommandCentreSummary:
    """
    Compute every dashboard figure from current state.

    Args:
        findings: Latest operational scan records.
        resolved_ids: Ids the user marked resolved.
        opportunities: Latest revenue scan records.
        journal: Decision journal entries.
        today: Reference date for overdue reviews.

    Returns:
        CommandCentreSummary.
    """
    from decision_os.services.journal import overdue_reviews, pending_count

    active = active_findings(findings, resolved_ids)
    ratio = resolution_ratio(findings, resolved_ids)
    return CommandCentreSummary(
        active_count=len(active),
        resolved_count=len(resolved_ids),
        total_findings=len(findings),
        total_exposure=total_exposure(findings, resolved_ids),
        resolution_ratio=ratio,
        health_band=health_band(ratio),
        has_critical=has_critical_findings(findings, resolved_ids),
        top_priorities=top_priorities(findings, resolved_ids),
        decisions_logged=len(journal),
        pending_reviews=pending_count(journal),
        overdue_reviews=len(overdue_reviews(journal, today)),
        opportunity_count=len(opportunities),
        revenue_potential=total_revenue_potential(opportunities),
        quick_wins=quick_win_count(opportunities),
    )
