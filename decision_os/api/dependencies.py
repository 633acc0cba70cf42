"""
Shared FastAPI dependencies and record-to-schema conversion.
"""
from typing import AbstractSet, Iterable, List, Optional

from fastapi import Depends
from sqlalchemy.orm import Session

from decision_os.config import Settings, get_settings
from decision_os.database import get_db
from decision_os.schemas.records import FindingResponse, OpportunityResponse, ParseReportResponse
from decision_os.services.finding_parser import Finding, finding_fingerprint
from decision_os.services.opportunity_parser import Opportunity
from decision_os.services.record_parser import ParseReport
from decision_os.services.storage import KEY_RESOLVED_FINDINGS, KeyValueStore


def get_store(db: Session = Depends(get_db)) -> KeyValueStore:
    return KeyValueStore(db)


def get_app_settings() -> Settings:
    return get_settings()


def load_resolved_ids(store: KeyValueStore) -> frozenset:
    """Resolved finding ids as stored; non-integer values are ignored."""
    ids = set()
    for value in store.get_list(KEY_RESOLVED_FINDINGS):
        try:
            ids.add(int(value))
        except (TypeError, ValueError):
            continue
    return frozenset(ids)


def finding_response(finding: Finding, resolved_ids: AbstractSet[int] = frozenset()) -> FindingResponse:
    return FindingResponse(
        **finding.to_dict(),
        resolved=finding.id in resolved_ids,
        fingerprint=finding_fingerprint(finding),
    )


def finding_responses(findings: Iterable[Finding], resolved_ids: AbstractSet[int] = frozenset()) -> List[FindingResponse]:
    return [finding_response(f, resolved_ids) for f in findings]


def opportunity_response(opportunity: Opportunity) -> OpportunityResponse:
    return OpportunityResponse(
        **opportunity.to_dict(),
        timeframe_label=opportunity.timeframe_label,
        horizon=opportunity.horizon,
    )


def report_response(report: Optional[ParseReport], warnings: Optional[List[str]] = None) -> ParseReportResponse:
    if report is None:
        return ParseReportResponse()
    return ParseReportResponse(
        segments_seen=report.segments_seen,
        dropped_segments=report.dropped_segments,
        upstream_error=report.upstream_error,
        error=report.error,
        warnings=warnings or [],
    )
