"""
Findings and dashboard routes.

Resolution state is a set of finding ids kept beside the scan text, so
re-reading the scan never changes which findings are resolved.
"""
import structlog
from fastapi import APIRouter, Depends

from decision_os.api.dependencies import (
    finding_responses,
    get_store,
    load_resolved_ids,
    opportunity_response,
)
from decision_os.schemas.records import DashboardResponse, FindingsResponse, ToggleResponse
from decision_os.services import rollup
from decision_os.services.prompts import SCAN_KIND_OPERATIONAL, SCAN_KIND_REVENUE
from decision_os.services.scan_service import load_scan
from decision_os.services.storage import KEY_JOURNAL, KEY_RESOLVED_FINDINGS, KeyValueStore

logger = structlog.get_logger(__name__)

router = APIRouter()

TOP_OPPORTUNITIES = 3


@router.get(
    "/findings",
    response_model=FindingsResponse,
    summary="List findings",
    description="Active findings in priority order, followed by resolved ones.",
)
async def list_findings(store: KeyValueStore = Depends(get_store)) -> FindingsResponse:
    findings = load_scan(SCAN_KIND_OPERATIONAL, store).findings
    resolved_ids = load_resolved_ids(store)
    ratio = rollup.resolution_ratio(findings, resolved_ids)
    return FindingsResponse(
        active=finding_responses(rollup.priority_order(findings, resolved_ids), resolved_ids),
        resolved=finding_responses(rollup.resolved_findings(findings, resolved_ids), resolved_ids),
        resolved_ids=sorted(resolved_ids),
        total_exposure=rollup.total_exposure(findings, resolved_ids),
        resolution_ratio=ratio,
        health_band=rollup.health_band(ratio),
    )


@router.post(
    "/findings/{finding_id}/toggle",
    response_model=ToggleResponse,
    summary="Toggle resolved",
    description="Mark a finding resolved, or active again if it already was.",
)
async def toggle_finding(finding_id: int, store: KeyValueStore = Depends(get_store)) -> ToggleResponse:
    updated = rollup.toggle_resolved(load_resolved_ids(store), finding_id)
    store.set(KEY_RESOLVED_FINDINGS, sorted(updated))
    logger.info("finding_toggled", finding_id=finding_id, resolved=finding_id in updated)
    return ToggleResponse(
        finding_id=finding_id,
        resolved=finding_id in updated,
        resolved_ids=sorted(updated),
    )


@router.get(
    "/dashboard",
    response_model=DashboardResponse,
    summary="Command centre",
    description="Exposure, resolution health, priorities, reviews and revenue figures.",
)
async def dashboard(store: KeyValueStore = Depends(get_store)) -> DashboardResponse:
    findings = load_scan(SCAN_KIND_OPERATIONAL, store).findings
    opportunities = load_scan(SCAN_KIND_REVENUE, store).opportunities
    resolved_ids = load_resolved_ids(store)

    summary = rollup.command_centre_summary(
        findings,
        resolved_ids,
        opportunities=opportunities,
        journal=store.get_list(KEY_JOURNAL),
    )
    values = summary.to_dict()
    values["top_priorities"] = finding_responses(summary.top_priorities, resolved_ids)
    return DashboardResponse(
        **values,
        resolution_percent=int(summary.resolution_ratio * 100 + 0.5),
        top_opportunities=[
            opportunity_response(o) for o in rollup.rank_opportunities(opportunities)[:TOP_OPPORTUNITIES]
        ],
    )
