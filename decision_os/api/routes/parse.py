"""
Parse API routes.

Turn a raw scan reply into structured records without storing anything.
"""
import structlog
from fastapi import APIRouter

from decision_os.api.dependencies import finding_responses, opportunity_response, report_response
from decision_os.schemas.records import (
    ParsedFindingsResponse,
    ParsedOpportunitiesResponse,
    ParseTextRequest,
)
from decision_os.services.finding_parser import parse_findings_report
from decision_os.services.opportunity_parser import parse_opportunities_report

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.post(
    "/parse/findings",
    response_model=ParsedFindingsResponse,
    summary="Parse findings",
    description="Extract FINDING records from an enterprise scan reply.",
)
async def parse_findings_text(body: ParseTextRequest) -> ParsedFindingsResponse:
    report = parse_findings_report(body.text)
    logger.info("findings_parsed", count=len(report.records), dropped=report.dropped_segments)
    return ParsedFindingsResponse(
        findings=finding_responses(report.records),
        report=report_response(report, report.warnings),
    )


@router.post(
    "/parse/opportunities",
    response_model=ParsedOpportunitiesResponse,
    summary="Parse opportunities",
    description="Extract OPPORTUNITY records from a revenue scan reply.",
)
async def parse_opportunities_text(body: ParseTextRequest) -> ParsedOpportunitiesResponse:
    report = parse_opportunities_report(body.text)
    logger.info("opportunities_parsed", count=len(report.records), dropped=report.dropped_segments)
    return ParsedOpportunitiesResponse(
        opportunities=[opportunity_response(o) for o in report.records],
        report=report_response(report, report.warnings),
    )
