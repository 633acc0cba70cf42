"""
Scan API routes.

Upload datasets and run an operational or revenue scan over them.
"""
from typing import List, Optional

import structlog
from fastapi import APIRouter, Depends, File, Request, UploadFile

from decision_os.api.dependencies import (
    finding_responses,
    get_app_settings,
    get_store,
    load_resolved_ids,
    opportunity_response,
    report_response,
)
from decision_os.config import Settings
from decision_os.exceptions import NoDatasetsError
from decision_os.middleware.rate_limit import scan_rate_limit
from decision_os.schemas.records import ScanResponse
from decision_os.services.dataset_loader import load_dataset
from decision_os.services.scan_service import ScanOutcome, check_kind, load_scan, run_scan
from decision_os.services.storage import KEY_PROFILE, KeyValueStore

logger = structlog.get_logger(__name__)

router = APIRouter()


def scan_response(outcome: ScanOutcome, store: KeyValueStore) -> ScanResponse:
    return ScanResponse(
        kind=outcome.kind,
        text=outcome.text,
        timestamp=outcome.timestamp,
        error=outcome.error,
        industry=outcome.industry,
        findings=finding_responses(outcome.findings, load_resolved_ids(store)),
        opportunities=[opportunity_response(o) for o in outcome.opportunities],
        report=report_response(outcome.report, outcome.parse_warnings),
        fallback_text=outcome.fallback_text,
    )


@router.post(
    "/scans/{kind}",
    response_model=ScanResponse,
    summary="Run a scan",
    description="Run an operational or revenue scan over uploaded CSV, Excel or text files.",
)
@scan_rate_limit()
async def create_scan(
    request: Request,
    kind: str,
    files: Optional[List[UploadFile]] = File(None),
    store: KeyValueStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
) -> ScanResponse:
    check_kind(kind)
    if not files:
        raise NoDatasetsError()

    datasets = []
    for upload in files:
        data = await upload.read()
        datasets.append(load_dataset(upload.filename or "upload.txt", data))
    logger.info("scan_datasets_loaded", kind=kind, files=[d.name for d in datasets])

    outcome = await run_scan(
        kind,
        store.get(KEY_PROFILE),
        datasets,
        settings.completion_config(),
        store,
        scan_rows=settings.scan_sample_rows,
        chat_rows=settings.chat_sample_rows,
        text_chars=settings.text_preview_chars,
    )
    return scan_response(outcome, store)


@router.get(
    "/scans/{kind}",
    response_model=ScanResponse,
    summary="Get latest scan",
    description="Return the stored scan of a kind, parsed into records.",
)
async def get_scan(kind: str, store: KeyValueStore = Depends(get_store)) -> ScanResponse:
    return scan_response(load_scan(kind, store), store)
