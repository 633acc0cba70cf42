"""
Unit tests for running and re-reading scans.
"""
import httpx
import pytest

from decision_os.config import CompletionConfig, Mode
from decision_os.exceptions import NoDatasetsError, UnknownScanKindError
from decision_os.services import llm_client
from decision_os.services.dataset_loader import DatasetLoader
from decision_os.services.scan_service import load_scan, outcome_from_record, run_scan
from decision_os.services.storage import KEY_DATA_SUMMARY, KEY_DATASETS_META, KEY_REVENUE_SCAN, KEY_SCAN

DEMO = CompletionConfig(mode=Mode.DEMO)
PROFILE = {"name": "Aisha", "org": "Acme", "industry": "Logistics", "style": "direct"}


@pytest.fixture
def datasets():
    return [DatasetLoader().load("ap.csv", b"vendor,amount,revenue\nA,12000,0\n")]


@pytest.mark.asyncio
class TestRunScan:

    async def test_operational_scan_is_stored_and_parsed(self, store, datasets):
        outcome = await run_scan("operational", PROFILE, datasets, DEMO, store)

        assert [f.id for f in outcome.findings] == [1, 2]
        assert outcome.opportunities == []
        assert outcome.fallback_text is None
        stored = store.get(KEY_SCAN)
        assert stored["text"] == outcome.text
        assert stored["kind"] == "operational"
        assert store.get(KEY_DATASETS_META) == [{"name": "ap.csv", "type": "csv", "row_count": 1}]
        assert "--- DATA SOURCE 1: ap.csv ---" in store.get(KEY_DATA_SUMMARY)

    async def test_revenue_scan_records_industry(self, store, datasets):
        outcome = await run_scan("revenue", PROFILE, datasets, DEMO, store)

        assert len(outcome.opportunities) == 2
        assert outcome.industry == "Logistics"
        assert store.get(KEY_REVENUE_SCAN)["industry"] == "Logistics"
        assert store.get(KEY_SCAN) is None

    async def test_llm_failure_is_stored_as_error_text(self, store, datasets):
        outcome = await run_scan("operational", PROFILE, datasets, CompletionConfig(mode=Mode.LIVE), store)

        assert outcome.error is True
        assert outcome.text.startswith("Error running scan: API key not configured")
        assert outcome.findings == []
        assert outcome.report.upstream_error is True
        assert outcome.fallback_text == outcome.text

    async def test_malformed_upstream_body_is_stored_as_error_text(self, store, datasets):
        llm_client._client_instance = llm_client.LLMClient(
            transport=httpx.MockTransport(lambda r: httpx.Response(200, text="<html>gateway</html>"))
        )
        config = CompletionConfig(mode=Mode.LIVE, api_key="test-key")

        outcome = await run_scan("operational", PROFILE, datasets, config, store)

        assert outcome.error is True
        assert outcome.findings == []
        assert store.get(KEY_SCAN)["text"].startswith("Error running scan: Malformed response body")

    async def test_no_datasets(self, store):
        with pytest.raises(NoDatasetsError):
            await run_scan("operational", PROFILE, [], DEMO, store)

    async def test_unknown_kind(self, store, datasets):
        with pytest.raises(UnknownScanKindError):
            await run_scan("hr", PROFILE, datasets, DEMO, store)


class TestLoadScan:

    def test_nothing_stored(self, store):
        outcome = load_scan("operational", store)
        assert outcome.text == ""
        assert outcome.record_count == 0
        assert outcome.fallback_text is None

    def test_reparses_stored_text(self, store, scan_text):
        store.set(KEY_SCAN, {"text": scan_text, "timestamp": "2026-01-01T00:00:00+00:00"})
        outcome = load_scan("operational", store)
        assert outcome.record_count == 3
        assert outcome.timestamp == "2026-01-01T00:00:00+00:00"

    def test_unparseable_text_falls_back(self):
        outcome = outcome_from_record("operational", {"text": "No structured output today."})
        assert outcome.record_count == 0
        assert outcome.fallback_text == "No structured output today."

    def test_warnings_exposed(self):
        outcome = outcome_from_record("revenue", {"text": "OPPORTUNITY 1\nCATEGORY: x\n"})
        assert outcome.parse_warnings == ["1 record(s) skipped: no PATTERN field"]

    def test_unknown_kind(self, store):
        with pytest.raises(UnknownScanKindError):
            load_scan("hr", store)
