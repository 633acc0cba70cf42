"""
Integration tests for scans, parsing, findings and the dashboard.
"""
from fastapi.testclient import TestClient

CSV = b"vendor,amount,days_outstanding\nAcme,12000,45\nBeta,8000,12\n"


def upload(client: TestClient, kind: str = "operational"):
    return client.post(
        f"/api/v1/scans/{kind}",
        files=[("files", ("ap.csv", CSV, "text/csv")), ("files", ("notes.txt", b"Board notes", "text/plain"))],
    )


class TestParseEndpoints:

    def test_parse_findings(self, client: TestClient, scan_text: str):
        response = client.post("/api/v1/parse/findings", json={"text": scan_text})

        assert response.status_code == 200
        data = response.json()
        assert [f["id"] for f in data["findings"]] == [1, 2, 3]
        first = data["findings"][0]
        assert first["max_amount"] == 320000
        assert first["daily_cost"] == 10667
        assert first["tier"] == "1"
        assert first["resolved"] is False
        assert data["report"]["segments_seen"] == 3

    def test_parse_error_text(self, client: TestClient):
        response = client.post("/api/v1/parse/findings", json={"text": "Error: request timed out"})

        data = response.json()
        assert data["findings"] == []
        assert data["report"]["upstream_error"] is True

    def test_parse_opportunities(self, client: TestClient, revenue_text: str):
        response = client.post("/api/v1/parse/opportunities", json={"text": revenue_text})

        data = response.json()
        first = data["opportunities"][0]
        assert first["max_amount"] == 120000
        assert first["is_quick_win"] is True
        assert first["horizon"] == "Quick Win"
        assert first["timeframe_label"] == "Quick Win"

    def test_parse_reports_dropped_records(self, client: TestClient):
        text = "FINDING 1\nPATTERN: a\nFINDING 2\nIMPACT: RM 5,000\n"
        data = client.post("/api/v1/parse/findings", json={"text": text}).json()
        assert len(data["findings"]) == 1
        assert data["report"]["dropped_segments"] == 1
        assert data["report"]["warnings"] == ["1 record(s) skipped: no PATTERN field"]


class TestScanEndpoints:

    def test_operational_scan(self, client: TestClient):
        response = upload(client)

        assert response.status_code == 200
        data = response.json()
        assert data["kind"] == "operational"
        assert [f["id"] for f in data["findings"]] == [1, 2]
        assert data["fallback_text"] is None

        stored = client.get("/api/v1/scans/operational").json()
        assert stored["text"] == data["text"]
        assert len(stored["findings"]) == 2

    def test_revenue_scan(self, client: TestClient):
        client.put(
            "/api/v1/profile",
            json={"name": "Aisha", "org": "Acme", "industry": "Logistics"},
        )
        data = upload(client, "revenue").json()
        assert len(data["opportunities"]) == 2
        assert data["industry"] == "Logistics"

    def test_scan_without_files(self, client: TestClient):
        response = client.post("/api/v1/scans/operational")

        assert response.status_code == 400
        assert response.json()["error_code"] == "DAO-100"

    def test_unknown_kind(self, client: TestClient):
        response = client.get("/api/v1/scans/hr")

        assert response.status_code == 404
        assert response.json()["error_code"] == "DAO-101"

    def test_corrupt_workbook(self, client: TestClient):
        response = client.post(
            "/api/v1/scans/operational",
            files=[("files", ("book.xlsx", b"not a workbook", "application/octet-stream"))],
        )
        assert response.status_code == 422
        assert response.json()["error_code"] == "DAO-102"

    def test_empty_state(self, client: TestClient):
        data = client.get("/api/v1/scans/revenue").json()
        assert data["text"] == ""
        assert data["opportunities"] == []


class TestFindingsAndDashboard:

    def test_toggle_updates_rollups(self, client: TestClient):
        upload(client)

        before = client.get("/api/v1/findings").json()
        assert before["total_exposure"] == 410000
        assert before["health_band"] == "critical"

        toggled = client.post("/api/v1/findings/1/toggle").json()
        assert toggled == {"finding_id": 1, "resolved": True, "resolved_ids": [1]}

        after = client.get("/api/v1/findings").json()
        assert [f["id"] for f in after["active"]] == [2]
        assert [f["id"] for f in after["resolved"]] == [1]
        assert after["total_exposure"] == 90000
        assert after["resolution_ratio"] == 0.5
        assert after["health_band"] == "warning"

        again = client.post("/api/v1/findings/1/toggle").json()
        assert again["resolved"] is False
        assert again["resolved_ids"] == []

    def test_resolution_survives_rescan(self, client: TestClient):
        upload(client)
        client.post("/api/v1/findings/2/toggle")
        upload(client)

        data = client.get("/api/v1/findings").json()
        assert data["resolved_ids"] == [2]
        assert data["resolved"][0]["resolved"] is True

    def test_dashboard(self, client: TestClient):
        upload(client)
        upload(client, "revenue")
        client.post("/api/v1/findings/2/toggle")

        response = client.get("/api/v1/dashboard")

        assert response.status_code == 200
        data = response.json()
        assert data["active_count"] == 1
        assert data["resolved_count"] == 1
        assert data["total_exposure"] == 320000
        assert data["resolution_percent"] == 50
        assert [f["id"] for f in data["top_priorities"]] == [1]
        assert data["has_critical"] is False
        assert data["opportunity_count"] == 2
        assert data["revenue_potential"] == 520000
        assert data["quick_wins"] == 1
        assert [o["id"] for o in data["top_opportunities"]] == [2, 1]

    def test_dashboard_empty(self, client: TestClient):
        data = client.get("/api/v1/dashboard").json()
        assert data["total_findings"] == 0
        assert data["resolution_percent"] == 0
        assert data["health_band"] == "critical"
