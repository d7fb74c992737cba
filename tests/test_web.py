"""
Tests for the JSON web API.
"""

import pytest
from fastapi.testclient import TestClient

from web.app import create_app


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def client(service):
    return TestClient(create_app(service))


@pytest.fixture
def created(client, content_data):
    response = client.post(
        "/api/reports",
        json={"content": content_data, "actor_id": "appraiser-1"},
    )
    assert response.status_code == 201
    return response.json()


# =============================================================================
# Stateless Endpoints
# =============================================================================


class TestStatelessEndpoints:
    """Tests for health, metadata and calculators."""

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}

    def test_building_standards(self, client):
        data = client.get("/api/meta/building-standards").json()
        assert [s["code"] for s in data["building_standards"]] == ["simple_b"]
        assert len(data["depreciation_rules"]) == 3

    def test_valuation_preview(self, client, content_data):
        response = client.post("/api/valuation/preview", json={"content": content_data})
        assert response.status_code == 200
        data = response.json()
        assert data["valuation_result"]["market_value"] == 296_000_000
        assert data["valuation_result"]["liquidation_value"] == 166_080_000
        assert data["eligible_for_review"] is True
        assert client.get("/api/reports").json()["count"] == 0

    def test_preview_rejects_malformed_content(self, client, content_data):
        content_data["general_info"]["appraisal_date"] = "not-a-date"
        response = client.post("/api/valuation/preview", json={"content": content_data})
        assert response.status_code == 422

    def test_preview_ignores_non_finite_adjustment(self, client, content_data):
        content_data["comparables"][0]["adjustments"] = [{"factor": "location", "amount": "NaN"}]
        response = client.post("/api/valuation/preview", json={"content": content_data})
        assert response.status_code == 200
        assert response.json()["content"]["comparables"][0]["adjusted_price"] == 290_000_000

    def test_preview_treats_non_finite_year_built_as_absent(self, client, content_data):
        content_data["technical"]["year_built"] = "nan"
        response = client.post("/api/valuation/preview", json={"content": content_data})
        assert response.status_code == 200
        # No depreciation: 100 m2 x 2,000,000 + 80 m2 x 1,500,000
        assert response.json()["valuation_result"]["market_value"] == 320_000_000

    def test_preview_reports_blocked_gate(self, client, content_data):
        content_data["general_info"]["customer_name"] = ""
        response = client.post("/api/valuation/preview", json={"content": content_data})
        assert response.json()["eligible_for_review"] is False

    def test_comparable_analysis(self, client):
        response = client.post("/api/comparables/analysis", json={
            "comparables": [
                {"comparable_id": "A", "price": 1_000_000, "weight": 50},
                {"comparable_id": "B", "price": 2_000_000, "weight": 50},
            ],
        })
        summary = response.json()["summary"]
        assert summary["weighted_average_price"] == 1_500_000
        assert summary["total_weight"] == 100

    def test_comparable_analysis_empty(self, client):
        summary = client.post("/api/comparables/analysis", json={}).json()["summary"]
        assert summary["total_weight"] == 0
        assert summary["weighted_average_price"] is None


# =============================================================================
# Report Endpoints
# =============================================================================


class TestReportEndpoints:
    """Tests for the report lifecycle over HTTP."""

    def test_create_and_get(self, client, created):
        response = client.get(f"/api/reports/{created['report_id']}")
        assert response.status_code == 200
        assert response.json()["report_number"] == "APR-2024-0001"
        assert response.json()["status"] == "draft"

    def test_get_unknown_is_404(self, client):
        assert client.get("/api/reports/RPT-NOPE").status_code == 404

    def test_list_filters_by_status(self, client, created):
        assert client.get("/api/reports?status=draft").json()["count"] == 1
        assert client.get("/api/reports?status=approved").json()["count"] == 0
        assert client.get("/api/reports?status=bogus").status_code == 422

    def test_update(self, client, created, content_data):
        content_data["valuation_input"]["land_rate"] = 2_500_000
        response = client.put(
            f"/api/reports/{created['report_id']}", json={"content": content_data}
        )
        assert response.json()["valuation_result"]["market_value"] == 346_000_000

    def test_recalculate(self, client, created):
        response = client.post(f"/api/reports/{created['report_id']}/recalculate")
        assert response.status_code == 200
        assert response.json()["audit_trail"][-1]["action"] == "recalculated"

    def test_status_flow_and_lock(self, client, created, content_data):
        report_id = created["report_id"]
        url = f"/api/reports/{report_id}/status"

        assert client.post(url, json={"status": "for_review"}).status_code == 200
        assert client.post(url, json={"status": "approved"}).json()["status"] == "approved"

        locked = client.put(f"/api/reports/{report_id}", json={"content": content_data})
        assert locked.status_code == 409
        assert locked.json()["status"] == "approved"

    def test_invalid_transition_is_409(self, client, created):
        url = f"/api/reports/{created['report_id']}/status"
        response = client.post(url, json={"status": "approved"})
        assert response.status_code == 409
        assert response.json()["target"] == "approved"

    def test_blocked_review_lists_checks(self, client, content_data):
        content_data["general_info"]["credit_purpose"] = ""
        report = client.post("/api/reports", json={"content": content_data}).json()

        response = client.post(
            f"/api/reports/{report['report_id']}/status", json={"status": "for_review"}
        )

        assert response.status_code == 409
        blocking = response.json()["blocking_checks"]
        assert [c["check_id"] for c in blocking] == ["completeness.credit_purpose"]
        assert blocking[0]["message"]

    def test_legal_document_verification(self, client, created):
        url = (
            f"/api/reports/{created['report_id']}"
            "/legal-documents/DOC-SHM/verification"
        )
        response = client.post(url, json={
            "status": "rejected",
            "actor_id": "legal-2",
            "notes": "Nomor sertifikat tidak cocok",
        })
        assert response.status_code == 200
        checks = {c["check_id"]: c for c in response.json()["quality_checks"]}
        assert checks["legal.DOC-SHM.verification_rejected"]["status"] == "fail"

    def test_unknown_legal_document_is_404(self, client, created):
        url = f"/api/reports/{created['report_id']}/legal-documents/DOC-X/verification"
        assert client.post(url, json={"status": "verified"}).status_code == 404

    def test_delete(self, client, created):
        url = f"/api/reports/{created['report_id']}"
        assert client.delete(url).status_code == 204
        assert client.get(url).status_code == 404
