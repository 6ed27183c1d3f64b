"""Tests for FastAPI endpoints."""

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from app.skogsanalys.main import app
from app.skogsanalys.services.ai import AIServiceError, get_ai_service


def _upload(client: TestClient, pdf_bytes: bytes) -> str:
    response = client.post(
        "/upload",
        files={"file": ("prospekt.pdf", pdf_bytes, "application/pdf")},
    )
    assert response.status_code == 200
    return response.json()["key"]


class FailingAIService:
    """Stand-in AI service whose extraction always fails."""

    model = "gpt-test"

    async def extract_property(self, payload, model=None):
        raise AIServiceError("OpenAI unavailable")


@pytest.fixture
def failing_ai():
    app.dependency_overrides[get_ai_service] = lambda: FailingAIService()
    yield
    app.dependency_overrides.pop(get_ai_service, None)


class TestHealthEndpoints:
    """Tests for health check endpoints."""

    def test_root_endpoint(self, client: TestClient):
        """Test root endpoint returns health status."""
        response = client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["version"] == "1.0.0"

    def test_health_endpoint(self, client: TestClient):
        """Test /health endpoint returns health status."""
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestUploadEndpoint:
    """Tests for POST /upload endpoint."""

    def test_upload_pdf(self, client: TestClient, sample_pdf_bytes: bytes):
        response = client.post(
            "/upload",
            files={"file": ("prospekt.pdf", sample_pdf_bytes, "application/pdf")},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert data["key"].startswith("uploads/")
        assert data["key"].endswith(".pdf")
        assert data["size_bytes"] == len(sample_pdf_bytes)

    def test_upload_rejects_non_pdf(self, client: TestClient):
        """Test that non-PDF files are rejected."""
        response = client.post(
            "/upload",
            files={"file": ("test.txt", b"not a pdf", "text/plain")},
        )
        assert response.status_code == 400
        assert "PDF" in response.json()["detail"]

    def test_upload_rejects_empty_file(self, client: TestClient):
        """Test that empty files are rejected."""
        response = client.post(
            "/upload",
            files={"file": ("test.pdf", b"", "application/pdf")},
        )
        assert response.status_code == 400
        assert "Empty" in response.json()["detail"]

    def test_upload_rejects_invalid_pdf(self, client: TestClient, invalid_file_bytes: bytes):
        """Test that content without a PDF header is rejected."""
        response = client.post(
            "/upload",
            files={"file": ("test.pdf", invalid_file_bytes, "application/pdf")},
        )
        assert response.status_code == 422


class TestFilesEndpoint:
    """Tests for GET /files/{key}."""

    def test_get_uploaded_file(self, client: TestClient, sample_pdf_bytes: bytes):
        key = _upload(client, sample_pdf_bytes)
        response = client.get(f"/files/{key}")
        assert response.status_code == 200
        assert response.content == sample_pdf_bytes
        assert response.headers["content-type"] == "application/pdf"

    def test_missing_file(self, client: TestClient):
        response = client.get("/files/uploads/does-not-exist.pdf")
        assert response.status_code == 404


class TestProcessEndpoint:
    """Tests for POST /process with the AI service in mock mode."""

    def test_process_with_analyses(self, client: TestClient, sample_pdf_bytes: bytes):
        key = _upload(client, sample_pdf_bytes)
        response = client.post(
            "/process",
            json={"key": key, "analyses": ["summary", "key_metrics", "unknown_name"]},
        )
        assert response.status_code == 200
        data = response.json()

        assert data["ok"] is True
        assert data["key"] == key
        assert data["partial"] is False
        assert data["input_size_bytes"] == len(sample_pdf_bytes)
        assert data["slice_bytes_used"] == len(sample_pdf_bytes)
        assert data["data"]["fastighetsbeteckning"] == "MOCK SKOGEN 1:1"
        assert data["data"]["tradslag_andelar"]["löv_procent"] == 10

        analyses = data["analyses"]
        assert analyses["key_metrics"]["values"]["price_per_ha"] == 42000
        assert analyses["summary"]["ok"] is True
        assert "initial_harvest_taxed" in analyses["summary"]["sections"]
        assert analyses["summary"]["base_facts"]["usable_area_ha"] == 50
        assert analyses["unknown_name"] == {
            "ok": False,
            "error": "unknown_analyzer",
            "values": {},
            "assumptions": {},
        }

    def test_process_with_options(self, client: TestClient, sample_pdf_bytes: bytes):
        key = _upload(client, sample_pdf_bytes)
        response = client.post(
            "/process",
            json={
                "key": key,
                "analyses": ["loan_sustainability"],
                "options": {"loan_amount": "1 000 000", "interest_rate": "0,04"},
                "model": "gpt-custom",
            },
        )
        assert response.status_code == 200
        data = response.json()
        assert data["model"] == "gpt-custom"
        loan = data["analyses"]["loan_sustainability"]
        assert loan["values"]["initial_loan_sek"] == 1000000
        assert loan["assumptions"]["interest_rate"] == 0.04

    def test_process_with_client_text(self, client: TestClient, sample_pdf_bytes: bytes):
        key = _upload(client, sample_pdf_bytes)
        response = client.post(
            "/process",
            json={"key": key, "text": "Skogsmark 50 ha", "pages": [3]},
        )
        assert response.status_code == 200
        assert response.json()["analyses"] == {}

    def test_process_rendered_pages(
        self, client: TestClient, sample_pdf_bytes: bytes, monkeypatch
    ):
        monkeypatch.setattr(
            "pdf2image.convert_from_bytes",
            lambda pdf_bytes, **kwargs: [Image.new("RGB", (10, 10))],
        )
        key = _upload(client, sample_pdf_bytes)
        response = client.post(
            "/process",
            json={"key": key, "render_pages": True, "pages": [1]},
        )
        assert response.status_code == 200
        assert response.json()["partial"] is False

    def test_render_failure_is_422(
        self, client: TestClient, sample_pdf_bytes: bytes, monkeypatch
    ):
        def broken(pdf_bytes, **kwargs):
            raise RuntimeError("poppler crashed")

        monkeypatch.setattr("pdf2image.convert_from_bytes", broken)
        key = _upload(client, sample_pdf_bytes)
        response = client.post("/process", json={"key": key, "render_pages": True})
        assert response.status_code == 422
        assert response.json()["ok"] is False

    def test_unknown_key(self, client: TestClient):
        response = client.post("/process", json={"key": "uploads/missing.pdf"})
        assert response.status_code == 404

    def test_key_is_required(self, client: TestClient):
        response = client.post("/process", json={"analyses": ["summary"]})
        assert response.status_code == 422

    def test_ai_failure_is_503(self, client: TestClient, sample_pdf_bytes: bytes, failing_ai):
        key = _upload(client, sample_pdf_bytes)
        response = client.post("/process", json={"key": key})
        assert response.status_code == 503
        assert response.json() == {"ok": False, "detail": "OpenAI unavailable"}


class TestAnalysisEndpoints:
    """Tests for running analyzers on supplied base data."""

    def test_list_analyzers(self, client: TestClient):
        response = client.get("/analyzers")
        assert response.status_code == 200
        names = response.json()["analyzers"]
        assert "summary" in names
        assert "cashflow_loan" in names

    def test_analyze(self, client: TestClient, scenario_data: dict):
        response = client.post(
            "/analyze",
            json={"base_data": scenario_data, "analyses": ["cashflow_dscr", "value_indicator"]},
        )
        assert response.status_code == 200
        analyses = response.json()["analyses"]
        assert analyses["cashflow_dscr"]["values"]["annual_income_sek"] == 87500
        assert analyses["value_indicator"]["values"]["signal"] == "billig"

    def test_analyze_reports_failures_per_analyzer(self, client: TestClient):
        response = client.post(
            "/analyze",
            json={"base_data": {}, "analyses": ["initial_harvest_taxed", "risk"]},
        )
        assert response.status_code == 200
        analyses = response.json()["analyses"]
        assert analyses["initial_harvest_taxed"]["error"] == "missing_volym_total_m3sk"
        assert analyses["risk"]["ok"] is True

    def test_analyze_with_non_string_name(self, client: TestClient, scenario_data: dict):
        """Test that a non-string analyzer name fails alone instead of the request."""
        response = client.post(
            "/analyze",
            json={"base_data": scenario_data, "analyses": [42, "key_metrics"]},
        )
        assert response.status_code == 200
        analyses = response.json()["analyses"]
        assert analyses["42"]["ok"] is False
        assert analyses["42"]["error"] == "unknown_analyzer"
        assert analyses["key_metrics"]["ok"] is True

    def test_summary(self, client: TestClient, scenario_data: dict):
        response = client.post("/summary", json={"base_data": scenario_data})
        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert data["values"]["remaining_debt_sek"] == 1575000
        assert data["sections"]["interest_distribution_positive"]["ok"] is True


class TestCORS:
    """Tests for CORS configuration."""

    def test_cors_allows_localhost_3000(self, client: TestClient):
        """Test that localhost:3000 is allowed."""
        response = client.get(
            "/health",
            headers={"Origin": "http://localhost:3000"},
        )
        assert response.status_code == 200
        assert response.headers.get("access-control-allow-origin") == "http://localhost:3000"

    def test_cors_rejects_unknown_origin(self, client: TestClient):
        response = client.get("/health", headers={"Origin": "http://evil.example"})
        assert "access-control-allow-origin" not in response.headers
