"""Tests for the FastAPI scan endpoint."""

import pytest
from fastapi.testclient import TestClient

from google.api_core import exceptions as google_exceptions

from app.main import app
from receipt_scanner.agents import ReceiptExtractionAgent
from receipt_scanner.config import get_settings
from receipt_scanner.models.receipt import SCAN_FAILURE_DETAILS
from receipt_scanner.orchestrator import ReceiptScanFlow
from receipt_scanner.services.ocr import NoTextDetectedError


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def use_flow(monkeypatch):
    """Serve scans with a flow built from fakes."""
    def install(ocr, model):
        flow = ReceiptScanFlow(
            ocr_service=ocr,
            extraction_agent=ReceiptExtractionAgent(model=model),
        )
        monkeypatch.setattr(app.state, "scan_flow_factory", lambda: flow)
        return flow

    return install


def assert_cors(response):
    assert response.headers["access-control-allow-origin"] == "*"
    assert response.headers["access-control-allow-headers"] == (
        "authorization, x-client-info, apikey, content-type"
    )


class TestPreflight:
    """Tests for CORS pre-flight."""

    def test_options(self, client):
        response = client.options("/scan-receipt")
        assert response.status_code == 200
        assert_cors(response)


class TestScanReceipt:
    """Tests for POST /scan-receipt."""

    def test_primary_success(self, client, use_flow, fake_ocr, fake_gemini, metro_json):
        use_flow(fake_ocr(text="METRO\nTOTAL 11.30"), fake_gemini(text=metro_json))

        response = client.post("/scan-receipt", json={"imageData": "aGVsbG8=", "mimeType": "image/jpeg"})

        assert response.status_code == 200
        assert_cors(response)
        body = response.json()
        assert body == {
            "receiptData": {
                "storeName": "Metro",
                "date": "2024-03-01",
                "subtotal": 10.0,
                "taxes": 1.3,
                "total": 11.3,
                "items": [],
                "confidence": 0.9,
            },
            "extractedText": "METRO\nTOTAL 11.30",
        }

    def test_fallback_success(self, client, use_flow, fake_ocr, fake_gemini):
        model = fake_gemini(error=google_exceptions.ServiceUnavailable("overloaded"))
        use_flow(fake_ocr(text="Order #48213\nTotal $45.20"), model)

        response = client.post("/scan-receipt", json={"imageData": "aGVsbG8="})

        assert response.status_code == 200
        body = response.json()
        assert body["fallback"] is True
        assert body["receiptData"]["total"] == 45.2
        assert body["receiptData"]["confidence"] == 0.3

    def test_data_url_prefix_is_stripped(self, client, use_flow, fake_ocr, fake_gemini, metro_json):
        ocr = fake_ocr(text="METRO")
        use_flow(ocr, fake_gemini(text=metro_json))

        client.post("/scan-receipt", json={"imageData": "data:image/png;base64,aGVsbG8="})

        assert ocr.calls == ["aGVsbG8="]

    def test_no_text_detected(self, client, use_flow, fake_ocr, fake_gemini):
        use_flow(
            fake_ocr(error=NoTextDetectedError("No text detected in the image")),
            fake_gemini(text="{}"),
        )

        response = client.post("/scan-receipt", json={"imageData": "aGVsbG8="})

        assert response.status_code == 500
        assert_cors(response)
        assert response.json() == {
            "error": "No text detected in the image",
            "details": SCAN_FAILURE_DETAILS,
        }

    @pytest.mark.parametrize("kwargs", [
        {"json": {"mimeType": "image/jpeg"}},
        {"json": {"imageData": ""}},
        {"json": ["aGVsbG8="]},
        {"content": b"not json", "headers": {"content-type": "application/json"}},
    ])
    def test_invalid_request(self, client, kwargs):
        response = client.post("/scan-receipt", **kwargs)

        assert response.status_code == 500
        assert_cors(response)
        assert response.json()["error"] == "Invalid scan request: imageData is required"

    def test_missing_api_key(self, client, monkeypatch):
        """The real flow factory refuses to run without a credential."""
        monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
        get_settings.cache_clear()

        response = client.post("/scan-receipt", json={"imageData": "aGVsbG8="})

        assert response.status_code == 500
        assert_cors(response)
        assert response.json()["error"] == "Google API key not configured"

    def test_unexpected_error(self, client, monkeypatch):
        def broken_factory():
            raise RuntimeError("wiring exploded")

        monkeypatch.setattr(app.state, "scan_flow_factory", broken_factory)

        response = client.post("/scan-receipt", json={"imageData": "aGVsbG8="})

        assert response.status_code == 500
        assert response.json()["error"] == "wiring exploded"


class TestHealth:
    """Tests for GET /health."""

    def test_healthy(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert_cors(response)

    def test_degraded_without_key(self, client, monkeypatch):
        monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
        get_settings.cache_clear()

        body = client.get("/health").json()
        assert body["status"] == "degraded"
        assert body["settings"]["google"] is False


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
