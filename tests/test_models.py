"""
Tests for Receipt Scanner models

Test strategy:
1. Unit tests for individual components (models, normalizer, extractors)
2. Integration tests for flows (with faked external services)
3. No real API calls in tests
"""

import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from pydantic import ValidationError

from receipt_scanner.models.receipt import (
    SCAN_FAILURE_DETAILS,
    ExtractionResult,
    ExtractionSource,
    ReceiptData,
    ScanErrorResponse,
    ScanRequest,
    ScanResponse,
)
from receipt_scanner.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


def make_receipt(**overrides) -> ReceiptData:
    fields = {
        "storeName": "Metro",
        "date": "2024-03-01",
        "subtotal": Decimal("10.00"),
        "taxes": Decimal("1.30"),
        "total": Decimal("11.30"),
        "items": ["Milk", "Bread"],
        "confidence": 0.9,
    }
    fields.update(overrides)
    return ReceiptData(**fields)


class TestReceiptData:
    """Tests for the ReceiptData model."""

    def test_receipt_creation_from_wire_names(self):
        """Test ReceiptData accepts camelCase wire names."""
        receipt = make_receipt()
        assert receipt.store_name == "Metro"
        assert receipt.purchase_date == date(2024, 3, 1)
        assert receipt.total == Decimal("11.30")

    def test_receipt_payload_uses_wire_format(self):
        """Test payload has camelCase keys, ISO date and numeric amounts."""
        payload = make_receipt().to_payload()
        assert payload == {
            "storeName": "Metro",
            "date": "2024-03-01",
            "subtotal": 10.0,
            "taxes": 1.3,
            "total": 11.3,
            "items": ["Milk", "Bread"],
            "confidence": 0.9,
        }

    def test_receipt_rejects_negative_amount(self):
        """Test that negative amounts are rejected."""
        with pytest.raises(ValidationError):
            make_receipt(total=Decimal("-1.00"))

    def test_receipt_confidence_bounds(self):
        """Test confidence must be between 0 and 1."""
        with pytest.raises(ValidationError):
            make_receipt(confidence=1.5)

    def test_receipt_rejects_empty_store_name(self):
        with pytest.raises(ValidationError):
            make_receipt(storeName="   ")

    def test_transaction_draft(self):
        """Test the expense draft built from a receipt."""
        draft = make_receipt().to_transaction_draft(category="food")
        assert draft.type == "expense"
        assert draft.amount == Decimal("11.30")
        assert draft.category == "food"
        assert draft.description == "Metro - Milk, Bread"
        assert draft.transaction_date == date(2024, 3, 1)
        assert draft.model_dump(mode="json", by_alias=True)["amount"] == 11.3


class TestExtractionResult:
    """Tests for the primary/fallback discriminated result."""

    def test_primary_result_is_not_fallback(self):
        result = ExtractionResult(receipt=make_receipt(), source=ExtractionSource.PRIMARY)
        assert result.fallback is False
        assert result.fallback_reason is None

    def test_fallback_result(self):
        result = ExtractionResult(
            receipt=make_receipt(confidence=0.3),
            source=ExtractionSource.FALLBACK,
            fallback_reason="MalformedStructuredOutput",
        )
        assert result.fallback is True


class TestScanEnvelopes:
    """Tests for request/response envelopes."""

    def test_scan_request_from_wire(self):
        request = ScanRequest.model_validate({"imageData": "aGVsbG8=", "mimeType": "image/png"})
        assert request.image_data == "aGVsbG8="
        assert request.mime_type == "image/png"

    def test_scan_request_default_mime_type(self):
        request = ScanRequest.model_validate({"imageData": "aGVsbG8="})
        assert request.mime_type == "image/jpeg"

    def test_scan_request_strips_data_url_prefix(self):
        request = ScanRequest.model_validate({"imageData": "data:image/jpeg;base64,aGVsbG8="})
        assert request.image_data == "aGVsbG8="

    def test_scan_request_rejects_empty_image(self):
        with pytest.raises(ValidationError):
            ScanRequest.model_validate({"imageData": "  "})

    def test_scan_request_requires_image(self):
        with pytest.raises(ValidationError):
            ScanRequest.model_validate({"mimeType": "image/jpeg"})

    def test_scan_response_omits_fallback_when_primary(self):
        response = ScanResponse(receipt_data=make_receipt(), extracted_text="METRO")
        payload = response.to_payload()
        assert set(payload) == {"receiptData", "extractedText"}
        assert payload["receiptData"]["storeName"] == "Metro"

    def test_scan_response_flags_fallback(self):
        response = ScanResponse(
            receipt_data=make_receipt(), extracted_text="METRO", fallback=True
        )
        assert response.to_payload()["fallback"] is True

    def test_scan_error_response_default_details(self):
        error = ScanErrorResponse(error="No text detected in the image")
        assert error.model_dump() == {
            "error": "No text detected in the image",
            "details": SCAN_FAILURE_DETAILS,
        }


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.SCAN_RECEIVED,
            description="Receipt scan requested",
        )
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        correlation_id = uuid4()
        event = AuditEventBuilder.fallback_used(
            reason="StructuredServiceUnavailable",
            total="45.20",
            correlation_id=correlation_id,
        )
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "fallback_extraction_used"
        assert log_dict["severity"] == "warning"
        assert log_dict["correlation_id"] == str(correlation_id)
        assert log_dict["details"] == {
            "reason": "StructuredServiceUnavailable",
            "total": "45.20",
        }

    def test_audit_event_builder_ocr_failed(self):
        event = AuditEventBuilder.ocr_failed(
            error_type="NoTextDetectedError",
            error_message="No text detected in the image",
            correlation_id=uuid4(),
        )
        assert event.event_type == AuditEventType.OCR_FAILED
        assert event.severity == AuditSeverity.ERROR
        assert event.error_message == "No text detected in the image"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
