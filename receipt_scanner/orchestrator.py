"""
Main Orchestrator for Receipt Scanner

This module ties together all the components and defines the end-to-end
scan flow:

    image → OCR text → AI extraction ─┬─> normalized receipt
                                      └─(any failure)─> heuristic fallback

DESIGN DECISION: The orchestrator enforces the degradation policy:
- OCR failures and missing configuration are FATAL (raised to the caller)
- Every AI extraction failure degrades to the heuristic fallback
- The result says which path produced it, so the UI can warn the user

The flow holds no per-scan state; one instance serves concurrent scans.
"""

from typing import Optional
from uuid import UUID

from receipt_scanner.agents import ReceiptExtractionAgent
from receipt_scanner.audit import AuditLogger, create_correlation_id
from receipt_scanner.config import AppSettings, get_settings
from receipt_scanner.extraction import FallbackReceiptExtractor
from receipt_scanner.models.receipt import (
    ExtractionResult,
    ExtractionSource,
    ScanRequest,
    ScanResponse,
)
from receipt_scanner.services.ocr import OCRError, VisionOCRService


class ReceiptScanFlow:
    """
    Orchestrates the receipt scan flow.

    Flow:
    1. OCR → Vision turns the photo into text (fatal on failure)
    2. Extract → Gemini proposes a structured receipt
    3. Degrade → on any extraction failure, heuristics take over
    4. Respond → receipt + text preview + fallback flag
    """

    def __init__(
        self,
        ocr_service: VisionOCRService,
        extraction_agent: ReceiptExtractionAgent,
        fallback_extractor: Optional[FallbackReceiptExtractor] = None,
        audit_logger: Optional[AuditLogger] = None,
        app_settings: Optional[AppSettings] = None,
    ):
        self._app_settings = app_settings or get_settings().app
        self._ocr_service = ocr_service
        self._extraction_agent = extraction_agent
        self._fallback_extractor = (
            fallback_extractor
            or FallbackReceiptExtractor.from_settings(self._app_settings)
        )
        self._audit_logger = audit_logger or AuditLogger()

    async def extract_receipt(
        self,
        ocr_text: str,
        correlation_id: Optional[UUID] = None,
    ) -> ExtractionResult:
        """
        Turn OCR text into a receipt, degrading to heuristics on failure.

        Never raises: the fallback extractor always produces a receipt.
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            receipt = await self._extraction_agent.extract(ocr_text)
        except Exception as e:
            # Any failure on the AI path degrades, whatever its type
            reason = type(e).__name__
            await self._audit_logger.log_structured_extraction_failed(
                error_type=reason,
                error_message=str(e),
                correlation_id=correlation_id,
            )
        else:
            await self._audit_logger.log_structured_extraction_completed(
                store_name=receipt.store_name,
                confidence=receipt.confidence,
                correlation_id=correlation_id,
            )
            return ExtractionResult(receipt=receipt, source=ExtractionSource.PRIMARY)

        receipt = self._fallback_extractor.extract(ocr_text)
        await self._audit_logger.log_fallback_used(
            reason=reason,
            total=str(receipt.total),
            correlation_id=correlation_id,
        )
        return ExtractionResult(
            receipt=receipt,
            source=ExtractionSource.FALLBACK,
            fallback_reason=reason,
        )

    async def scan(
        self,
        request: ScanRequest,
        correlation_id: Optional[UUID] = None,
    ) -> ScanResponse:
        """
        Scan a receipt photo end to end.

        Returns:
            ScanResponse with the receipt, a preview of the OCR text and,
            when the heuristic path was used, fallback=True

        Raises:
            OCRServiceError: Vision failed
            NoTextDetectedError: The image holds no text
        """
        correlation_id = correlation_id or create_correlation_id()

        await self._audit_logger.log_scan_received(
            mime_type=request.mime_type,
            payload_size=len(request.image_data),
            correlation_id=correlation_id,
        )

        try:
            ocr_text = await self._ocr_service.extract_text(request.image_data)
        except OCRError as e:
            await self._audit_logger.log_ocr_failed(
                error_type=type(e).__name__,
                error_message=str(e),
                correlation_id=correlation_id,
            )
            raise

        await self._audit_logger.log_ocr_completed(
            text_length=len(ocr_text),
            correlation_id=correlation_id,
        )

        result = await self.extract_receipt(ocr_text, correlation_id)

        await self._audit_logger.log_scan_completed(
            fallback=result.fallback,
            correlation_id=correlation_id,
        )

        preview_chars = self._app_settings.extracted_text_preview_chars
        return ScanResponse(
            receipt_data=result.receipt,
            extracted_text=ocr_text[:preview_chars],
            fallback=True if result.fallback else None,
        )


def create_scan_flow(audit_logger: Optional[AuditLogger] = None) -> ReceiptScanFlow:
    """
    Factory function to wire the scan flow from settings.

    Raises:
        ConfigurationError: If the Google API key is not configured
    """
    settings = get_settings()
    api_key = settings.google.api_key
    app_settings = settings.app

    return ReceiptScanFlow(
        ocr_service=VisionOCRService(
            api_key=api_key,
            endpoint=settings.vision.endpoint,
        ),
        extraction_agent=ReceiptExtractionAgent(
            gemini_settings=settings.gemini,
            app_settings=app_settings,
            api_key=api_key,
        ),
        fallback_extractor=FallbackReceiptExtractor.from_settings(app_settings),
        audit_logger=audit_logger,
        app_settings=app_settings,
    )
