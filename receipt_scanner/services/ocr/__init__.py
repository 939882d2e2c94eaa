"""OCR services package."""

from receipt_scanner.services.ocr.vision_service import (
    NoTextDetectedError,
    OCRError,
    OCRServiceError,
    VisionOCRService,
)

__all__ = [
    "NoTextDetectedError",
    "OCRError",
    "OCRServiceError",
    "VisionOCRService",
]
