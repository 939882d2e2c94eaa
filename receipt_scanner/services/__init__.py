"""Services package."""

from receipt_scanner.services.ocr import (
    NoTextDetectedError,
    OCRError,
    OCRServiceError,
    VisionOCRService,
)

__all__ = [
    # OCR services
    "NoTextDetectedError",
    "OCRError",
    "OCRServiceError",
    "VisionOCRService",
]
