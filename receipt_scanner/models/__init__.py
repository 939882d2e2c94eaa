"""
Data Models Package

This package contains all Pydantic models used by the receipt scanner.
All data flowing through the pipeline must conform to these schemas.
"""

from receipt_scanner.models.receipt import (
    SCAN_FAILURE_DETAILS,
    ExtractionResult,
    ExtractionSource,
    ReceiptData,
    ScanErrorResponse,
    ScanRequest,
    ScanResponse,
    TransactionDraft,
)
from receipt_scanner.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Receipt models
    "SCAN_FAILURE_DETAILS",
    "ExtractionResult",
    "ExtractionSource",
    "ReceiptData",
    "ScanErrorResponse",
    "ScanRequest",
    "ScanResponse",
    "TransactionDraft",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
