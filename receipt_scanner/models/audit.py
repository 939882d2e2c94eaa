"""
Audit Models for Receipt Scanner

Every step of a scan is recorded as a typed event. This provides:
1. Traceability of which extractor produced a receipt, and why
2. Debugging information when an external service misbehaves
3. A correlation ID tying all events of one scan together

DESIGN DECISION: Events are emitted to the structured log only. The
pipeline is stateless, so nothing here is persisted.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Request
    SCAN_RECEIVED = "scan_received"
    SCAN_COMPLETED = "scan_completed"
    SCAN_FAILED = "scan_failed"

    # OCR stage
    OCR_COMPLETED = "ocr_completed"
    OCR_FAILED = "ocr_failed"

    # Structured extraction
    STRUCTURED_EXTRACTION_COMPLETED = "structured_extraction_completed"
    STRUCTURED_EXTRACTION_FAILED = "structured_extraction_failed"
    FALLBACK_EXTRACTION_USED = "fallback_extraction_used"

    # System events
    CONFIGURATION_ERROR = "configuration_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every significant step of a scan creates one of these.
    """

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Correlation - all events of one scan share this
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate the events of one scan"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.scan_received(mime_type, size, correlation_id)
        event = AuditEventBuilder.fallback_used(reason, correlation_id)
    """

    @staticmethod
    def scan_received(
        mime_type: str,
        payload_size: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SCAN_RECEIVED,
            correlation_id=correlation_id,
            description="Receipt scan requested",
            details={
                "mime_type": mime_type,
                "payload_size": payload_size,
            },
        )

    @staticmethod
    def ocr_completed(
        text_length: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OCR_COMPLETED,
            correlation_id=correlation_id,
            description=f"OCR extracted {text_length} characters",
            details={
                "text_length": text_length,
            },
        )

    @staticmethod
    def ocr_failed(
        error_type: str,
        error_message: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OCR_FAILED,
            severity=AuditSeverity.ERROR,
            correlation_id=correlation_id,
            description=f"OCR failed: {error_type}",
            error_message=error_message,
            details={
                "error_type": error_type,
            },
        )

    @staticmethod
    def structured_extraction_completed(
        store_name: str,
        confidence: float,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STRUCTURED_EXTRACTION_COMPLETED,
            correlation_id=correlation_id,
            description=f"Structured extraction completed with {confidence:.0%} confidence",
            details={
                "store_name": store_name,
                "confidence": confidence,
            },
        )

    @staticmethod
    def structured_extraction_failed(
        error_type: str,
        error_message: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STRUCTURED_EXTRACTION_FAILED,
            severity=AuditSeverity.WARNING,
            correlation_id=correlation_id,
            description=f"Structured extraction failed: {error_type}",
            error_message=error_message,
            details={
                "error_type": error_type,
            },
        )

    @staticmethod
    def fallback_used(
        reason: str,
        total: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FALLBACK_EXTRACTION_USED,
            severity=AuditSeverity.WARNING,
            correlation_id=correlation_id,
            description="Heuristic fallback produced the receipt",
            details={
                "reason": reason,
                "total": total,
            },
        )

    @staticmethod
    def scan_completed(
        fallback: bool,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SCAN_COMPLETED,
            correlation_id=correlation_id,
            description="Receipt scan completed",
            details={
                "fallback": fallback,
            },
        )

    @staticmethod
    def scan_failed(
        error_type: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SCAN_FAILED,
            severity=AuditSeverity.ERROR,
            correlation_id=correlation_id,
            description=f"Receipt scan failed: {error_type}",
            error_message=error_message,
            details={
                "error_type": error_type,
            },
        )

    @staticmethod
    def configuration_error(
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CONFIGURATION_ERROR,
            severity=AuditSeverity.ERROR,
            correlation_id=correlation_id,
            description="Configuration error",
            error_message=error_message,
        )
