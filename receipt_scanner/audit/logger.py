"""
Audit Logger

DESIGN DECISION: Every significant step of a scan is logged.
This provides:
1. Traceability (which extractor produced the receipt, and why)
2. Debugging capability when Vision or Gemini misbehave
3. Correlation IDs to trace the events of a single scan

The audit logger:
- Is async so it can sit inline in the async pipeline
- Gracefully handles failures (a logging error never breaks a scan)
- Is local-only: the pipeline is stateless and persists nothing
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from receipt_scanner.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """Route structlog output through stdlib logging at the given level."""
    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper(), logging.INFO),
    )


class AuditLogger:
    """
    Central audit logging service for the scan pipeline.
    """

    def __init__(self, logger_name: str = "receipt_scanner.audit"):
        self._logger = structlog.get_logger(logger_name)

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns False if the event could not be written.
        """
        log_dict = event.to_log_dict()

        try:
            if event.severity == AuditSeverity.ERROR:
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception:
            # Never let logging break a scan
            return False

        return True

    async def log_scan_received(
        self,
        mime_type: str,
        payload_size: int,
        correlation_id: UUID,
    ) -> None:
        """Log an inbound scan request."""
        await self.log(AuditEventBuilder.scan_received(
            mime_type=mime_type,
            payload_size=payload_size,
            correlation_id=correlation_id,
        ))

    async def log_ocr_completed(
        self,
        text_length: int,
        correlation_id: UUID,
    ) -> None:
        """Log OCR completion."""
        await self.log(AuditEventBuilder.ocr_completed(
            text_length=text_length,
            correlation_id=correlation_id,
        ))

    async def log_ocr_failed(
        self,
        error_type: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        """Log OCR failure."""
        await self.log(AuditEventBuilder.ocr_failed(
            error_type=error_type,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_structured_extraction_completed(
        self,
        store_name: str,
        confidence: float,
        correlation_id: UUID,
    ) -> None:
        """Log a successful AI extraction."""
        await self.log(AuditEventBuilder.structured_extraction_completed(
            store_name=store_name,
            confidence=confidence,
            correlation_id=correlation_id,
        ))

    async def log_structured_extraction_failed(
        self,
        error_type: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        """Log an AI extraction failure (recovered by the fallback)."""
        await self.log(AuditEventBuilder.structured_extraction_failed(
            error_type=error_type,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_fallback_used(
        self,
        reason: str,
        total: str,
        correlation_id: UUID,
    ) -> None:
        """Log that the heuristic extractor produced the receipt."""
        await self.log(AuditEventBuilder.fallback_used(
            reason=reason,
            total=total,
            correlation_id=correlation_id,
        ))

    async def log_scan_completed(
        self,
        fallback: bool,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.scan_completed(
            fallback=fallback,
            correlation_id=correlation_id,
        ))

    async def log_scan_failed(
        self,
        error_type: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.scan_failed(
            error_type=error_type,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_configuration_error(
        self,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.configuration_error(
            error_message=error_message,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a scan and pass it through every step.
    """
    return uuid4()
