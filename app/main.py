"""
FastAPI Endpoint for Receipt Scanner

The expense tracker front end posts a receipt photo here and gets back a
structured receipt to pre-fill its expense form.

DESIGN PRINCIPLES:
1. One endpoint, one job: photo in, ReceiptData out
2. Only fatal problems (missing credential, unreadable image) are errors
3. A degraded (heuristic) result is still a success, flagged with fallback
4. Every response, errors and pre-flight included, carries the CORS headers
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError

from receipt_scanner.audit import AuditLogger, configure_logging, create_correlation_id
from receipt_scanner.config import ConfigurationError, get_settings, validate_all_settings
from receipt_scanner.models.receipt import ScanErrorResponse, ScanRequest
from receipt_scanner.orchestrator import create_scan_flow
from receipt_scanner.services.ocr import OCRError


CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}

configure_logging(get_settings().app.log_level)
logger = structlog.get_logger(__name__)
audit_logger = AuditLogger()

app = FastAPI(
    title="Receipt Scanner",
    description="Receipt photo → structured ReceiptData, with heuristic fallback",
    version="1.0.0",
)
# Swappable in tests
app.state.scan_flow_factory = create_scan_flow


@app.middleware("http")
async def cors_headers(request: Request, call_next):
    """Answer pre-flight requests and stamp CORS headers on every response."""
    if request.method == "OPTIONS":
        return Response(status_code=200, headers=CORS_HEADERS)

    response = await call_next(request)
    response.headers.update(CORS_HEADERS)
    return response


def _error_response(message: str) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content=ScanErrorResponse(error=message).model_dump(),
        headers=CORS_HEADERS,
    )


@app.get("/health")
async def health_check():
    """Report whether the service is configured to scan."""
    checks = validate_all_settings()
    return {
        "status": "healthy" if checks.get("google") else "degraded",
        "service": "receipt-scanner",
        "settings": checks,
    }


@app.post("/scan-receipt")
async def scan_receipt(request: Request):
    """
    Scan a receipt photo.

    Body: {"imageData": "<base64>", "mimeType": "image/jpeg"}

    200: {"receiptData": {...}, "extractedText": "...", "fallback": true?}
    500: {"error": "...", "details": "..."}
    """
    correlation_id = create_correlation_id()

    try:
        scan_request = ScanRequest.model_validate(await request.json())
    except (ValueError, ValidationError) as e:
        await audit_logger.log_scan_failed(
            error_type="invalid_request",
            error_message=str(e),
            correlation_id=correlation_id,
        )
        return _error_response("Invalid scan request: imageData is required")

    try:
        flow = request.app.state.scan_flow_factory()
        result = await flow.scan(scan_request, correlation_id)
    except ConfigurationError as e:
        await audit_logger.log_configuration_error(
            error_message=str(e),
            correlation_id=correlation_id,
        )
        return _error_response(str(e))
    except OCRError as e:
        await audit_logger.log_scan_failed(
            error_type=type(e).__name__,
            error_message=str(e),
            correlation_id=correlation_id,
        )
        return _error_response(str(e))
    except Exception as e:
        logger.exception("scan_receipt_unexpected_error", correlation_id=str(correlation_id))
        return _error_response(str(e) or type(e).__name__)

    return JSONResponse(content=result.to_payload(), headers=CORS_HEADERS)
