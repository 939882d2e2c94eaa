"""
Core Data Models for Receipt Scanner

These models define the strict schemas for all data flowing through the
scan pipeline. They are designed to:
1. Enforce the ReceiptData invariants at runtime
2. Speak the camelCase wire format the expense tracker front end expects
3. Be serializable for responses and logging

DESIGN DECISION: Amounts are Decimal internally (quantized to cents) but
serialize as JSON numbers, because the caller does arithmetic on them.

DESIGN DECISION: "Used the fallback" is DATA on ExtractionResult, not an
exception. Only fatal conditions (missing credential, no text in image)
are raised.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Literal, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
)


SCAN_FAILURE_DETAILS = (
    "Receipt scanning failed. Please ensure the image is clear "
    "and contains a valid receipt."
)


class ExtractionSource(str, Enum):
    """Which extractor produced a receipt."""
    PRIMARY = "primary"    # AI structured extraction
    FALLBACK = "fallback"  # Heuristic, network-free extraction


# =============================================================================
# RECEIPT MODEL
# =============================================================================

class ReceiptData(BaseModel):
    """
    Structured receipt extracted from OCR text.

    CRITICAL: This is PROPOSED data. The user reviews it before it becomes
    a transaction. A low confidence means "double-check everything".

    Fields are validated independently: total is NOT recomputed from
    subtotal + taxes.
    """
    model_config = ConfigDict(
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    store_name: str = Field(
        ...,
        alias="storeName",
        min_length=1,
        description="Merchant name from the receipt header"
    )
    purchase_date: date = Field(
        ...,
        alias="date",
        description="Purchase date (ISO-8601 on the wire)"
    )
    subtotal: Decimal = Field(
        ...,
        ge=0,
        decimal_places=2,
        description="Amount before taxes"
    )
    taxes: Decimal = Field(
        ...,
        ge=0,
        decimal_places=2,
        description="Tax amount"
    )
    total: Decimal = Field(
        ...,
        ge=0,
        decimal_places=2,
        description="Grand total"
    )
    items: list[str] = Field(
        default_factory=list,
        description="Short item lines, in receipt order"
    )
    confidence: float = Field(
        ...,
        ge=0.0,
        le=1.0,
        description="How far the extraction should be trusted (0-1)"
    )

    @field_serializer("subtotal", "taxes", "total", when_used="json")
    def _amount_as_number(self, value: Decimal) -> float:
        return float(value)

    def to_payload(self) -> dict:
        """Wire representation (camelCase keys, ISO date, numeric amounts)."""
        return self.model_dump(by_alias=True, mode="json")

    def to_transaction_draft(self, category: Optional[str] = None) -> "TransactionDraft":
        """
        Build the expense the tracker pre-fills after a scan.

        Description follows the scanner screen: "<store> - <item, item>".
        """
        return TransactionDraft(
            amount=self.total,
            category=category,
            description=f"{self.store_name} - {', '.join(self.items)}",
            date=self.purchase_date,
        )


class TransactionDraft(BaseModel):
    """
    An expense proposed from a scanned receipt.

    Not persisted here: the tracker's own transaction form owns storage.
    """
    model_config = ConfigDict(populate_by_name=True)

    type: Literal["expense"] = "expense"
    amount: Decimal = Field(ge=0, decimal_places=2)
    category: Optional[str] = None
    description: str
    transaction_date: date = Field(..., alias="date")

    @field_serializer("amount", when_used="json")
    def _amount_as_number(self, value: Decimal) -> float:
        return float(value)


class ExtractionResult(BaseModel):
    """
    Outcome of the extraction chain for one OCR text.

    Either the primary extractor succeeded, or the heuristic fallback
    produced a degraded result. fallback_reason says why we degraded.
    """
    receipt: ReceiptData
    source: ExtractionSource
    fallback_reason: Optional[str] = None

    @property
    def fallback(self) -> bool:
        return self.source == ExtractionSource.FALLBACK


# =============================================================================
# ENDPOINT MODELS
# =============================================================================

class ScanRequest(BaseModel):
    """Inbound scan request: a base64 receipt photo."""
    model_config = ConfigDict(populate_by_name=True)

    image_data: str = Field(
        ...,
        alias="imageData",
        description="Base64-encoded image bytes"
    )
    mime_type: str = Field(
        default="image/jpeg",
        alias="mimeType",
    )

    @field_validator("image_data")
    @classmethod
    def validate_image_data(cls, v: str) -> str:
        """Strip a data-URL prefix and reject empty payloads."""
        if v.startswith("data:") and "," in v:
            v = v.split(",", 1)[1]
        v = v.strip()
        if not v:
            raise ValueError("imageData must not be empty")
        return v


class ScanResponse(BaseModel):
    """Successful scan envelope."""
    model_config = ConfigDict(populate_by_name=True)

    receipt_data: ReceiptData = Field(..., alias="receiptData")
    extracted_text: str = Field(..., alias="extractedText")
    # Only present when the heuristic path produced the receipt
    fallback: Optional[bool] = None

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


class ScanErrorResponse(BaseModel):
    """Failure envelope, returned with a server-error status."""
    error: str
    details: str = SCAN_FAILURE_DETAILS
