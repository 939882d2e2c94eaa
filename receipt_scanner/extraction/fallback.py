"""
Fallback Heuristic Receipt Extractor

Used when the AI extractor fails at any step. Works on the raw OCR text
alone: no network, no model.

CRITICAL: This path NEVER raises. It is the availability backstop of the
pipeline. Worst case it returns zero amounts, the placeholder store name
and today's date, at low confidence.

DESIGN DECISION: Simple line-based pattern matching rather than anything
clever, because:
1. Predictable behavior
2. Easy to debug against a real receipt
3. The user reviews the result anyway (confidence is fixed low)

KNOWN QUIRK: the first line holding anything date-shaped ends the date
scan, even when that match is not a real date. A later valid date is then
never seen and today's date is used.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

import structlog

from receipt_scanner.config import AppSettings
from receipt_scanner.extraction.patterns import AMOUNT_PATTERN, DATE_PATTERN
from receipt_scanner.models.receipt import ReceiptData
from receipt_scanner.validation.normalizer import (
    PLACEHOLDER_STORE_NAME,
    ZERO,
    normalize_receipt,
    parse_amount,
    round_cents,
)


logger = structlog.get_logger(__name__)

MAX_STORE_NAME_LENGTH = 50

# Lines 2..10 of the receipt are item candidates
ITEM_SCAN_LINES = 9
MIN_ITEM_LENGTH = 3
MAX_ITEM_LENGTH = 50

# Lines mentioning any of these are summary lines, not items (EN + FR)
EXCLUDED_ITEM_TOKENS = (
    "total",
    "subtotal",
    "sous-total",
    "tax",
    "taxe",
    "tva",
    "tps",
    "tvq",
    "date",
)

_DMY_FORMATS = ("%d/%m/%Y", "%m/%d/%Y", "%d/%m/%y", "%m/%d/%y")
_YMD_FORMATS = ("%Y/%m/%d",)


class FallbackReceiptExtractor:
    """
    Best-effort receipt extraction from raw OCR text.

    Heuristics:
    - Store name: first line
    - Date: first date-shaped match
    - Total: largest plausible amount printed on the receipt
    - Subtotal / taxes: split of the total at an approximate tax rate
    - Items: short non-summary lines right after the header
    """

    def __init__(
        self,
        tax_rate: float = 0.12,
        confidence: float = 0.3,
        max_items: int = 5,
        max_amount: float = 10000.0,
        placeholder_store_name: str = PLACEHOLDER_STORE_NAME,
        excluded_tokens: tuple[str, ...] = EXCLUDED_ITEM_TOKENS,
    ):
        self._subtotal_ratio = Decimal("1") - Decimal(str(tax_rate))
        self._confidence = confidence
        self._max_items = max_items
        self._max_amount = Decimal(str(max_amount))
        self._placeholder_store_name = placeholder_store_name
        self._excluded_tokens = tuple(token.lower() for token in excluded_tokens)

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "FallbackReceiptExtractor":
        return cls(
            tax_rate=settings.fallback_tax_rate,
            confidence=settings.fallback_confidence,
            max_items=settings.fallback_max_items,
            max_amount=settings.max_fallback_amount,
            placeholder_store_name=settings.placeholder_store_name,
        )

    def extract(self, ocr_text: Optional[str]) -> ReceiptData:
        """
        Extract a receipt from OCR text. Never raises.
        """
        try:
            return self._extract(ocr_text or "")
        except Exception as e:
            logger.warning(
                "fallback_extraction_anomaly",
                error=str(e),
                error_type=type(e).__name__,
            )
            return self._empty_receipt()

    def _extract(self, ocr_text: str) -> ReceiptData:
        lines = [line.strip() for line in ocr_text.splitlines() if line.strip()]

        total = self._find_total(lines)
        subtotal = round_cents(total * self._subtotal_ratio) if total > 0 else ZERO

        candidate = {
            "storeName": lines[0][:MAX_STORE_NAME_LENGTH] if lines else None,
            "date": self._find_date(lines),
            "subtotal": subtotal,
            "taxes": total - subtotal,
            "total": total,
            "items": self._find_items(lines),
            "confidence": self._confidence,
        }
        return self._normalize(candidate)

    def _find_date(self, lines: list[str]) -> Optional[date]:
        """First date-shaped match; its line ends the scan either way."""
        for line in lines:
            match = DATE_PATTERN.search(line)
            if match:
                return _parse_date_match(match)
        return None

    def _find_total(self, lines: list[str]) -> Decimal:
        """Largest amount in (0, max_amount), or 0."""
        amounts = []
        for line in lines:
            # Date-shaped substrings are blanked first, so a year never becomes the total
            line = DATE_PATTERN.sub(" ", line)
            for match in AMOUNT_PATTERN.finditer(line):
                amount = parse_amount(match.group())
                if amount is not None and amount.is_finite() and 0 < amount < self._max_amount:
                    amounts.append(amount)
        return round_cents(max(amounts)) if amounts else ZERO

    def _find_items(self, lines: list[str]) -> list[str]:
        items = []
        for line in lines[1:1 + ITEM_SCAN_LINES]:
            if not MIN_ITEM_LENGTH < len(line) < MAX_ITEM_LENGTH:
                continue
            lowered = line.lower()
            if any(token in lowered for token in self._excluded_tokens):
                continue
            items.append(line)
            if len(items) >= self._max_items:
                break
        return items

    def _normalize(self, candidate: dict) -> ReceiptData:
        return normalize_receipt(
            candidate,
            max_items=self._max_items,
            default_confidence=self._confidence,
            placeholder_store_name=self._placeholder_store_name,
        )

    def _empty_receipt(self) -> ReceiptData:
        return self._normalize({"confidence": self._confidence})


def _parse_date_match(match) -> Optional[date]:
    formats = _YMD_FORMATS if match.group("ymd") else _DMY_FORMATS
    token = match.group().replace("-", "/")
    for fmt in formats:
        try:
            return datetime.strptime(token, fmt).date()
        except ValueError:
            continue
    return None
