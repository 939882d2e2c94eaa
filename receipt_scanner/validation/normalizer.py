"""
Receipt Validation & Normalization

Both extraction paths (AI and heuristic) hand a raw candidate to this
module before anything reaches the caller.

CHECKS:
- Required field presence on the raw AI output (storeName, date, total)
- Type coercion (numbers, dates, item lists)
- Range clamping (amounts >= 0, confidence in [0, 1])
- Rounding of every amount to cents

DESIGN DECISION: Fields are clamped INDEPENDENTLY. We do not recompute
total from subtotal + taxes; a mismatch is something for the user to see,
not something for us to silently "fix".

Normalization is idempotent: normalizing an already-normalized receipt
returns an equal receipt.
"""

import math
import re
from collections.abc import Mapping
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

from receipt_scanner.models.receipt import ReceiptData


PLACEHOLDER_STORE_NAME = "Unidentified store"
DEFAULT_CONFIDENCE = 0.7
PRIMARY_MAX_ITEMS = 10

REQUIRED_FIELDS = ("storeName", "date", "total")

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")

# Accepted when a date is not plain ISO-8601. Day-first wins over month-first.
DATE_FORMATS = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%d/%m/%Y",
    "%d-%m-%Y",
    "%m/%d/%Y",
    "%m-%d-%Y",
    "%d/%m/%y",
    "%d-%m-%y",
    "%m/%d/%y",
    "%m-%d-%y",
)

_AMOUNT_NOISE = re.compile(r"[^\d.,]")
_SEPARATORS = re.compile(r"[.,]")

# snake_case fallbacks let a ReceiptData dump (or a hand-built dict) through
_FIELD_ALIASES = {
    "storeName": ("storeName", "store_name"),
    "date": ("date", "purchase_date"),
}


def round_cents(value: Decimal) -> Decimal:
    """Round to 2 fractional digits, half-up."""
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def parse_amount(token: str) -> Optional[Decimal]:
    """
    Parse a printed amount such as "$1,234.56", "12,50 €" or "45.20".

    Currency symbols and spaces are dropped. The LAST separator is the
    decimal point when at most two digits follow it; every other separator
    is a thousands separator.

    Plain numeric strings ("45.20", "1e5") are read as-is first.

    Returns None when nothing numeric is left.
    """
    try:
        return Decimal(token.strip())
    except InvalidOperation:
        pass

    negative = token.strip().startswith("-")
    digits = _AMOUNT_NOISE.sub("", token)
    if not any(c.isdigit() for c in digits):
        return None

    last = max(digits.rfind("."), digits.rfind(","))
    if last >= 0 and len(digits) - last - 1 <= 2:
        integer, fraction = digits[:last], digits[last + 1:]
    else:
        integer, fraction = digits, ""
    integer = _SEPARATORS.sub("", integer)

    try:
        amount = Decimal(f"{integer or '0'}.{fraction or '0'}")
    except InvalidOperation:
        return None
    return -amount if negative else amount


def parse_date(value: Any) -> Optional[date]:
    """Safely convert a value to a date. Returns None if unparseable."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    # ISO date, optionally followed by a time part
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        pass

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def coerce_amount(value: Any) -> Decimal:
    """Coerce to a non-negative amount in cents; anything unusable is 0."""
    if value is None or isinstance(value, bool):
        return ZERO

    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float)):
        amount = Decimal(str(value))
    elif isinstance(value, str):
        amount = parse_amount(value)
    else:
        return ZERO

    if amount is None or not amount.is_finite() or amount <= 0:
        return ZERO
    try:
        return round_cents(amount)
    except InvalidOperation:
        # Too many digits to hold in cents
        return ZERO


def coerce_confidence(value: Any, default: float = DEFAULT_CONFIDENCE) -> float:
    """Coerce to a float in [0, 1]; absent or non-numeric means `default`."""
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(number):
        return default
    return min(max(number, 0.0), 1.0)


def coerce_items(value: Any, max_items: int) -> list[str]:
    """Coerce to a list of non-empty strings, capped at max_items."""
    if not isinstance(value, (list, tuple)):
        return []

    items = []
    for item in value:
        if item is None:
            continue
        if isinstance(item, Mapping):
            # Models sometimes answer {"name": ..., "price": ...}
            item = item.get("name") or item.get("description") or ""
        text = str(item).strip()
        if text:
            items.append(text)
    return items[:max_items]


def _field(raw: Mapping, name: str) -> Any:
    for key in _FIELD_ALIASES.get(name, (name,)):
        if key in raw:
            return raw[key]
    return None


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def find_missing_fields(raw: Mapping) -> list[str]:
    """
    Report required fields absent from a raw AI extraction.

    A field counts as missing when it is absent, null, or a blank string.
    A total of 0 is present (it is a value, just a suspicious one).
    """
    return [name for name in REQUIRED_FIELDS if _is_blank(_field(raw, name))]


def normalize_receipt(
    candidate: Any,
    max_items: int = PRIMARY_MAX_ITEMS,
    default_confidence: float = DEFAULT_CONFIDENCE,
    placeholder_store_name: str = PLACEHOLDER_STORE_NAME,
) -> ReceiptData:
    """
    Turn a candidate extraction into a valid ReceiptData.

    Args:
        candidate: Decoded AI output (camelCase mapping), a heuristic
                   candidate, or an existing ReceiptData
        max_items: Item cap for the path that produced the candidate
        default_confidence: Used when no usable confidence is present
        placeholder_store_name: Used when no store name is present

    Returns:
        A ReceiptData satisfying every field invariant
    """
    if isinstance(candidate, ReceiptData):
        candidate = candidate.model_dump(by_alias=True)
    if not isinstance(candidate, Mapping):
        candidate = {}

    store_name = _field(candidate, "storeName")
    store_name = str(store_name).strip() if not _is_blank(store_name) else ""

    return ReceiptData(
        store_name=store_name or placeholder_store_name,
        purchase_date=parse_date(_field(candidate, "date")) or date.today(),
        subtotal=coerce_amount(candidate.get("subtotal")),
        taxes=coerce_amount(candidate.get("taxes")),
        total=coerce_amount(candidate.get("total")),
        items=coerce_items(candidate.get("items"), max_items),
        confidence=coerce_confidence(candidate.get("confidence"), default_confidence),
    )
