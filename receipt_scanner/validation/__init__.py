"""Receipt validation and normalization package."""

from receipt_scanner.validation.normalizer import (
    PLACEHOLDER_STORE_NAME,
    coerce_amount,
    coerce_confidence,
    coerce_items,
    find_missing_fields,
    normalize_receipt,
    parse_amount,
    parse_date,
    round_cents,
)

__all__ = [
    "PLACEHOLDER_STORE_NAME",
    "coerce_amount",
    "coerce_confidence",
    "coerce_items",
    "find_missing_fields",
    "normalize_receipt",
    "parse_amount",
    "parse_date",
    "round_cents",
]
