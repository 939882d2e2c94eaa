"""Heuristic (network-free) receipt extraction."""

from receipt_scanner.extraction.fallback import (
    EXCLUDED_ITEM_TOKENS,
    FallbackReceiptExtractor,
)

__all__ = ["EXCLUDED_ITEM_TOKENS", "FallbackReceiptExtractor"]
