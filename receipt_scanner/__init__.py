"""
Receipt Scanner - Source Package

Turns a photographed receipt into a structured, validated ReceiptData
record for a personal/family expense tracker.

DESIGN PRINCIPLES:
1. AI proposes → normalization verifies → user confirms
2. Degrade, don't fail: the heuristic fallback always answers
3. Fail loudly only when nothing can be done (no credential, no text)
4. Every step is logged with a correlation ID
"""

__version__ = "1.0.0"
__author__ = "Receipt Scanner Team"
