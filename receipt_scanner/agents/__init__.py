"""AI Agents package."""

from receipt_scanner.agents.extraction_agent import (
    MalformedStructuredOutput,
    MissingRequiredField,
    MissingStructuredOutput,
    ReceiptExtractionAgent,
    StructuredExtractionError,
    StructuredServiceUnavailable,
    build_prompt,
    parse_structured_output,
    strip_code_fence,
)

__all__ = [
    "MalformedStructuredOutput",
    "MissingRequiredField",
    "MissingStructuredOutput",
    "ReceiptExtractionAgent",
    "StructuredExtractionError",
    "StructuredServiceUnavailable",
    "build_prompt",
    "parse_structured_output",
    "strip_code_fence",
]
