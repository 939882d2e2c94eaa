"""
Structured Receipt Extraction Agent

DESIGN DECISION: We ask Gemini for a STRICT JSON object rather than
free text, and we trust nothing it returns until it has been through the
shared normalization step.

CRITICAL BOUNDARIES:
- CAN: Read OCR text and propose a structured receipt
- CANNOT: Return anything that skipped normalization
- CANNOT: Retry. One call, low temperature, bounded output.

Every failure is raised as a StructuredExtractionError subclass. The
orchestrator treats all of them the same way: degrade to the heuristic
fallback. None of them is ever shown to the user.
"""

import json
import re
from typing import Any, Optional

import google.generativeai as genai

from receipt_scanner.config import AppSettings, GeminiSettings, get_settings
from receipt_scanner.models.receipt import ReceiptData
from receipt_scanner.validation.normalizer import find_missing_fields, normalize_receipt


class StructuredExtractionError(Exception):
    """Base exception for AI extraction failures (always recoverable)."""
    pass


class StructuredServiceUnavailable(StructuredExtractionError):
    """The extraction service call failed (non-success status, transport error)."""
    pass


class MissingStructuredOutput(StructuredExtractionError):
    """The service answered but without any candidate content."""
    pass


class MalformedStructuredOutput(StructuredExtractionError):
    """The response text is not a JSON object."""
    pass


class MissingRequiredField(StructuredExtractionError):
    """The decoded object lacks storeName, date or total."""

    def __init__(self, fields: list[str]):
        self.fields = fields
        super().__init__(f"Missing required receipt information: {', '.join(fields)}")


# Fenced ```json block first, then any fenced block
_JSON_FENCE = re.compile(r"```json\s*(.*?)\s*```", re.DOTALL | re.IGNORECASE)
_ANY_FENCE = re.compile(r"```[\w-]*\s*(.*?)\s*```", re.DOTALL)


EXTRACTION_PROMPT = """Analyze this receipt text and extract the following information in JSON format. Be very careful with number parsing and currency detection. Support receipts from Canada, USA, and other countries:

Required JSON structure:
{{
  "storeName": "string",
  "date": "YYYY-MM-DD",
  "subtotal": number,
  "taxes": number,
  "total": number,
  "items": ["item1", "item2", ...],
  "confidence": number (0-1)
}}

Rules:
- Extract store/merchant name from the top of the receipt
- Parse date in YYYY-MM-DD format
- Identify subtotal (before taxes)
- Calculate or extract tax amount
- Find the final total amount
- List individual items purchased (up to {max_items} most relevant)
- Provide confidence score based on data quality
- Handle different currencies (CAD, USD, EUR, etc.)
- Support various receipt formats (grocery, restaurant, retail, gas station)

Respond with ONLY the JSON object.

Receipt text:
{receipt_text}"""


def build_prompt(ocr_text: str, max_items: int = 10) -> str:
    """Fill the fixed extraction prompt with the receipt text."""
    return EXTRACTION_PROMPT.format(max_items=max_items, receipt_text=ocr_text)


def strip_code_fence(text: str) -> str:
    """
    Remove a markdown code fence around the model's JSON, if any.

    Tries a ```json fence, then any ``` fence, else returns the trimmed text.
    """
    for pattern in (_JSON_FENCE, _ANY_FENCE):
        match = pattern.search(text)
        if match:
            return match.group(1).strip()
    return text.strip()


def parse_structured_output(text: str) -> dict:
    """
    Decode the model's answer into a raw receipt object.

    Raises:
        MalformedStructuredOutput: If the text is not a JSON object
    """
    json_text = strip_code_fence(text)
    try:
        data = json.loads(json_text)
    except json.JSONDecodeError as e:
        raise MalformedStructuredOutput(f"Failed to parse structured receipt data: {e}") from e

    if not isinstance(data, dict):
        raise MalformedStructuredOutput(
            f"Expected a JSON object, got {type(data).__name__}"
        )
    return data


def _response_text(response: Any) -> str:
    """Text of the first candidate's first part."""
    candidates = getattr(response, "candidates", None)
    if not candidates:
        raise MissingStructuredOutput("No structured data generated")

    content = getattr(candidates[0], "content", None)
    parts = getattr(content, "parts", None)
    if not parts:
        raise MissingStructuredOutput("Candidate has no content parts")

    text = getattr(parts[0], "text", None)
    if not text or not text.strip():
        raise MissingStructuredOutput("Candidate content is empty")
    return text


class ReceiptExtractionAgent:
    """
    AI agent turning OCR text into a structured receipt.

    RESPONSIBILITIES:
    - Build the fixed JSON-schema prompt
    - Call Gemini once with near-greedy sampling
    - Strip code fences, decode, check required fields, normalize

    The model is injectable so tests never touch the network.
    """

    def __init__(
        self,
        model: Optional[Any] = None,
        gemini_settings: Optional[GeminiSettings] = None,
        app_settings: Optional[AppSettings] = None,
        api_key: Optional[str] = None,
    ):
        settings = get_settings()
        self._settings = gemini_settings or settings.gemini
        self._app_settings = app_settings or settings.app
        self._model = model or self._configure_genai(api_key or settings.google.api_key)

    def _configure_genai(self, api_key: str):
        """Configure Google Generative AI."""
        genai.configure(api_key=api_key)
        return genai.GenerativeModel(
            model_name=self._settings.model_name,
            generation_config={
                "temperature": self._settings.temperature,
                "top_k": self._settings.top_k,
                "top_p": self._settings.top_p,
                "max_output_tokens": self._settings.max_tokens,
            }
        )

    async def extract(self, ocr_text: str) -> ReceiptData:
        """
        Extract a structured receipt from OCR text.

        Returns:
            A normalized ReceiptData (items capped for this path)

        Raises:
            StructuredServiceUnavailable: The Gemini call failed
            MissingStructuredOutput: No candidate content in the response
            MalformedStructuredOutput: Response is not a JSON object
            MissingRequiredField: storeName, date or total absent
        """
        max_items = self._app_settings.primary_max_items
        prompt = build_prompt(ocr_text, max_items=max_items)

        try:
            response = await self._model.generate_content_async(prompt)
        except Exception as e:
            raise StructuredServiceUnavailable(f"Gemini API error: {e}") from e

        data = parse_structured_output(_response_text(response))

        missing = find_missing_fields(data)
        if missing:
            raise MissingRequiredField(missing)

        return normalize_receipt(
            data,
            max_items=max_items,
            default_confidence=self._app_settings.default_confidence,
            placeholder_store_name=self._app_settings.placeholder_store_name,
        )
