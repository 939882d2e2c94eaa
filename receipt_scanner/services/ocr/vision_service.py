"""
OCR Service using Google Cloud Vision

DESIGN DECISION: We use Vision's images:annotate REST endpoint because:
1. Same Google API key as the Gemini extraction step
2. DOCUMENT_TEXT_DETECTION handles dense receipt layouts well
3. Returns the full text as a single annotation we can pass on as-is

This service handles:
1. Sending the base64 receipt photo to Vision
2. Pulling the full-text annotation out of the response

CRITICAL: OCR failures are FATAL. The heuristic fallback needs text to
work on; it cannot replace OCR. So there is no fallback here and no retry.
"""

from typing import Any, Optional

import httpx

from receipt_scanner.config import get_settings


class OCRError(Exception):
    """Base exception for OCR errors."""
    pass


class OCRServiceError(OCRError):
    """Vision returned a non-success status or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class NoTextDetectedError(OCRError):
    """Vision found no text in the image."""
    pass


def build_annotate_request(image_data: str) -> dict:
    """Vision request body asking for plain and document text detection."""
    return {
        "requests": [{
            "image": {
                "content": image_data,
            },
            "features": [
                {"type": "TEXT_DETECTION", "maxResults": 1},
                {"type": "DOCUMENT_TEXT_DETECTION", "maxResults": 1},
            ],
        }]
    }


def extract_full_text(payload: Any) -> str:
    """
    Full text of the first annotation in a Vision response.

    Raises:
        NoTextDetectedError: If the response carries no usable text
    """
    try:
        text = payload["responses"][0]["textAnnotations"][0]["description"]
    except (KeyError, IndexError, TypeError):
        raise NoTextDetectedError("No text detected in the image")

    if not isinstance(text, str) or not text.strip():
        raise NoTextDetectedError("No text detected in the image")
    return text


class VisionOCRService:
    """
    OCR service turning a receipt photo into raw text.

    IMPORTANT BOUNDARIES:
    1. This service ONLY reads text - it does NOT interpret the receipt
    2. One request per image, no retry
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        endpoint: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        settings = get_settings()
        self._api_key = api_key or settings.google.api_key
        self._endpoint = endpoint or settings.vision.endpoint
        self._client = client

    async def _post(self, body: dict) -> httpx.Response:
        params = {"key": self._api_key}
        if self._client is not None:
            return await self._client.post(self._endpoint, params=params, json=body)
        async with httpx.AsyncClient() as client:
            return await client.post(self._endpoint, params=params, json=body)

    async def extract_text(self, image_data: str) -> str:
        """
        Run OCR on a base64-encoded image.

        Args:
            image_data: Base64 image bytes (no data-URL prefix)

        Returns:
            The full OCR text

        Raises:
            OCRServiceError: If Vision fails or answers with a non-2xx status
            NoTextDetectedError: If the image contains no text
        """
        try:
            response = await self._post(build_annotate_request(image_data))
        except httpx.HTTPError as e:
            raise OCRServiceError(f"Vision API connection error: {e}") from e

        if not response.is_success:
            raise OCRServiceError(
                f"Vision API error: {response.status_code}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise OCRServiceError(f"Vision API returned invalid JSON: {e}") from e

        return extract_full_text(payload)
