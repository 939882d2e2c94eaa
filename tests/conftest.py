"""
Shared fixtures for Receipt Scanner tests.

No real API calls in tests: Gemini and Vision are replaced by fakes.
"""

from types import SimpleNamespace
from typing import Optional

import pytest

from receipt_scanner.config import get_settings


def gemini_response(text: Optional[str]) -> SimpleNamespace:
    """Mimic the shape of a google.generativeai GenerateContentResponse."""
    if text is None:
        return SimpleNamespace(candidates=[])
    part = SimpleNamespace(text=text)
    return SimpleNamespace(
        candidates=[SimpleNamespace(content=SimpleNamespace(parts=[part]))]
    )


class FakeGeminiModel:
    """Stands in for genai.GenerativeModel."""

    def __init__(self, text: Optional[str] = None, error: Optional[Exception] = None, response=None):
        self._text = text
        self._error = error
        self._response = response
        self.prompts: list[str] = []

    async def generate_content_async(self, prompt: str):
        self.prompts.append(prompt)
        if self._error is not None:
            raise self._error
        if self._response is not None:
            return self._response
        return gemini_response(self._text)


class FakeOCRService:
    """Stands in for VisionOCRService."""

    def __init__(self, text: str = "", error: Optional[Exception] = None):
        self._text = text
        self._error = error
        self.calls: list[str] = []

    async def extract_text(self, image_data: str) -> str:
        self.calls.append(image_data)
        if self._error is not None:
            raise self._error
        return self._text


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Every test starts from a known configuration."""
    monkeypatch.setenv("GOOGLE_API_KEY", "test-key")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def fake_gemini():
    return FakeGeminiModel


@pytest.fixture
def fake_ocr():
    return FakeOCRService


@pytest.fixture
def grocery_receipt_text() -> str:
    return "\n".join([
        "SuperMart",
        "123 Main Street",
        "Date: 2024-01-15",
        "Bananas 2.50",
        "Milk 3.20",
        "Bread 4.10",
        "SUBTOTAL 9.80",
        "TAX 1.18",
        "TOTAL $10.98",
    ])


@pytest.fixture
def metro_json() -> str:
    return (
        '{"storeName":"Metro","date":"2024-03-01","subtotal":10,"taxes":1.3,'
        '"total":11.3,"items":[],"confidence":0.9}'
    )
