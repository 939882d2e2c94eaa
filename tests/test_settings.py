"""Tests for configuration loading."""

import pytest

from receipt_scanner.config import (
    ConfigurationError,
    get_settings,
    validate_all_settings,
)


class TestSettings:
    """Tests for Settings and its sections."""

    def test_defaults(self):
        settings = get_settings()
        assert settings.google.api_key == "test-key"
        assert settings.vision.endpoint == "https://vision.googleapis.com/v1/images:annotate"
        assert settings.gemini.temperature == 0.1
        assert settings.gemini.max_tokens == 1024
        assert settings.app.extracted_text_preview_chars == 500
        assert settings.app.fallback_tax_rate == 0.12

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("GEMINI_MODEL_NAME", "gemini-1.5-pro")
        monkeypatch.setenv("FALLBACK_CONFIDENCE", "0.2")
        settings = get_settings()
        assert settings.gemini.model_name == "gemini-1.5-pro"
        assert settings.app.fallback_confidence == 0.2

    @pytest.mark.parametrize("value", ["", None])
    def test_missing_api_key(self, monkeypatch, value):
        if value is None:
            monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
        else:
            monkeypatch.setenv("GOOGLE_API_KEY", value)

        with pytest.raises(ConfigurationError):
            get_settings().google

    def test_validate_all_settings(self, monkeypatch):
        assert validate_all_settings() == {
            "google": True,
            "vision": True,
            "gemini": True,
            "app": True,
        }

        monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
        results = validate_all_settings()
        assert results["google"] is False
        assert results["google_error"] == "Google API key not configured"
