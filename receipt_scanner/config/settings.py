"""
Configuration Management for Receipt Scanner

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see what external dependencies exist and
ensures all required configuration is validated at startup.

A single Google API key is shared by the Vision OCR call and the Gemini
extraction call. Its absence is FATAL: the fallback extractor can only
help once OCR text exists, it cannot stand in for OCR itself.
"""

from functools import lru_cache

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Required configuration (e.g. the API credential) is missing or invalid."""
    pass


class GoogleSettings(BaseSettings):
    """Google API credential shared by Vision and Gemini."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    api_key: str = Field(
        ...,
        min_length=1,
        description="Google API key (Vision + Generative Language)"
    )


class VisionSettings(BaseSettings):
    """Google Cloud Vision OCR configuration."""

    model_config = SettingsConfigDict(
        env_prefix="VISION_",
        extra="ignore"
    )

    endpoint: str = Field(
        default="https://vision.googleapis.com/v1/images:annotate",
        description="Vision images:annotate endpoint"
    )


class GeminiSettings(BaseSettings):
    """Gemini LLM configuration for structured receipt extraction."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        extra="ignore"
    )

    model_name: str = Field(
        default="gemini-1.5-flash-latest",
        description="Gemini model to use"
    )
    max_tokens: int = Field(
        default=1024,
        ge=100,
        le=8192,
        description="Maximum tokens in response"
    )
    temperature: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Model temperature (lower = more deterministic)"
    )
    top_k: int = Field(
        default=40,
        ge=1,
        description="Top-k sampling bound"
    )
    top_p: float = Field(
        default=0.95,
        ge=0.0,
        le=1.0,
        description="Nucleus sampling bound"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        description="Root log level"
    )

    # Response shaping
    extracted_text_preview_chars: int = Field(
        default=500,
        ge=0,
        description="How much OCR text is echoed back to the caller"
    )

    # Extraction limits
    primary_max_items: int = Field(
        default=10,
        ge=0,
        description="Item cap for the AI extraction path"
    )
    fallback_max_items: int = Field(
        default=5,
        ge=0,
        description="Item cap for the heuristic extraction path"
    )
    default_confidence: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        description="Confidence assumed when the AI response omits one"
    )
    fallback_confidence: float = Field(
        default=0.3,
        ge=0.0,
        le=1.0,
        description="Fixed confidence for heuristic extractions"
    )

    # Heuristic thresholds
    fallback_tax_rate: float = Field(
        default=0.12,
        ge=0.0,
        lt=1.0,
        description="Approximate blended tax rate used to split a heuristic total"
    )
    max_fallback_amount: float = Field(
        default=10000.0,
        gt=0,
        description="Amounts at or above this are treated as OCR noise"
    )
    placeholder_store_name: str = Field(
        default="Unidentified store",
        min_length=1,
        description="Store name used when none can be extracted"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Note: These are loaded lazily to allow partial configuration

    @property
    def google(self) -> GoogleSettings:
        try:
            return GoogleSettings()
        except ValidationError as e:
            raise ConfigurationError("Google API key not configured") from e

    @property
    def vision(self) -> VisionSettings:
        return VisionSettings()

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, object]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus a
    `<name>_error` entry for each section that failed.
    Useful for startup checks.
    """
    results: dict[str, object] = {}
    settings = get_settings()

    for name in ("google", "vision", "gemini", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except (ConfigurationError, ValidationError) as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results

