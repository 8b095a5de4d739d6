"""Application configuration."""

import os

import httpx
from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Process-wide settings loaded from environment variables."""

    analyzer_choice: str | None = None
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o-mini"
    openai_reasoning_effort: str | None = None
    openai_store: bool = False
    classifier_api_key: str | None = None
    classifier_model: str = "gpt-4o-mini"
    supabase_url: str | None = None
    supabase_anon_key: str | None = None
    fdc_api_key: str | None = None
    fdc_base_url: str = "https://api.nal.usda.gov/fdc/v1"
    strategy_timeout_seconds: float = 30.0
    remote_call_timeout_seconds: float = 20.0
    max_image_bytes: int = 10 * 1024 * 1024
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
        frozen=True,
    )

    @property
    def resolved_classifier_key(self) -> str | None:
        """Key used by the router's vision sub-steps."""
        return _clean(self.classifier_api_key) or _clean(self.openai_api_key)


def parse_analyzer_choice(raw: str | None) -> str | None:
    """Normalize the configured analyzer choice."""
    if raw is None:
        return None
    cleaned = raw.strip().lower()
    return cleaned or None


def is_valid_http_url(raw: str | None) -> bool:
    """Return True when the value parses as an http(s) URL with a host."""
    if not raw or not raw.strip():
        return False
    try:
        url = httpx.URL(raw.strip())
    except (httpx.InvalidURL, TypeError):
        return False
    return url.scheme in {"http", "https"} and bool(url.host)


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None
