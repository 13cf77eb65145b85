"""Application configuration helpers."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Final

from dotenv import load_dotenv
from pydantic import AnyHttpUrl, BaseModel, Field, ValidationError

# Load environment variables from .env file
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DEFAULT_GITHUB_API_BASE_URL: Final[str] = "https://api.github.com"
DEFAULT_ANTHROPIC_API_BASE_URL: Final[str] = "https://api.anthropic.com"
DEFAULT_ANTHROPIC_MODEL: Final[str] = "claude-3-5-sonnet-20241022"


class SettingsError(RuntimeError):
    """Raised when application configuration is invalid or incomplete."""


class Settings(BaseModel):
    """Runtime settings loaded from environment variables."""

    github_api_base_url: AnyHttpUrl = DEFAULT_GITHUB_API_BASE_URL
    github_token: str | None = None
    anthropic_api_key: str | None = None
    anthropic_api_base_url: AnyHttpUrl = DEFAULT_ANTHROPIC_API_BASE_URL
    anthropic_model: str = DEFAULT_ANTHROPIC_MODEL
    anthropic_max_tokens: int = Field(default=1000, gt=0)
    request_timeout: float = Field(default=10.0, gt=0)
    review_timeout: float = Field(default=60.0, gt=0)
    keep_unclassified_sections: bool = True
    disabled_rules: frozenset[str] = frozenset()
    recent_limit: int = Field(default=10, gt=0, le=100)

    @property
    def normalized_github_api_base_url(self) -> str:
        """Return the GitHub API base URL without a trailing slash."""
        return str(self.github_api_base_url).rstrip("/")

    @property
    def normalized_anthropic_api_base_url(self) -> str:
        """Return the Anthropic API base URL without a trailing slash."""
        return str(self.anthropic_api_base_url).rstrip("/")

    @property
    def narrative_review_enabled(self) -> bool:
        return bool(self.anthropic_api_key)

    def require_anthropic_api_key(self) -> str:
        """Ensure the narrative review service is configured and return its key."""

        if not self.anthropic_api_key:
            raise SettingsError(
                "Narrative review is not configured. Missing environment variable: ANTHROPIC_API_KEY."
            )
        return self.anthropic_api_key


_TRUE_VALUES: Final[set[str]] = {"1", "true", "yes", "on"}


def _parse_bool_env(raw_value: str | None, *, default: bool = False) -> bool:
    """Convert an environment variable string to a boolean value."""

    if raw_value is None:
        return default
    return raw_value.strip().lower() in _TRUE_VALUES


def _parse_list_env(raw_value: str | None) -> frozenset[str]:
    if not raw_value:
        return frozenset()
    return frozenset(item.strip() for item in raw_value.split(",") if item.strip())


def _optional(name: str) -> str | None:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _build_settings() -> Settings:
    values: dict[str, object] = {
        "github_token": _optional("GITHUB_TOKEN"),
        "anthropic_api_key": _optional("ANTHROPIC_API_KEY"),
        "keep_unclassified_sections": _parse_bool_env(
            os.getenv("RUBBER_KEEP_UNCLASSIFIED"), default=True
        ),
        "disabled_rules": _parse_list_env(os.getenv("RUBBER_DISABLED_RULES")),
    }

    optional_fields = {
        "github_api_base_url": "GITHUB_API_BASE_URL",
        "anthropic_api_base_url": "ANTHROPIC_API_BASE_URL",
        "anthropic_model": "ANTHROPIC_MODEL",
    }
    for field_name, env_name in optional_fields.items():
        if raw := _optional(env_name):
            values[field_name] = raw

    numeric_fields = {
        "anthropic_max_tokens": ("ANTHROPIC_MAX_TOKENS", int),
        "request_timeout": ("RUBBER_REQUEST_TIMEOUT", float),
        "review_timeout": ("RUBBER_REVIEW_TIMEOUT", float),
        "recent_limit": ("RUBBER_RECENT_LIMIT", int),
    }
    for field_name, (env_name, cast) in numeric_fields.items():
        raw = _optional(env_name)
        if raw is None:
            continue
        try:
            values[field_name] = cast(raw)
        except ValueError as exc:
            raise SettingsError(f"Invalid value for {env_name}: {raw!r} is not a number.") from exc

    try:
        return Settings(**values)
    except ValidationError as exc:
        raise SettingsError(f"Invalid application configuration: {exc}") from exc


@lru_cache(maxsize=1)
def _cached_settings() -> Settings:
    return _build_settings()


def get_settings() -> Settings:
    """Retrieve cached application settings."""
    return _cached_settings()


def reset_settings_cache() -> None:
    """Clear the cached settings (primarily for tests)."""
    _cached_settings.cache_clear()
