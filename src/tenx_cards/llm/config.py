"""
Configuration for the OpenRouter client.

Uses pydantic-settings to load from environment variables.
Supports dependency injection for testing flexibility.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from tenx_cards.llm.errors import ValidationError

DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_RETRYABLE_STATUSES = frozenset({429, 500, 502, 503, 504})


class LLMSettings(BaseSettings):
    """OpenRouter client configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        extra="ignore",
    )

    # API access (loaded from environment)
    openrouter_api_key: str | None = None
    openrouter_base_url: str = DEFAULT_BASE_URL

    # Defaults
    default_model: str | None = "openai/gpt-4o-2024-08-06"
    default_timeout: float = 60.0  # Per-attempt deadline (seconds)
    default_max_retries: int = 3
    default_temperature: float | None = None
    default_max_tokens: int | None = None

    # Retry configuration
    retry_delay: float = 1.0  # Base backoff delay (seconds)
    retryable_statuses: list[int] = [429, 500, 502, 503, 504]

    # App identification headers
    app_referer: str | None = None
    app_title: str | None = None

    # Langfuse (for observability)
    langfuse_public_key: str | None = None
    langfuse_secret_key: str | None = None
    langfuse_host: str = "https://cloud.langfuse.com"

    service_name: str = "tenx-cards-llm"
    service_environment: str = "development"


@dataclass(frozen=True)
class RetryConfig:
    """Configuration for retry behavior with exponential backoff."""

    max_retries: int = 3
    retry_delay: float = 1.0  # Base delay between retries (seconds)
    retryable_statuses: frozenset[int] = field(default=DEFAULT_RETRYABLE_STATUSES)

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValidationError("max_retries must be >= 0")
        if self.retry_delay < 0:
            raise ValidationError("retry_delay must be >= 0")
        # Accept any iterable of ints from callers
        object.__setattr__(self, "retryable_statuses", frozenset(self.retryable_statuses))

    @classmethod
    def from_settings(cls, settings: LLMSettings | None = None) -> "RetryConfig":
        """Create RetryConfig from LLMSettings."""
        s = settings or get_settings()
        return cls(
            max_retries=s.default_max_retries,
            retry_delay=s.retry_delay,
            retryable_statuses=frozenset(s.retryable_statuses),
        )


class AppInfo(BaseModel):
    """App-identifying headers sent with every request."""

    model_config = ConfigDict(frozen=True)

    referer: str
    title: str


class ServiceConfig(BaseModel):
    """
    Immutable client configuration.

    Built once and shared read-only across concurrent calls. The API key is a
    ``SecretStr`` so it never shows up in reprs or logs.

    Example:
        >>> config = ServiceConfig(
        ...     api_key="sk-or-...",
        ...     default_model="openai/gpt-4o-mini",
        ...     retry=RetryConfig(max_retries=2),
        ... )
    """

    model_config = ConfigDict(frozen=True)

    api_key: SecretStr
    base_url: str = DEFAULT_BASE_URL
    default_model: str | None = None
    default_params: Mapping[str, Any] = Field(default_factory=dict, validate_default=True)
    app_info: AppInfo | None = None
    retry: RetryConfig = RetryConfig()
    timeout: float = 60.0

    @field_validator("default_params", mode="after")
    @classmethod
    def _freeze_params(cls, value: Mapping[str, Any]) -> Mapping[str, Any]:
        # frozen=True guards attributes only; the mapping itself must be read-only too
        return MappingProxyType(dict(value))

    def model_post_init(self, context: Any, /) -> None:
        if not self.api_key.get_secret_value().strip():
            raise ValidationError("API key is required")
        if self.timeout <= 0:
            raise ValidationError("timeout must be positive")

    @classmethod
    def from_settings(cls, settings: LLMSettings | None = None) -> "ServiceConfig":
        """
        Create a ServiceConfig from LLMSettings.

        Raises:
            ValidationError: If OPENROUTER_API_KEY is not configured
        """
        s = settings or get_settings()
        if not s.openrouter_api_key:
            raise ValidationError("OPENROUTER_API_KEY is not configured")

        default_params: dict[str, Any] = {}
        if s.default_temperature is not None:
            default_params["temperature"] = s.default_temperature
        if s.default_max_tokens is not None:
            default_params["max_tokens"] = s.default_max_tokens

        app_info = None
        if s.app_referer and s.app_title:
            app_info = AppInfo(referer=s.app_referer, title=s.app_title)

        return cls(
            api_key=SecretStr(s.openrouter_api_key),
            base_url=s.openrouter_base_url,
            default_model=s.default_model,
            default_params=default_params,
            app_info=app_info,
            retry=RetryConfig.from_settings(s),
            timeout=s.default_timeout,
        )

    def retryable(self, status_code: int) -> bool:
        return status_code in self.retry.retryable_statuses


# Global settings instance
_settings: LLMSettings | None = None


def get_settings() -> LLMSettings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = LLMSettings()
    return _settings


def configure(**kwargs: Any) -> None:
    """
    Configure settings programmatically.

    Args:
        **kwargs: Settings to override

    Example:
        >>> configure(default_model="anthropic/claude-3.5-haiku", default_timeout=30.0)
    """
    global _settings
    current = get_settings().model_dump()
    current.update({k: v for k, v in kwargs.items() if v is not None})
    _settings = LLMSettings(**current)


def reset_settings() -> None:
    """
    Reset the global settings instance.

    The next call to get_settings() will create a fresh instance.
    """
    global _settings
    _settings = None


def set_settings(settings: LLMSettings) -> None:
    """
    Set a custom settings instance.

    Example:
        >>> set_settings(LLMSettings(default_model="openai/gpt-4o-mini"))
        >>> get_settings().default_model
        'openai/gpt-4o-mini'
    """
    global _settings
    _settings = settings
