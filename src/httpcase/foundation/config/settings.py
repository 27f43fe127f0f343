"""Environment-based configuration using pydantic-settings.

Provides type-safe, validated configuration from environment variables
with sensible defaults. Supports .env files and nested configuration.

Example:
    >>> from httpcase.foundation.config import get_settings
    >>> settings = get_settings()
    >>> settings.http.timeout_ms
    30000
    >>> settings.logging.level
    'INFO'

    # Or with environment variables:
    # HTTPCASE_HTTP_TIMEOUT_MS=5000
    # HTTPCASE_LOG_LEVEL=DEBUG
    # MCP_TOOLS=get,post
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field, NonNegativeInt, PositiveInt, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_USER_AGENT = "httpcase/1.0"
DEFAULT_ACCEPT = "application/json, text/*;q=0.8, */*;q=0.1"


class HttpSettings(BaseSettings):
    """HTTP engine defaults. Times are in milliseconds."""

    model_config = SettingsConfigDict(
        env_prefix="HTTPCASE_HTTP_",
        extra="ignore",
    )

    timeout_ms: NonNegativeInt = Field(default=30_000, description="Per-attempt timeout")
    max_retries: NonNegativeInt = Field(default=0, description="Retries after the first attempt")
    backoff_ms: NonNegativeInt = Field(default=500, description="Base exponential backoff")
    concurrency: PositiveInt = Field(default=5, description="Default fan-out worker count")
    user_agent: str = DEFAULT_USER_AGENT
    accept: str = DEFAULT_ACCEPT
    verify_ssl: bool = True
    follow_redirects: bool = True

    @computed_field
    @property
    def default_headers(self) -> dict[str, str]:
        """Header set every request starts from."""
        return {"User-Agent": self.user_agent, "Accept": self.accept}


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="HTTPCASE_LOG_",
        extra="ignore",
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["console", "json", "none"] = "console"

    @field_validator("level", mode="before")
    @classmethod
    def _upper_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v


class ServerSettings(BaseSettings):
    """Tool server configuration."""

    model_config = SettingsConfigDict(
        env_prefix="HTTPCASE_SERVER_",
        extra="ignore",
    )

    name: str = "httpcase"
    transport: Literal["stdio", "sse", "streamable-http"] = "stdio"
    host: str = "127.0.0.1"
    port: PositiveInt = 8080


class HttpcaseSettings(BaseSettings):
    """Root settings for httpcase.

    Loads configuration from environment variables with HTTPCASE_ prefix.
    The tool allow-list keeps its historical name, MCP_TOOLS.

    Example environment variables:
        HTTPCASE_HTTP_TIMEOUT_MS=10000
        HTTPCASE_HTTP_CONCURRENCY=8
        HTTPCASE_LOG_FORMAT=json
        MCP_TOOLS=["get", "post"]
    """

    model_config = SettingsConfigDict(
        env_prefix="HTTPCASE_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        validate_default=True,
    )

    debug: bool = Field(default=False, description="Enable debug mode")
    tools: str | None = Field(
        default=None,
        validation_alias=AliasChoices("MCP_TOOLS", "HTTPCASE_TOOLS"),
        description="Tool allow-list: JSON array, JSON \"*\" or comma-separated names",
    )

    # Nested settings (loaded with HTTPCASE_HTTP_, HTTPCASE_LOG_, ...)
    http: HttpSettings = Field(default_factory=HttpSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)


@lru_cache(maxsize=1)
def get_settings() -> HttpcaseSettings:
    """Get the global settings instance (cached)."""
    return HttpcaseSettings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing).

    After calling this, the next get_settings() call will
    reload configuration from environment.
    """
    get_settings.cache_clear()
