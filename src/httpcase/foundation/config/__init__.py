"""Configuration management using pydantic-settings.

Provides environment-based configuration with type safety and validation.
"""

from .settings import (
    DEFAULT_ACCEPT,
    DEFAULT_USER_AGENT,
    HttpcaseSettings,
    HttpSettings,
    LoggingSettings,
    ServerSettings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    "DEFAULT_ACCEPT",
    "DEFAULT_USER_AGENT",
    "HttpSettings",
    "HttpcaseSettings",
    "LoggingSettings",
    "ServerSettings",
    "clear_settings_cache",
    "get_settings",
]
