"""Configuration management using pydantic-settings.

Provides environment-based configuration with type safety and validation.
"""

from .settings import (
    ChatSettings,
    LoggingSettings,
    ModelSettings,
    ToolchatSettings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    "ChatSettings",
    "LoggingSettings",
    "ModelSettings",
    "ToolchatSettings",
    "clear_settings_cache",
    "get_settings",
]
