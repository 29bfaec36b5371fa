"""Environment-based configuration using pydantic-settings.

Provides type-safe, validated configuration from environment variables
with sensible defaults. Supports .env files and nested configuration.

Example:
    >>> from toolchat.foundation.config import get_settings
    >>> settings = get_settings()
    >>> settings.model.max_new_tokens
    1000
    >>> settings.chat.max_rounds
    8

    # Or with environment variables:
    # TOOLCHAT_MODEL_MAX_NEW_TOKENS=512
    # TOOLCHAT_CHAT_TOOL_TIMEOUT=10
    # TOOLCHAT_CHAT_TOOL_TIMEOUTS='{"search_faq": 60}'
    # TOOLCHAT_LOG_LEVEL=DEBUG
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated, Literal

from pydantic import Field, PositiveFloat, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ModelSettings(BaseSettings):
    """Inference engine configuration."""

    model_config = SettingsConfigDict(
        env_prefix="TOOLCHAT_MODEL_",
        extra="ignore",
        protected_namespaces=(),
    )

    model_id: str = Field(default="ibm-granite/granite-3.3-2b-instruct", description="HuggingFace model id")
    device: str = Field(default="cpu", description="Torch device, e.g. 'cpu', 'cuda', 'mps'")
    dtype: Literal["auto", "float32", "float16", "bfloat16"] = "auto"
    max_new_tokens: Annotated[int, Field(ge=1, le=32768)] = 1000


class ChatSettings(BaseSettings):
    """Orchestration loop configuration."""

    model_config = SettingsConfigDict(
        env_prefix="TOOLCHAT_CHAT_",
        extra="ignore",
    )

    max_rounds: Annotated[int, Field(ge=1, le=100)] = 8
    tool_timeout: PositiveFloat = Field(default=30.0, description="Per-call tool timeout in seconds")
    tool_timeouts: dict[str, PositiveFloat] = Field(
        default_factory=dict,
        description="Tool name -> timeout in seconds, overriding tool_timeout for that tool",
    )
    log_tool_arguments: bool = Field(default=False, description="Include call arguments in tool log lines")
    tool_separator: str = Field(default="\n\n", description="Joins the results of one round into one tool turn")
    round_limit_message: str = Field(
        default="Sorry, I wasn't able to complete that request. Please try rephrasing your question.",
        description="Assistant reply used when the round limit is reached",
    )


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="TOOLCHAT_LOG_",
        extra="ignore",
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["console", "json", "none"] = "console"

    @field_validator("level", mode="before")
    @classmethod
    def _normalize_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v


class ToolchatSettings(BaseSettings):
    """Root settings for toolchat.

    Loads configuration from environment variables with TOOLCHAT_ prefix.

    Example environment variables:
        TOOLCHAT_MODEL_MODEL_ID=ibm-granite/granite-3.3-8b-instruct
        TOOLCHAT_CHAT_MAX_ROUNDS=4
        TOOLCHAT_LOG_FORMAT=json
    """

    model_config = SettingsConfigDict(
        env_prefix="TOOLCHAT_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        validate_default=True,
    )

    debug: bool = Field(default=False, description="Enable debug mode")

    model: ModelSettings = Field(default_factory=ModelSettings)
    chat: ChatSettings = Field(default_factory=ChatSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


@lru_cache(maxsize=1)
def get_settings() -> ToolchatSettings:
    """Get the global settings instance (cached)."""
    return ToolchatSettings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing).

    After calling this, the next get_settings() call will
    reload configuration from environment.
    """
    get_settings.cache_clear()
