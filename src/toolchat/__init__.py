"""Toolchat - Tool-augmented chat loop for a local language model.

An in-page assistant: the user asks a question, the model may request tool
calls in its reply, the tools run, their results go back into the
conversation, and the loop repeats until the model answers in plain text.

Quick Start:
    >>> from toolchat import ChatSession, PageContext, SessionContext, build_registry
    >>>
    >>> ctx = SessionContext(page=PageContext("Pricing", "Basic plan: 10 EUR/month"))
    >>> session = ChatSession.from_settings(build_registry, context=ctx)
    >>> await session.ask("How much is the basic plan?")
    'The basic plan costs 10 EUR per month.'

Custom Tools:
    >>> from toolchat import ToolRegistry, tool
    >>>
    >>> @tool(description="Look up the opening hours of the shop")
    ... def opening_hours(day: str) -> str:
    ...     '''Opening hours.
    ...
    ...     Args:
    ...         day: Day of the week
    ...     '''
    ...     return "9:00-18:00"
    >>>
    >>> session = ChatSession.from_settings(ToolRegistry([opening_hours]))

Bring Your Own Engine:
    >>> from toolchat import ModelHandle, ModelRequestAdapter
    >>>
    >>> adapter = ModelRequestAdapter(ModelHandle(load_my_engine), max_new_tokens=512)
    >>> session = ChatSession(adapter, build_registry, context=ctx)

Configuration comes from TOOLCHAT_* environment variables (see
`toolchat.foundation.config`).
"""

from __future__ import annotations

__version__ = "0.1.0"

# Chat loop
from .chat import (
    SYSTEM_PROMPT,
    ChatSession,
    ChatState,
    Conversation,
    InferenceEngine,
    ModelHandle,
    ModelRequestAdapter,
    ParsedResponse,
    Role,
    ToolCallGrammar,
    ToolCallParser,
    ToolCallRequest,
    ToolCallResult,
    ToolDispatcher,
    TransformersEngine,
    Turn,
    join_results,
)

# Config
from .foundation.config import ToolchatSettings, get_settings

# Core
from .foundation.core import BaseTool, EmptyParams, FunctionTool, ToolMetadata, tool

# Errors
from .foundation.errors import (
    ChatCancelledError,
    ChatError,
    ConversationBusyError,
    EngineError,
    ErrorCode,
    ToolError,
    ToolException,
)

# Registry
from .foundation.registry import ToolRegistry

# Runtime
from .runtime.concurrency import CancelToken
from .runtime.observability import configure_logging, get_logger

# Built-in tools
from .tools import PageContext, SessionContext, build_registry, faq_tool, navigation_tool, page_context_tool

__all__ = [
    "__version__",
    # Chat
    "ChatSession", "ChatState", "Conversation", "Role", "Turn", "SYSTEM_PROMPT",
    "ToolCallRequest", "ToolCallResult", "ToolCallGrammar", "ToolCallParser", "ParsedResponse",
    "ToolDispatcher", "join_results",
    # Engine
    "InferenceEngine", "ModelHandle", "ModelRequestAdapter", "TransformersEngine",
    # Tools
    "BaseTool", "EmptyParams", "FunctionTool", "ToolMetadata", "tool", "ToolRegistry",
    "PageContext", "SessionContext", "build_registry", "page_context_tool", "navigation_tool", "faq_tool",
    # Errors
    "ErrorCode", "ToolError", "ToolException",
    "ChatError", "EngineError", "ConversationBusyError", "ChatCancelledError",
    # Runtime
    "CancelToken", "configure_logging", "get_logger",
    # Config
    "ToolchatSettings", "get_settings",
]
