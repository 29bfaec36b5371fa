"""Unified error handling for toolchat.

- ErrorCode: Standard error codes for tool and engine failures
- ToolError/ToolException: Structured tool errors fed back to the model
- ChatError family: Failures surfaced to the caller of ``ask``
- Result/Ok/Err: Per-call outcomes carried by the dispatcher
- ErrorTrace/ErrorContext: Error context stacking
"""

from .errors import (
    ChatCancelledError,
    ChatError,
    ConversationBusyError,
    EngineError,
    ErrorCode,
    ToolError,
    ToolException,
    classify_exception,
)
from .result import Err, Ok, Result
from .types import ErrorContext, ErrorTrace, JsonDict, JsonMapping, JsonValue

__all__ = [
    # Tool errors
    "ErrorCode", "ToolError", "ToolException", "classify_exception",
    # Chat errors
    "ChatError", "EngineError", "ConversationBusyError", "ChatCancelledError",
    # Result type
    "Result", "Ok", "Err",
    # Error context
    "ErrorContext", "ErrorTrace",
    # JSON aliases
    "JsonDict", "JsonMapping", "JsonValue",
]
