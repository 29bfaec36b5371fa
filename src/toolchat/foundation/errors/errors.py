"""Standardized error handling for tools and the chat loop.

Provides error codes, structured tool error responses fed back to the model,
and the exceptions the orchestrator raises to its caller.
"""

from __future__ import annotations

import re
import traceback
from enum import StrEnum
from functools import lru_cache
from typing import Self

from pydantic import BaseModel


class ErrorCode(StrEnum):
    """Standard error codes for tool and engine failures."""
    RATE_LIMITED = "RATE_LIMITED"
    NETWORK_ERROR = "NETWORK_ERROR"
    TIMEOUT = "TIMEOUT"
    INVALID_PARAMS = "INVALID_PARAMS"
    NO_RESULTS = "NO_RESULTS"
    PARSE_ERROR = "PARSE_ERROR"
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    NOT_FOUND = "NOT_FOUND"
    CANCELLED = "CANCELLED"
    ENGINE_ERROR = "ENGINE_ERROR"
    UNKNOWN = "UNKNOWN"


# Word-prefix pattern -> code, checked in insertion order
_PATTERN_CODES: dict[str, ErrorCode] = {
    "timeout": ErrorCode.TIMEOUT,
    "timed out": ErrorCode.TIMEOUT,
    "cancel": ErrorCode.CANCELLED,
    "connection": ErrorCode.NETWORK_ERROR,
    "network": ErrorCode.NETWORK_ERROR,
    "rate limit": ErrorCode.RATE_LIMITED,
    "too many requests": ErrorCode.RATE_LIMITED,
    "permission": ErrorCode.PERMISSION_DENIED,
    "forbidden": ErrorCode.PERMISSION_DENIED,
    "parse": ErrorCode.PARSE_ERROR,
    "json": ErrorCode.PARSE_ERROR,
    "decode": ErrorCode.PARSE_ERROR,
    "validation": ErrorCode.INVALID_PARAMS,
    "value error": ErrorCode.INVALID_PARAMS,
    "type error": ErrorCode.INVALID_PARAMS,
    "not found": ErrorCode.NOT_FOUND,
    "key error": ErrorCode.NOT_FOUND,
}
_PATTERNS = tuple((re.compile(rf"\b{re.escape(p)}"), code) for p, code in _PATTERN_CODES.items())
_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


@lru_cache(maxsize=256)
def _classify_cached(exc_key: str) -> ErrorCode:
    haystack = exc_key.lower()
    for pattern, code in _PATTERNS:
        if pattern.search(haystack):
            return code
    return ErrorCode.EXTERNAL_SERVICE_ERROR


def classify_exception(exc: BaseException) -> ErrorCode:
    """Map exception to error code by matching words in its class name and message.

    Class names are split into words first, so ``JSONDecodeError`` reads as
    "json decode error". Patterns only match at the start of a word.
    """
    if isinstance(exc, ToolException):
        return exc.error.code
    name = _CAMEL_BOUNDARY.sub(" ", type(exc).__name__)
    return _classify_cached(f"{name} {exc}")


class ToolError(BaseModel):
    """Structured error response for tool failures.

    The rendered form is what the model sees in the following tool turn, so
    it carries enough detail for the model to retry or apologize.
    """

    model_config = {"frozen": True}

    tool_name: str
    message: str
    code: ErrorCode = ErrorCode.UNKNOWN
    recoverable: bool = True
    details: str | None = None

    @classmethod
    def create(
        cls,
        tool_name: str,
        message: str,
        code: ErrorCode = ErrorCode.UNKNOWN,
        *,
        recoverable: bool = True,
        details: str | None = None,
    ) -> Self:
        """Factory method for construction."""
        return cls(tool_name=tool_name, message=message, code=code, recoverable=recoverable, details=details)

    @classmethod
    def from_exception(
        cls,
        tool_name: str,
        exc: BaseException,
        context: str = "",
        *,
        recoverable: bool = True,
        include_trace: bool = False,
    ) -> Self:
        """Create from exception with auto-classification."""
        return cls(
            tool_name=tool_name,
            message=f"{context}: {exc}" if context else (str(exc) or type(exc).__name__),
            code=classify_exception(exc),
            recoverable=recoverable,
            details=traceback.format_exc() if include_trace else None,
        )

    def render(self) -> str:
        """Format error for LLM consumption."""
        parts = [f"**Tool Error ({self.tool_name}):** {self.message} [{self.code.value}]"]
        if self.recoverable:
            parts.append("\n_This error may be recoverable - consider retrying or trying an alternative approach._")
        if self.details:
            parts.append(f"\n\nDetails:\n```\n{self.details}\n```")
        return "".join(parts)

    __str__ = render


class ToolException(Exception):
    """Exception wrapping a ToolError for raising from tool code."""

    __slots__ = ("error",)

    def __init__(self, error: ToolError) -> None:
        self.error = error
        super().__init__(error.message)

    @classmethod
    def create(cls, tool_name: str, message: str, code: ErrorCode = ErrorCode.UNKNOWN, *, recoverable: bool = True) -> Self:
        """Create tool exception."""
        return cls(ToolError(tool_name=tool_name, message=message, code=code, recoverable=recoverable))


# ─────────────────────────────────────────────────────────────────────────────
# Chat-level exceptions (surfaced to the caller of ChatSession.ask)
# ─────────────────────────────────────────────────────────────────────────────


class ChatError(Exception):
    """Base class for failures the orchestrator surfaces to its caller."""


class EngineError(ChatError):
    """Model acquisition or generation failed.

    Never recovered inside the loop. The original engine exception is kept
    as ``__cause__``.
    """

    def __init__(self, message: str, code: ErrorCode = ErrorCode.ENGINE_ERROR) -> None:
        self.code = code
        super().__init__(message)

    @classmethod
    def from_exception(cls, exc: BaseException, context: str) -> Self:
        return cls(f"{context}: {type(exc).__name__}: {exc}", classify_exception(exc))


class ConversationBusyError(ChatError):
    """A question was submitted while another round was still in flight."""


class ChatCancelledError(ChatError):
    """The caller cancelled the request via its CancelToken."""
