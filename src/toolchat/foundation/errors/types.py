"""Type aliases and error context tracking for monadic error handling."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TypeAlias

# ═══════════════════════════════════════════════════════════════════════════════
# Type Aliases
# ═══════════════════════════════════════════════════════════════════════════════

JsonValue: TypeAlias = "str | int | float | bool | None | list[JsonValue] | dict[str, JsonValue]"
JsonDict: TypeAlias = "dict[str, JsonValue]"
JsonMapping: TypeAlias = "Mapping[str, JsonValue]"

# ═══════════════════════════════════════════════════════════════════════════════
# Error Context & Provenance
# ═══════════════════════════════════════════════════════════════════════════════

_EMPTY_META: dict[str, object] = {}


@dataclass(frozen=True, slots=True)
class ErrorContext:
    """Context for error at a call site. Tracks operation, location, metadata."""

    operation: str
    location: str = ""
    metadata: dict[str, object] = field(default_factory=dict)

    def __str__(self) -> str:
        loc = f" at {self.location}" if self.location else ""
        meta = f" ({', '.join(f'{k}={v}' for k, v in self.metadata.items())})" if self.metadata else ""
        return f"{self.operation}{loc}{meta}"


_EMPTY_CONTEXTS: tuple[ErrorContext, ...] = ()


@dataclass(frozen=True, slots=True)
class ErrorTrace:
    """Stack of error contexts forming call chain trace for provenance tracking."""

    message: str
    contexts: tuple[ErrorContext, ...] = _EMPTY_CONTEXTS
    error_code: str | None = None
    recoverable: bool = True
    details: str | None = None

    def with_operation(self, operation: str, location: str = "", **metadata: object) -> ErrorTrace:
        """Add context with operation info (returns new trace)."""
        return ErrorTrace(
            self.message,
            (*self.contexts, ErrorContext(operation, location, metadata or _EMPTY_META)),
            self.error_code,
            self.recoverable,
            self.details,
        )

    def format(self, *, include_details: bool = False) -> str:
        """Format trace as human-readable string."""
        parts = [self.message]
        if self.error_code:
            parts.append(f" [{self.error_code}]")
        if self.contexts:
            parts.append("\nContext trace:\n" + "\n".join(f"  - {ctx}" for ctx in self.contexts))
        if include_details and self.details:
            parts.append(f"\nDetails:\n{self.details}")
        return "".join(parts)

    __str__ = format

