"""Logging middleware for tool execution."""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from pydantic import BaseModel

from toolchat.foundation.errors import ErrorTrace

from ..middleware import Context, Next

if TYPE_CHECKING:
    from toolchat.foundation.core import BaseTool

logger = logging.getLogger("toolchat.middleware")


@dataclass(slots=True)
class LoggingMiddleware:
    """Log tool execution with timing and result status.

    Logs at INFO level for successful calls, WARNING for failures.
    Duration is stored in context as 'duration_ms'. A failure that left an
    ErrorTrace in context is logged with its operation trace.

    Args:
        log: Logger instance to use (defaults to toolchat.middleware)
        log_arguments: Whether to include arguments in log (default False for privacy)
    """

    log: logging.Logger = field(default_factory=lambda: logger)
    log_arguments: bool = False

    async def __call__(
        self,
        tool: BaseTool[BaseModel],
        arguments: Mapping[str, object],
        ctx: Context,
        next: Next,
    ) -> str:
        name = tool.metadata.name
        start = time.perf_counter()

        arg_str = f" arguments={dict(arguments)}" if self.log_arguments else ""
        self.log.info(f"[{name}] Starting{arg_str}")

        try:
            result = await next(tool, arguments, ctx)
        except Exception as e:
            duration_ms = (time.perf_counter() - start) * 1000
            ctx["duration_ms"] = duration_ms
            trace = ctx.get("error_trace")
            detail = trace.format() if isinstance(trace, ErrorTrace) else f"{type(e).__name__}: {e}"
            self.log.warning(f"[{name}] FAILED ({duration_ms:.1f}ms): {detail}")
            raise

        duration_ms = (time.perf_counter() - start) * 1000
        ctx["duration_ms"] = duration_ms
        self.log.info(f"[{name}] OK ({duration_ms:.1f}ms)")
        return result
