"""Timeout middleware for tool execution."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from pydantic import BaseModel

from toolchat.foundation.errors import ErrorCode, ErrorTrace, ToolError, ToolException

from ..middleware import Context, Next

if TYPE_CHECKING:
    from toolchat.foundation.core import BaseTool


@dataclass(slots=True)
class TimeoutMiddleware:
    """Enforce a per-call execution timeout.

    Without it a single hanging tool stalls the whole round. Raises
    ToolException with TIMEOUT code if exceeded and stores the ErrorTrace in
    context.

    Args:
        timeout_seconds: Maximum execution time
        per_tool_overrides: Dict of tool_name -> timeout for specific tools

    Example:
        >>> TimeoutMiddleware(timeout_seconds=30.0, per_tool_overrides={"search_faq": 60.0})
    """

    timeout_seconds: float = 30.0
    per_tool_overrides: dict[str, float] = field(default_factory=dict)

    async def __call__(
        self,
        tool: BaseTool[BaseModel],
        arguments: Mapping[str, object],
        ctx: Context,
        next: Next,
    ) -> str:
        timeout = self.per_tool_overrides.get(tool.metadata.name, self.timeout_seconds)
        ctx["timeout_configured"] = timeout
        try:
            return await asyncio.wait_for(next(tool, arguments, ctx), timeout=timeout)
        except asyncio.TimeoutError:
            trace = ErrorTrace(
                message=f"Execution timed out after {timeout}s",
                error_code=ErrorCode.TIMEOUT.value,
                recoverable=True,
            ).with_operation("middleware:timeout", tool=tool.metadata.name, timeout=timeout)
            ctx["error_trace"] = trace
            raise ToolException(ToolError.create(
                tool.metadata.name,
                trace.message,
                ErrorCode.TIMEOUT,
                recoverable=True,
            )) from None
