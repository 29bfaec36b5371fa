"""Execute one round of tool calls concurrently.

Every request gets exactly one `ToolCallResult`, in request order. A call
that cannot be resolved, fails validation, raises, or times out yields an
error result whose content is the rendered `ToolError`, so the model reads
the failure in the next tool turn and can retry or apologize. Only the
cancellation of the dispatching task itself propagates.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Mapping, Sequence

from toolchat.foundation.errors import Err, ErrorCode, Ok, Result, ToolError, ToolException
from toolchat.foundation.registry import ToolRegistry
from toolchat.runtime.concurrency import Settled, gather_settled
from toolchat.runtime.middleware import Context, LoggingMiddleware, Middleware, Next, TimeoutMiddleware, compose
from toolchat.runtime.observability import get_logger

from .types import ToolCallRequest, ToolCallResult

log = get_logger("toolchat.dispatcher")

CallOutcome = Result[str, ToolError]


def join_results(results: Iterable[ToolCallResult], separator: str = "\n\n") -> str:
    """Join one round's results into the content of a single tool turn."""
    return separator.join(r.content for r in results)


class ToolDispatcher:
    """Resolve tool calls against a registry and run them through middleware.

    Chain order (outermost first): logging, timeout, then any extra
    middleware, then ``tool.execute``. ``tool_timeouts`` overrides
    ``timeout`` for the named tools.

    Example:
        >>> dispatcher = ToolDispatcher(registry, timeout=10.0, tool_timeouts={"search_faq": 60.0})
        >>> results = await dispatcher.dispatch([ToolCallRequest(name="get_page_context")])
        >>> results[0].ok
        True
    """

    __slots__ = ("registry", "timeout", "_chain")

    def __init__(
        self,
        registry: ToolRegistry,
        timeout: float = 30.0,
        middleware: Sequence[Middleware] = (),
        *,
        tool_timeouts: Mapping[str, float] | None = None,
        log_arguments: bool = False,
    ) -> None:
        if timeout <= 0:
            raise ValueError(f"timeout must be positive, got {timeout}")
        overrides = dict(tool_timeouts or {})
        for name, value in overrides.items():
            if value <= 0:
                raise ValueError(f"timeout for {name} must be positive, got {value}")
        self.registry = registry
        self.timeout = timeout
        self._chain: Next = compose([
            LoggingMiddleware(log_arguments=log_arguments),
            TimeoutMiddleware(timeout_seconds=timeout, per_tool_overrides=overrides),
            *middleware,
        ])

    def with_registry(self, registry: ToolRegistry) -> ToolDispatcher:
        """Same timeout and chain, different tool set."""
        clone = object.__new__(ToolDispatcher)
        clone.registry, clone.timeout, clone._chain = registry, self.timeout, self._chain
        return clone

    async def _call(self, request: ToolCallRequest) -> CallOutcome:
        tool = self.registry.get(request.name)
        if tool is None:
            known = ", ".join(self.registry.names()) or "none"
            return Err(ToolError.create(
                request.name,
                f"Unknown tool '{request.name}'. Available tools: {known}",
                ErrorCode.NOT_FOUND,
            ))
        try:
            return Ok(await self._chain(tool, request.arguments, Context()))
        except ToolException as e:
            return Err(e.error)
        except Exception as e:
            return Err(ToolError.from_exception(request.name, e, "Tool execution failed"))

    @staticmethod
    def _to_result(request: ToolCallRequest, settled: Settled[CallOutcome]) -> ToolCallResult:
        if settled.is_rejected:
            # Only reached for BaseExceptions that escaped _call, e.g. a tool cancelling itself
            error = ToolError.from_exception(request.name, settled.error or asyncio.CancelledError(), "Tool execution aborted")
            return ToolCallResult(name=request.name, ok=False, content=error.render(), code=error.code)
        return settled.unwrap().match(
            ok=lambda content: ToolCallResult(name=request.name, ok=True, content=content),
            err=lambda error: ToolCallResult(name=request.name, ok=False, content=error.render(), code=error.code),
        )

    async def dispatch(self, requests: Sequence[ToolCallRequest]) -> list[ToolCallResult]:
        if not requests:
            return []
        settled = await gather_settled(*(self._call(r) for r in requests))
        results = [self._to_result(r, s) for r, s in zip(requests, settled, strict=True)]
        failed = sum(not r.ok for r in results)
        log.debug("round dispatched", calls=len(results), failed=failed)
        return results
