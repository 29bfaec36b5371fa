"""Core middleware types and chain composition.

Middleware follows continuation-passing style: each middleware receives
the tool, the raw arguments, a context, and a `next` function to call
downstream. The innermost step is ``tool.execute(arguments)``.
"""

from __future__ import annotations

from collections.abc import Coroutine, Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Protocol, runtime_checkable

from pydantic import BaseModel

if TYPE_CHECKING:
    from toolchat.foundation.core import BaseTool


@dataclass(slots=True)
class Context:
    """Execution context passed through the middleware chain.

    Carries call-scoped state between middleware, e.g. timing data or the
    configured timeout.

    Example:
        >>> ctx = Context()
        >>> ctx["round"] = 2
        >>> ctx.get("round")
        2
    """

    data: dict[str, object] = field(default_factory=dict)

    def __getitem__(self, key: str) -> object:
        return self.data[key]

    def __setitem__(self, key: str, value: object) -> None:
        self.data[key] = value

    def __contains__(self, key: str) -> bool:
        return key in self.data

    def get(self, key: str, default: object = None) -> object:
        return self.data.get(key, default)


Next = Callable[["BaseTool[BaseModel]", Mapping[str, object], Context], Coroutine[Any, Any, str]]


@runtime_checkable
class Middleware(Protocol):
    """Protocol for tool middleware.

    Example:
        >>> class TimingMiddleware:
        ...     async def __call__(self, tool, arguments, ctx, next):
        ...         start = time.time()
        ...         result = await next(tool, arguments, ctx)
        ...         ctx["duration"] = time.time() - start
        ...         return result
    """

    async def __call__(
        self,
        tool: BaseTool[BaseModel],
        arguments: Mapping[str, object],
        ctx: Context,
        next: Next,
    ) -> str:
        ...


def compose(middleware: Sequence[Middleware]) -> Next:
    """Compose middleware into a single execution function.

    Args:
        middleware: Ordered list of middleware (first = outermost)

    Returns:
        Composed async function: (tool, arguments, ctx) -> result
    """
    async def base(tool: BaseTool[BaseModel], arguments: Mapping[str, object], ctx: Context) -> str:
        return await tool.execute(arguments)

    chain: Next = base
    for mw in reversed(middleware):
        def make_wrapper(m: Middleware, nxt: Next) -> Next:
            async def wrapped(tool: BaseTool[BaseModel], arguments: Mapping[str, object], ctx: Context) -> str:
                return await m(tool, arguments, ctx, nxt)
            return wrapped
        chain = make_wrapper(mw, chain)

    return chain
