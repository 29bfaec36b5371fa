"""Decorator-based tool definition for simple functions.

Transforms decorated functions, closures included, into full BaseTool
instances with auto-generated parameter schemas from type hints.

Example:
    >>> def make_page_tool(page: PageContext) -> BaseTool:
    ...     @tool(description="Get the current page context")
    ...     def get_page_context() -> str:
    ...         return f"Current Page: {page.title}"
    ...     return get_page_context
    ...
    >>> registry.register(make_page_tool(page))
"""

from __future__ import annotations

import asyncio
import inspect
import re
from typing import TYPE_CHECKING, Callable, get_type_hints, overload

from pydantic import BaseModel, Field, create_model

from .base import BaseTool, ToolMetadata

if TYPE_CHECKING:
    from collections.abc import Awaitable


# ─────────────────────────────────────────────────────────────────────────────
# Docstring Parsing
# ─────────────────────────────────────────────────────────────────────────────

_PARAM_PATTERN = re.compile(
    r"^\s*(?P<name>\w+)\s*(?:\([^)]*\))?\s*:\s*(?P<desc>.+?)(?=\n\s*\w+\s*(?:\([^)]*\))?\s*:|$)",
    re.MULTILINE | re.DOTALL,
)


def _parse_docstring_params(docstring: str | None) -> dict[str, str]:
    """Extract parameter descriptions from Google style docstrings."""
    if not docstring:
        return {}

    sections = re.split(r"\n\s*(?:Args|Arguments|Parameters)\s*:\s*\n", docstring, flags=re.IGNORECASE)
    if len(sections) < 2:
        return {}

    args_section = re.split(r"\n\s*(?:Returns|Raises|Examples?|Notes?|Yields)\s*:", sections[1], flags=re.IGNORECASE)[0]
    return {m.group("name"): " ".join(m.group("desc").split()) for m in _PARAM_PATTERN.finditer(args_section)}


def _summary(docstring: str | None) -> str:
    """First paragraph of a docstring, whitespace-normalized."""
    if not docstring:
        return ""
    return " ".join(inspect.cleandoc(docstring).split("\n\n")[0].split())


# ─────────────────────────────────────────────────────────────────────────────
# Schema Generation
# ─────────────────────────────────────────────────────────────────────────────

def _generate_schema(func: Callable[..., object], model_name: str) -> type[BaseModel]:
    """Generate Pydantic model from function signature.

    Introspects type hints and defaults to build Field definitions.
    Extracts descriptions from docstring if available.
    """
    sig = inspect.signature(func)
    hints = get_type_hints(func)
    param_docs = _parse_docstring_params(func.__doc__)

    fields: dict[str, tuple[type, object]] = {}
    for name, param in sig.parameters.items():
        if name in ("self", "cls") or param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
            continue
        field_type = hints.get(name, str)
        description = param_docs.get(name, f"Parameter: {name}")
        if param.default is inspect.Parameter.empty:
            fields[name] = (field_type, Field(..., description=description))
        else:
            fields[name] = (field_type, Field(default=param.default, description=description))

    return create_model(model_name, **fields)  # type: ignore[call-overload,no-any-return]


# ─────────────────────────────────────────────────────────────────────────────
# FunctionTool: BaseTool wrapper for functions
# ─────────────────────────────────────────────────────────────────────────────

class FunctionTool(BaseTool[BaseModel]):
    """BaseTool implementation that wraps a decorated function.

    Each instance gets its own subclass carrying `metadata` and
    `params_schema`, since BaseTool expects them as class variables.
    """

    def __init__(
        self,
        func: Callable[..., str] | Callable[..., Awaitable[str]],
        metadata: ToolMetadata,
        params_schema: type[BaseModel],
    ) -> None:
        self._func = func
        self._is_async = inspect.iscoroutinefunction(func)
        self.__class__ = type(
            f"FunctionTool_{metadata.name}",
            (FunctionTool,),
            {"metadata": metadata, "params_schema": params_schema},
        )

    def _run(self, params: BaseModel) -> str:
        kwargs = params.model_dump()
        if self._is_async:
            return asyncio.run(self._func(**kwargs))  # type: ignore[arg-type]
        return self._func(**kwargs)  # type: ignore[return-value]

    async def _async_run(self, params: BaseModel) -> str:
        kwargs = params.model_dump()
        if self._is_async:
            result: str = await self._func(**kwargs)  # type: ignore[misc]
            return result
        return await asyncio.to_thread(self._func, **kwargs)  # type: ignore[arg-type]

    @property
    def func(self) -> Callable[..., object]:
        """Access the original wrapped function."""
        return self._func


# ─────────────────────────────────────────────────────────────────────────────
# Decorator
# ─────────────────────────────────────────────────────────────────────────────

@overload
def tool(func: Callable[..., object], /) -> FunctionTool: ...

@overload
def tool(
    *,
    name: str | None = None,
    description: str | None = None,
    category: str = "general",
) -> Callable[[Callable[..., object]], FunctionTool]: ...


def tool(
    func: Callable[..., object] | None = None,
    /,
    *,
    name: str | None = None,
    description: str | None = None,
    category: str = "general",
) -> FunctionTool | Callable[[Callable[..., object]], FunctionTool]:
    """Turn a sync or async function into a tool.

    Args:
        func: Function to wrap (when used without parentheses)
        name: Tool name (defaults to the function name)
        description: Description for the model (defaults to the docstring summary)
        category: Grouping category

    Raises:
        ValueError: If no description can be determined
    """
    def decorator(fn: Callable[..., object]) -> FunctionTool:
        tool_name = name or fn.__name__
        desc = description or _summary(fn.__doc__)
        if not desc:
            raise ValueError(f"Tool '{tool_name}' needs a description (argument or docstring)")
        metadata = ToolMetadata(name=tool_name, description=desc, category=category)
        schema = _generate_schema(fn, f"{''.join(p.title() for p in tool_name.split('_'))}Params")
        return FunctionTool(fn, metadata, schema)  # type: ignore[arg-type]

    return decorator(func) if func is not None else decorator
