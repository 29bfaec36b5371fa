"""Registry holding the active set of tools for one conversation.

The registry provides:
- Tool registration and O(1) lookup by name
- Ordered iteration (registration order is the order advertised to the model)
- Formatted tool descriptions for prompts
- Chat-template tool schemas for the inference engine

There is deliberately no global registry. Tools are built per conversation
context (see ``toolchat.tools.build_registry``) so their closures capture
the context current at build time, and the whole registry is replaced when
that context changes.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import Any

from pydantic import BaseModel

from ..core import BaseTool, ToolMetadata


class ToolRegistry:
    """Ordered collection of tools, unique by name.

    Example:
        >>> registry = ToolRegistry([page_context_tool(page)])
        >>> "get_page_context" in registry
        True
        >>> registry.to_chat_template()[0]["function"]["name"]
        'get_page_context'
    """

    __slots__ = ("_tools",)

    def __init__(self, tools: Iterable[BaseTool[BaseModel]] = ()) -> None:
        self._tools: dict[str, BaseTool[BaseModel]] = {}
        self.register_all(*tools)

    def register(self, tool: BaseTool[BaseModel]) -> None:
        """Register a tool instance. Names must be unique."""
        name = tool.metadata.name
        if name in self._tools:
            raise ValueError(f"Tool '{name}' already registered. Use unregister() first.")
        self._tools[name] = tool

    def register_all(self, *tools: BaseTool[BaseModel]) -> None:
        """Register multiple tools at once."""
        for tool in tools:
            self.register(tool)

    def unregister(self, name: str) -> bool:
        """Remove a tool by name. Returns True if found."""
        return self._tools.pop(name, None) is not None

    def get(self, name: str) -> BaseTool[BaseModel] | None:
        """Get tool by exact name."""
        return self._tools.get(name)

    def __getitem__(self, name: str) -> BaseTool[BaseModel]:
        """Get tool by name, raises KeyError if not found."""
        return self._tools[name]

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def __iter__(self) -> Iterator[BaseTool[BaseModel]]:
        return iter(self._tools.values())

    def __repr__(self) -> str:
        return f"ToolRegistry({list(self._tools)!r})"

    # ─────────────────────────────────────────────────────────────────
    # Querying
    # ─────────────────────────────────────────────────────────────────

    def names(self) -> list[str]:
        return list(self._tools)

    def list_tools(self) -> list[ToolMetadata]:
        """List metadata for all registered tools."""
        return [t.metadata for t in self._tools.values()]

    # ─────────────────────────────────────────────────────────────────
    # Formatting
    # ─────────────────────────────────────────────────────────────────

    def describe(self) -> str:
        """Get formatted descriptions of all tools for prompts."""
        return "\n".join(f"- **{m.name}** ({m.category}): {m.description}" for m in self.list_tools())

    def to_chat_template(self) -> list[dict[str, Any]]:
        """Tool schemas in the function-calling shape chat templates expect."""
        return [tool.to_chat_template() for tool in self._tools.values()]
