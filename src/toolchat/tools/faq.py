"""FAQ search tool backed by a caller-supplied search collaborator."""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Sequence
from typing import Protocol, runtime_checkable

from toolchat.foundation.core import BaseTool, tool


@runtime_checkable
class SearchCollaborator(Protocol):
    """Anything that returns FAQ snippets for a query, best match first. Sync or async."""

    def find(self, query: str) -> Sequence[str] | Awaitable[Sequence[str]]: ...


def faq_tool(search: SearchCollaborator, top_k: int = 3) -> BaseTool:
    """`search_faq` returning the `top_k` best snippets."""
    if top_k < 1:
        raise ValueError(f"top_k must be positive, got {top_k}")

    @tool(
        description="Search the frequently asked questions for entries matching the user's question",
        category="search",
    )
    async def search_faq(query: str) -> str:
        """Search the FAQ.

        Args:
            query: What the user wants to know, in a few words
        """
        if inspect.iscoroutinefunction(search.find):
            found = await search.find(query)
        else:
            # blocking lookups run in a worker thread
            found = await asyncio.to_thread(search.find, query)
            if inspect.isawaitable(found):
                found = await found
        snippets = [s.strip() for s in found if s and s.strip()][:top_k]
        if not snippets:
            return f"No matching FAQ entries for '{query}'."
        return "\n\n".join(snippets)

    return search_faq
