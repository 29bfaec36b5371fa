"""Page context tool."""

from __future__ import annotations

from typing import TYPE_CHECKING

from toolchat.foundation.core import BaseTool, tool

if TYPE_CHECKING:
    from .context import PageContext


def page_context_tool(page: PageContext) -> BaseTool:
    """`get_page_context` bound to one page snapshot. Rebuild the tool when the page changes."""

    @tool(
        description=(
            "Get the current page context. Often the user navigates through the page so use "
            "this tool each time the user requests information about the current page or item"
        ),
        category="context",
    )
    def get_page_context() -> str:
        return f"Current Page: {page.title}\n{page.content}"

    return get_page_context
