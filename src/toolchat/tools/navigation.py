"""Navigation tool: lets the model move the user to another page."""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Mapping
from typing import TYPE_CHECKING

from toolchat.foundation.core import BaseTool, tool
from toolchat.foundation.errors import ErrorCode, ToolException

if TYPE_CHECKING:
    from .context import NavigateFn


def resolve_route(routes: Mapping[str, str], page: str) -> str | None:
    """Route path for a page name; matches names case-insensitively, or a known path directly."""
    wanted = page.strip()
    if wanted in routes:
        return routes[wanted]
    lowered = wanted.casefold()
    for name, path in routes.items():
        if name.casefold() == lowered or path == wanted:
            return path
    return None


def navigation_tool(navigate: NavigateFn, routes: Mapping[str, str]) -> BaseTool:
    """`navigate_to_page` over a fixed set of named routes."""
    known = ", ".join(routes) or "none"

    @tool(
        description=f"Navigate the user to another page of the site. Known pages: {known}",
        category="navigation",
    )
    async def navigate_to_page(page: str) -> str:
        """Navigate to a page.

        Args:
            page: Name of the page to open
        """
        path = resolve_route(routes, page)
        if path is None:
            raise ToolException.create(
                "navigate_to_page",
                f"Unknown page '{page}'. Known pages: {known}",
                ErrorCode.NOT_FOUND,
            )
        if inspect.iscoroutinefunction(navigate):
            await navigate(path)
        else:
            outcome = await asyncio.to_thread(navigate, path)
            if inspect.isawaitable(outcome):
                await outcome
        return f"Tell the user you navigated to {page}."

    return navigate_to_page
