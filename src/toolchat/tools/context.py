"""Session context and the registry factory built from it."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from toolchat.foundation.registry import ToolRegistry

if TYPE_CHECKING:
    from .faq import SearchCollaborator

NavigateFn = Callable[[str], "None | Awaitable[None]"]


@dataclass(frozen=True, slots=True)
class PageContext:
    """What the user is currently looking at."""

    title: str
    content: str = ""


@dataclass(frozen=True, slots=True)
class SessionContext:
    """Everything tools may capture for one conversation.

    Attributes:
        page: Current page snapshot
        navigate: Called with a route path to move the user; enables `navigate_to_page`
        search: FAQ search collaborator; enables `search_faq`
        routes: Page name -> route path, the pages `navigate_to_page` may open
    """

    page: PageContext
    navigate: NavigateFn | None = None
    search: SearchCollaborator | None = None
    routes: Mapping[str, str] = field(default_factory=dict)

    def with_page(self, page: PageContext) -> SessionContext:
        return SessionContext(page=page, navigate=self.navigate, search=self.search, routes=self.routes)


def build_registry(context: SessionContext) -> ToolRegistry:
    """Build the tool set for a context.

    Always includes `get_page_context`; adds `navigate_to_page` when a
    navigation function is present and `search_faq` when a search
    collaborator is present.

    Example:
        >>> registry = build_registry(SessionContext(page=PageContext("Pricing", "Plans...")))
        >>> registry.names()
        ['get_page_context']
    """
    from .faq import faq_tool
    from .navigation import navigation_tool
    from .page import page_context_tool

    registry = ToolRegistry([page_context_tool(context.page)])
    if context.navigate is not None:
        registry.register(navigation_tool(context.navigate, context.routes))
    if context.search is not None:
        registry.register(faq_tool(context.search))
    return registry
