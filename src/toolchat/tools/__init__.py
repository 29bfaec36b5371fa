"""Built-in tools for a page assistant.

Tools are closures over a `SessionContext`, so `build_registry` is called
again whenever the context changes (see `ChatSession.update_context`).
"""

from .context import NavigateFn, PageContext, SessionContext, build_registry
from .faq import SearchCollaborator, faq_tool
from .navigation import navigation_tool, resolve_route
from .page import page_context_tool

__all__ = [
    "NavigateFn",
    "PageContext",
    "SearchCollaborator",
    "SessionContext",
    "build_registry",
    "faq_tool",
    "navigation_tool",
    "page_context_tool",
    "resolve_route",
]
