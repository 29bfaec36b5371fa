"""Middleware pipeline wrapped around every tool call.

Middleware is applied in order: first = outermost (runs first).
"""

from .middleware import Context, Middleware, Next, compose
from .plugins import LoggingMiddleware, TimeoutMiddleware

__all__ = ["Context", "LoggingMiddleware", "Middleware", "Next", "TimeoutMiddleware", "compose"]
