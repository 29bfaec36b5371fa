"""Built-in middleware plugins."""

from .logging import LoggingMiddleware
from .timeout import TimeoutMiddleware

__all__ = ["LoggingMiddleware", "TimeoutMiddleware"]
