"""Cooperative cancellation for the chat loop.

A CancelToken is handed to ``ChatSession.ask``; the loop checks it at the
start of every state transition. Cancelling never interrupts an in-flight
model call or tool round, it stops the loop at the next transition.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from toolchat.foundation.errors import ChatCancelledError


@dataclass(slots=True)
class CancelToken:
    """Cancellation request shared between a caller and one running loop.

    Supports an optional timeout, after which the token cancels itself.

    Example:
        >>> token = CancelToken()
        >>> task = asyncio.create_task(session.ask("hi", cancel=token))
        >>> token.cancel("user closed the widget")
    """

    timeout: float | None = None
    _event: asyncio.Event = field(default_factory=asyncio.Event, repr=False)
    _reason: str | None = field(default=None, repr=False)
    _timer: asyncio.TimerHandle | None = field(default=None, repr=False)

    @property
    def cancel_called(self) -> bool:
        """Whether cancellation was requested."""
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        return self._reason

    def cancel(self, reason: str | None = None) -> None:
        """Request cancellation. Idempotent; the first reason wins."""
        if not self._event.is_set():
            self._reason = reason
            self._event.set()
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def arm(self) -> None:
        """Start the timeout clock, if configured. Needs a running loop."""
        if self.timeout is not None and self._timer is None and not self.cancel_called:
            loop = asyncio.get_running_loop()
            self._timer = loop.call_later(self.timeout, self.cancel, f"timed out after {self.timeout}s")

    def raise_if_cancelled(self) -> None:
        """Checkpoint: raise ChatCancelledError if cancellation was requested."""
        if self._event.is_set():
            raise ChatCancelledError(self._reason or "cancelled")

    async def wait(self) -> None:
        """Block until cancellation is requested."""
        await self._event.wait()
