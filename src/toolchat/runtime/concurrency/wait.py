"""Wait strategies for concurrent operations.

    - gather_settled: Wait for all regardless of errors (join-all)

Example:
    >>> results = await gather_settled(fast_tool(), slow_tool())
    >>> [r.is_fulfilled for r in results]
    [True, True]
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from dataclasses import dataclass
from enum import StrEnum
from typing import Generic, TypeVar

T = TypeVar("T")


class SettledStatus(StrEnum):
    """Status of a settled operation."""
    FULFILLED = "fulfilled"
    REJECTED = "rejected"


@dataclass(slots=True, frozen=True)
class Settled(Generic[T]):
    """Result of a settled operation (success or failure).

    Similar to JavaScript's Promise.allSettled() results.

    Attributes:
        status: 'fulfilled' or 'rejected'
        value: Result value if fulfilled
        error: Exception if rejected
    """

    status: SettledStatus
    value: T | None = None
    error: BaseException | None = None

    @property
    def is_fulfilled(self) -> bool:
        return self.status == SettledStatus.FULFILLED

    @property
    def is_rejected(self) -> bool:
        return self.status == SettledStatus.REJECTED

    def unwrap(self) -> T:
        """Get value or raise stored error."""
        if self.is_rejected:
            raise self.error or RuntimeError("Rejected with no error")
        return self.value  # type: ignore[return-value]


def _fulfilled(value: T) -> Settled[T]:
    return Settled(SettledStatus.FULFILLED, value=value)


def _rejected(error: BaseException) -> Settled[T]:
    return Settled(SettledStatus.REJECTED, error=error)


async def gather_settled(*coros: Awaitable[T]) -> list[Settled[T]]:
    """Gather all results, never raising.

    Waits for every operation regardless of success or failure and returns
    status for each, in the same order as the inputs. If the gathering task
    itself is cancelled, the pending operations are cancelled too and the
    cancellation propagates.

    Args:
        *coros: Coroutines to execute

    Returns:
        List of Settled results in same order
    """
    tasks = [asyncio.ensure_future(c) for c in coros]
    try:
        results = await asyncio.gather(*tasks, return_exceptions=True)
    except asyncio.CancelledError:
        for t in tasks:
            t.cancel()
        raise

    return [_rejected(r) if isinstance(r, BaseException) else _fulfilled(r) for r in results]
