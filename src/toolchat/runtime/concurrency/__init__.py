"""Concurrency primitives for the chat loop.

Key Components:
    - gather_settled: join-all wait used for one round of tool calls
    - CancelToken: cooperative cancellation checked at each state transition
"""

from __future__ import annotations

from .cancel import CancelToken
from .wait import Settled, SettledStatus, gather_settled

__all__ = ["CancelToken", "Settled", "SettledStatus", "gather_settled"]
