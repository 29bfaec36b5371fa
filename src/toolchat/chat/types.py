"""Conversation data model: turns, the append-only conversation, tool calls."""

from __future__ import annotations

from collections.abc import Iterator
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from toolchat.foundation.errors import ErrorCode


class Role(StrEnum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class Turn(BaseModel):
    """One role-tagged message. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    role: Role
    content: str

    def as_message(self) -> dict[str, str]:
        return {"role": self.role.value, "content": self.content}


class ToolCallRequest(BaseModel):
    """A tool invocation parsed from model output.

    `arguments` is whatever the model wrote; it is not checked against the
    tool's schema here.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)


class ToolCallResult(BaseModel):
    """Outcome of one tool call: success text or model-facing error text."""

    model_config = ConfigDict(frozen=True)

    name: str
    ok: bool
    content: str
    code: ErrorCode | None = None

    def to_turn(self) -> Turn:
        return Turn(role=Role.TOOL, content=self.content)


class Conversation:
    """Ordered, append-only sequence of turns owned by one chat session.

    The first turn, when present, is the system turn, inserted once through
    `ensure_system`. Turns are never mutated or removed; `reset` is the only
    way to clear them.
    """

    __slots__ = ("_turns",)

    def __init__(self) -> None:
        self._turns: list[Turn] = []

    def ensure_system(self, prompt: str) -> bool:
        """Insert the system turn if the conversation is empty. Returns True if inserted."""
        if self._turns:
            return False
        self._turns.append(Turn(role=Role.SYSTEM, content=prompt))
        return True

    def append(self, turn: Turn) -> Turn:
        if turn.role is Role.SYSTEM:
            raise ValueError("System turn can only be inserted at conversation start")
        self._turns.append(turn)
        return turn

    def add(self, role: Role | str, content: str) -> Turn:
        return self.append(Turn(role=Role(role), content=content))

    def reset(self) -> None:
        self._turns.clear()

    @property
    def turns(self) -> tuple[Turn, ...]:
        return tuple(self._turns)

    @property
    def last(self) -> Turn | None:
        return self._turns[-1] if self._turns else None

    def as_messages(self) -> list[dict[str, str]]:
        """Turns as plain role/content dicts, the shape chat templates take."""
        return [t.as_message() for t in self._turns]

    def __len__(self) -> int:
        return len(self._turns)

    def __iter__(self) -> Iterator[Turn]:
        return iter(tuple(self._turns))

    def __getitem__(self, index: int) -> Turn:
        return self._turns[index]

    def __repr__(self) -> str:
        return f"Conversation({[t.role.value for t in self._turns]!r})"
