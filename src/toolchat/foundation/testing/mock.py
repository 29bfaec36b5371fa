"""Test doubles for the chat loop.

Provides:
- MockTool: a registrable tool with a controlled response and invocation recording
- ScriptedEngine: an inference engine that replays canned model outputs
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict

from toolchat.foundation.core import BaseTool, ToolMetadata
from toolchat.foundation.errors import JsonDict

if TYPE_CHECKING:
    from toolchat.chat.types import Turn


class _AnyParams(BaseModel):
    model_config = ConfigDict(extra="allow")


@dataclass(slots=True)
class Invocation:
    """Record of a single tool invocation."""
    params: JsonDict
    result: str | None = None
    exception: Exception | None = None


class MockTool(BaseTool[BaseModel]):
    """Tool with a controlled response that records every call.

    Accepts any arguments unless a `params_schema` is given.

    Example:
        >>> weather = MockTool("get_weather", return_value="Sunny")
        >>> registry = ToolRegistry([weather])
        >>> # ... run a session ...
        >>> weather.assert_called_with(city="Paris")
    """

    def __init__(
        self,
        name: str = "mock_tool",
        *,
        return_value: str = "mock result",
        raises: type[Exception] | Exception | None = None,
        side_effect: Callable[[JsonDict], str] | None = None,
        delay: float = 0.0,
        description: str | None = None,
        params_schema: type[BaseModel] = _AnyParams,
    ) -> None:
        self.metadata = ToolMetadata(name=name, description=description or f"Mock tool {name} for testing")  # type: ignore[misc]
        self.params_schema = params_schema  # type: ignore[misc]
        self.return_value = return_value
        self.raises = raises
        self.side_effect = side_effect
        self.delay = delay
        self.invocations: list[Invocation] = []

    @property
    def call_count(self) -> int:
        return len(self.invocations)

    @property
    def called(self) -> bool:
        return self.call_count > 0

    @property
    def last_call(self) -> Invocation | None:
        return self.invocations[-1] if self.invocations else None

    def assert_called(self) -> None:
        if not self.called:
            raise AssertionError("Expected tool to be called")

    def assert_not_called(self) -> None:
        if self.called:
            raise AssertionError(f"Tool called {self.call_count} times")

    def assert_called_with(self, **kwargs: object) -> None:
        if not self.called:
            raise AssertionError("Expected tool to be called")
        last = self.last_call
        assert last is not None
        for key, expected in kwargs.items():
            if key not in last.params:
                raise AssertionError(f"Parameter '{key}' not in call")
            if last.params[key] != expected:
                raise AssertionError(f"'{key}': expected {expected!r}, got {last.params[key]!r}")

    def _respond(self, params: JsonDict) -> str:
        invocation = Invocation(params=params)
        self.invocations.append(invocation)
        try:
            if self.raises is not None:
                raise self.raises() if isinstance(self.raises, type) else self.raises
            result = self.side_effect(params) if self.side_effect is not None else self.return_value
        except Exception as e:
            invocation.exception = e
            raise
        invocation.result = result
        return result

    def _run(self, params: BaseModel) -> str:
        return self._respond(params.model_dump())

    async def _async_run(self, params: BaseModel) -> str:
        if self.delay:
            await asyncio.sleep(self.delay)
        return self._respond(params.model_dump())


@dataclass
class ScriptedEngine:
    """Inference engine replaying canned outputs, one per `generate` call.

    An output may be an exception instance, which `generate` raises instead.
    Running past the end of the script raises `AssertionError`. Rendered
    inputs are recorded for inspection.

    Example:
        >>> engine = ScriptedEngine([
        ...     '<tool_call>{"name": "get_page_context", "arguments": {}}</tool_call>',
        ...     "This page is about pricing.",
        ... ])
        >>> adapter = ModelRequestAdapter(ModelHandle.of(engine))
    """

    outputs: list[str | BaseException] = field(default_factory=list)
    delay: float = 0.0
    renders: list[tuple[tuple[Turn, ...], list[dict[str, Any]]]] = field(default_factory=list)
    max_new_tokens_seen: list[int] = field(default_factory=list)

    def __post_init__(self) -> None:
        self._queue: list[str | BaseException] = list(self.outputs)

    def extend(self, outputs: Iterable[str | BaseException]) -> None:
        self._queue.extend(outputs)

    @property
    def remaining(self) -> int:
        return len(self._queue)

    @property
    def calls(self) -> int:
        return len(self.max_new_tokens_seen)

    def render(self, turns: Sequence[Turn], tools: Sequence[dict[str, Any]]) -> tuple[Turn, ...]:
        snapshot = tuple(turns)
        self.renders.append((snapshot, list(tools)))
        return snapshot

    async def generate(self, model_input: Any, max_new_tokens: int) -> str:
        self.max_new_tokens_seen.append(max_new_tokens)
        if self.delay:
            await asyncio.sleep(self.delay)
        if not self._queue:
            raise AssertionError("ScriptedEngine ran out of outputs")
        output = self._queue.pop(0)
        if isinstance(output, BaseException):
            raise output
        return output
