"""Tests for concurrent tool dispatch and the middleware chain."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Mapping

import pytest

from toolchat.chat.dispatcher import ToolDispatcher, join_results
from toolchat.chat.types import Role, ToolCallRequest, ToolCallResult
from toolchat.foundation.core import BaseTool
from toolchat.foundation.errors import ErrorCode, ToolException
from toolchat.foundation.registry import ToolRegistry
from toolchat.foundation.testing import MockTool
from toolchat.runtime.concurrency import gather_settled
from toolchat.runtime.middleware import Context, Next
from toolchat.tools import faq_tool, navigation_tool


def _req(name: str, **arguments: object) -> ToolCallRequest:
    return ToolCallRequest(name=name, arguments=arguments)


@pytest.mark.asyncio
async def test_one_result_per_request_in_order() -> None:
    alpha, beta = MockTool("alpha", return_value="A"), MockTool("beta", return_value="B")
    dispatcher = ToolDispatcher(ToolRegistry([alpha, beta]))

    results = await dispatcher.dispatch([_req("beta"), _req("missing_tool"), _req("alpha", x=1)])

    assert [r.name for r in results] == ["beta", "missing_tool", "alpha"]
    assert [r.ok for r in results] == [True, False, True]
    assert results[0].content == "B" and results[2].content == "A"
    alpha.assert_called_with(x=1)


@pytest.mark.asyncio
async def test_unknown_tool_lists_available() -> None:
    dispatcher = ToolDispatcher(ToolRegistry([MockTool("alpha")]))
    [result] = await dispatcher.dispatch([_req("nope")])
    assert result.code == ErrorCode.NOT_FOUND
    assert "Unknown tool 'nope'" in result.content
    assert "alpha" in result.content
    assert result.content.startswith("**Tool Error (nope):**")


@pytest.mark.asyncio
async def test_empty_round() -> None:
    assert await ToolDispatcher(ToolRegistry()).dispatch([]) == []


@pytest.mark.asyncio
async def test_failures_become_error_results() -> None:
    registry = ToolRegistry([
        MockTool("boom", raises=RuntimeError("database unreachable")),
        MockTool("refuse", raises=ToolException.create("refuse", "not allowed", ErrorCode.PERMISSION_DENIED)),
        MockTool("fine", return_value="ok"),
    ])
    results = await ToolDispatcher(registry).dispatch([_req("boom"), _req("refuse"), _req("fine")])

    boom, refuse, fine = results
    assert not boom.ok and "database unreachable" in boom.content
    assert not refuse.ok and refuse.code == ErrorCode.PERMISSION_DENIED
    assert "not allowed" in refuse.content
    assert fine.ok and fine.content == "ok"


@pytest.mark.asyncio
async def test_invalid_arguments_become_error_result() -> None:
    from pydantic import BaseModel

    class Needs(BaseModel):
        query: str

    tool = MockTool("strict", params_schema=Needs)
    [result] = await ToolDispatcher(ToolRegistry([tool])).dispatch([_req("strict", wrong=1)])
    assert result.code == ErrorCode.INVALID_PARAMS
    tool.assert_not_called()


@pytest.mark.asyncio
async def test_slow_and_fast_tools_run_concurrently() -> None:
    slow = MockTool("slow", return_value="slow done", delay=0.2)
    fast = MockTool("fast", return_value="fast done", delay=0.2)
    dispatcher = ToolDispatcher(ToolRegistry([slow, fast]))

    start = time.perf_counter()
    results = await dispatcher.dispatch([_req("slow"), _req("fast")])
    elapsed = time.perf_counter() - start

    assert [r.content for r in results] == ["slow done", "fast done"]
    assert elapsed < 0.35


@pytest.mark.asyncio
async def test_timeout_becomes_error_result() -> None:
    registry = ToolRegistry([MockTool("hang", delay=5.0), MockTool("quick", return_value="done")])
    dispatcher = ToolDispatcher(registry, timeout=0.05)

    hang, quick = await dispatcher.dispatch([_req("hang"), _req("quick")])

    assert hang.code == ErrorCode.TIMEOUT and not hang.ok
    assert "timed out" in hang.content
    assert quick.ok


def test_timeout_must_be_positive() -> None:
    with pytest.raises(ValueError):
        ToolDispatcher(ToolRegistry(), timeout=0)


@pytest.mark.asyncio
async def test_user_middleware_runs_inside_chain() -> None:
    seen: list[str] = []

    class Recorder:
        async def __call__(self, tool: BaseTool, arguments: Mapping[str, object], ctx: Context, next: Next) -> str:
            seen.append(tool.name)
            assert "timeout_configured" in ctx
            return (await next(tool, arguments, ctx)).upper()

    dispatcher = ToolDispatcher(ToolRegistry([MockTool("echo", return_value="hi")]), middleware=[Recorder()])
    [result] = await dispatcher.dispatch([_req("echo")])
    assert seen == ["echo"]
    assert result.content == "HI"


@pytest.mark.asyncio
async def test_with_registry_keeps_settings() -> None:
    dispatcher = ToolDispatcher(ToolRegistry([MockTool("old_tool")]), timeout=3.0)
    swapped = dispatcher.with_registry(ToolRegistry([MockTool("new_tool", return_value="new")]))
    assert swapped.timeout == 3.0
    [result] = await swapped.dispatch([_req("new_tool")])
    assert result.content == "new"
    assert dispatcher.registry.names() == ["old_tool"]


def test_join_results_policy() -> None:
    results = [
        ToolCallResult(name="a", ok=True, content="first"),
        ToolCallResult(name="b", ok=False, content="second", code=ErrorCode.TIMEOUT),
    ]
    assert join_results(results) == "first\n\nsecond"
    assert join_results(results, separator="\n---\n") == "first\n---\nsecond"
    assert results[0].to_turn().role is Role.TOOL


@pytest.mark.asyncio
async def test_gather_settled_cancels_pending_when_cancelled() -> None:
    started = asyncio.Event()
    cancelled = asyncio.Event()

    async def forever() -> str:
        started.set()
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            cancelled.set()
            raise
        return "never"

    task = asyncio.create_task(gather_settled(forever()))
    await started.wait()
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    await asyncio.wait_for(cancelled.wait(), timeout=1.0)


# ─────────────────────────────────────────────────────────────────────────────
# Timeouts and blocking collaborators
# ─────────────────────────────────────────────────────────────────────────────


class BlockingSearch:
    def __init__(self, seconds: float) -> None:
        self.seconds = seconds

    def find(self, query: str) -> list[str]:
        time.sleep(self.seconds)
        return [f"answer for {query}"]


@pytest.mark.asyncio
async def test_blocking_search_times_out_without_stalling_round() -> None:
    registry = ToolRegistry([faq_tool(BlockingSearch(0.5)), MockTool("quick", return_value="done", delay=0.05)])
    dispatcher = ToolDispatcher(registry, timeout=0.15)

    start = time.perf_counter()
    search, quick = await dispatcher.dispatch([_req("search_faq", query="refunds"), _req("quick")])
    elapsed = time.perf_counter() - start

    assert search.code == ErrorCode.TIMEOUT
    assert quick.ok and quick.content == "done"
    assert elapsed < 0.4


@pytest.mark.asyncio
async def test_blocking_navigation_runs_off_the_loop() -> None:
    visited: list[str] = []

    def navigate(path: str) -> None:
        time.sleep(0.2)
        visited.append(path)

    registry = ToolRegistry([navigation_tool(navigate, {"Contact": "/contact"}), MockTool("quick", delay=0.01)])
    ticks = 0

    async def ticker() -> None:
        nonlocal ticks
        while True:
            await asyncio.sleep(0.01)
            ticks += 1

    task = asyncio.create_task(ticker())
    try:
        nav, _ = await ToolDispatcher(registry).dispatch([_req("navigate_to_page", page="Contact"), _req("quick")])
    finally:
        task.cancel()

    assert nav.ok and visited == ["/contact"]
    assert ticks >= 5


@pytest.mark.asyncio
async def test_per_tool_timeout_override() -> None:
    registry = ToolRegistry([MockTool("slow_search", return_value="found", delay=0.2), MockTool("hang", delay=0.2)])
    dispatcher = ToolDispatcher(registry, timeout=0.05, tool_timeouts={"slow_search": 1.0})

    slow_search, hang = await dispatcher.dispatch([_req("slow_search"), _req("hang")])

    assert slow_search.ok and slow_search.content == "found"
    assert hang.code == ErrorCode.TIMEOUT


def test_per_tool_timeout_must_be_positive() -> None:
    with pytest.raises(ValueError, match="slow_search"):
        ToolDispatcher(ToolRegistry(), tool_timeouts={"slow_search": 0})


@pytest.mark.asyncio
async def test_log_arguments_and_timeout_trace(caplog: pytest.LogCaptureFixture) -> None:
    registry = ToolRegistry([MockTool("echo", return_value="hi"), MockTool("hang", delay=1.0)])
    dispatcher = ToolDispatcher(registry, timeout=0.05, log_arguments=True)

    with caplog.at_level(logging.INFO, logger="toolchat.middleware"):
        await dispatcher.dispatch([_req("echo", text="secret"), _req("hang")])

    messages = [r.getMessage() for r in caplog.records]
    assert "[echo] Starting arguments={'text': 'secret'}" in messages
    [failure] = [m for m in messages if m.startswith("[hang] FAILED")]
    assert "Execution timed out after 0.05s [TIMEOUT]" in failure
    assert "middleware:timeout (tool=hang, timeout=0.05)" in failure


@pytest.mark.asyncio
async def test_arguments_not_logged_by_default(caplog: pytest.LogCaptureFixture) -> None:
    dispatcher = ToolDispatcher(ToolRegistry([MockTool("echo")]))
    with caplog.at_level(logging.INFO, logger="toolchat.middleware"):
        await dispatcher.dispatch([_req("echo", text="secret")])
    assert "secret" not in caplog.text
