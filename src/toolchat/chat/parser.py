"""Tool-call parser: split raw model output into prose and tool calls.

The model is told (system prompt + chat template) to embed each call in a
tagged JSON block. The grammar is explicit and versioned so a prompt change
cannot silently break parsing:

``v1`` (default)::

    <tool_call>{"name": "get_page_context", "arguments": {}}</tool_call>

``granite-3`` (what Granite chat templates produce; runs to end of text)::

    <|tool_call|>[{"name": "get_page_context", "arguments": {}}]

Block payload: one object ``{"name": str, "arguments": object}`` or an array
of them. ``parameters`` and ``args`` are accepted for ``arguments``, and
``arguments`` may be a JSON-encoded string. A block, or an array item, that does not decode to
that shape is dropped together with its text.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, TypeAlias

import orjson

from toolchat.runtime.observability import get_logger

from .types import ToolCallRequest

log = get_logger("toolchat.parser")


@dataclass(frozen=True, slots=True)
class ToolCallGrammar:
    """Markers delimiting an embedded tool-call block.

    Attributes:
        version: Grammar identifier, logged with parse failures
        open_tag: Marker opening a block
        close_tag: Marker closing a block; None means the block runs to end of text
    """

    version: str
    open_tag: str
    close_tag: str | None = None


GRAMMAR_V1 = ToolCallGrammar("v1", "<tool_call>", "</tool_call>")
GRANITE_GRAMMAR = ToolCallGrammar("granite-3", "<|tool_call|>", None)
DEFAULT_GRAMMARS: tuple[ToolCallGrammar, ...] = (GRAMMAR_V1, GRANITE_GRAMMAR)


# ─────────────────────────────────────────────────────────────────────────────
# Fragments
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class PlainText:
    text: str


@dataclass(frozen=True, slots=True)
class ToolCall:
    request: ToolCallRequest


Fragment: TypeAlias = PlainText | ToolCall


@dataclass(frozen=True, slots=True)
class ParsedResponse:
    """Human-facing remainder plus the tool calls found, in order."""

    message: str
    tool_calls: list[ToolCallRequest] = field(default_factory=list)

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)


# ─────────────────────────────────────────────────────────────────────────────
# Payload decoding
# ─────────────────────────────────────────────────────────────────────────────

_FENCE = re.compile(r"^```[a-zA-Z]*\s*|\s*```$")


class _Malformed(ValueError):
    pass


def _decode_arguments(raw: Any) -> dict[str, Any]:
    if raw is None:
        return {}
    if isinstance(raw, str):
        raw = orjson.loads(raw) if raw.strip() else {}
    if not isinstance(raw, dict):
        raise _Malformed(f"arguments must be an object, got {type(raw).__name__}")
    return raw


_ARGUMENT_KEYS = ("arguments", "parameters", "args")


def _decode_call(item: Any) -> ToolCallRequest:
    if not isinstance(item, dict):
        raise _Malformed(f"call must be an object, got {type(item).__name__}")
    name = item.get("name")
    if not isinstance(name, str) or not name.strip():
        raise _Malformed("call is missing a tool name")
    raw_args = next((item[key] for key in _ARGUMENT_KEYS if key in item), None)
    return ToolCallRequest(name=name.strip(), arguments=_decode_arguments(raw_args))


def decode_block(payload: str) -> list[ToolCallRequest]:
    """Decode one block payload into tool calls.

    Raises:
        ValueError: If the payload is not JSON or has the wrong top-level shape
    """
    body = _FENCE.sub("", payload.strip())
    data = orjson.loads(body)
    if isinstance(data, dict):
        return [_decode_call(data)]
    if not isinstance(data, list):
        raise _Malformed(f"block must be an object or array, got {type(data).__name__}")

    calls: list[ToolCallRequest] = []
    for index, item in enumerate(data):
        try:
            calls.append(_decode_call(item))
        except ValueError as e:
            log.debug("dropped tool call item", index=index, reason=str(e))
    return calls


# ─────────────────────────────────────────────────────────────────────────────
# Parser
# ─────────────────────────────────────────────────────────────────────────────


class ToolCallParser:
    """Scan model output for tool-call blocks.

    Never raises on model text: undecodable blocks are dropped.

    Example:
        >>> parsed = ToolCallParser().parse(
        ...     'Let me look. <tool_call>{"name": "get_page_context", "arguments": {}}</tool_call>'
        ... )
        >>> parsed.message, [c.name for c in parsed.tool_calls]
        ('Let me look.', ['get_page_context'])
    """

    __slots__ = ("grammars",)

    def __init__(self, grammars: Sequence[ToolCallGrammar] = DEFAULT_GRAMMARS) -> None:
        if not grammars:
            raise ValueError("ToolCallParser needs at least one grammar")
        self.grammars = tuple(grammars)

    def _next_open(self, text: str, pos: int) -> tuple[int, ToolCallGrammar] | None:
        found = [(i, g) for g in self.grammars if (i := text.find(g.open_tag, pos)) != -1]
        return min(found, key=lambda f: f[0]) if found else None

    def scan(self, text: str) -> list[Fragment]:
        """Split text into plain and tool-call fragments in order of appearance."""
        fragments: list[Fragment] = []
        pos = 0
        while (hit := self._next_open(text, pos)) is not None:
            start, grammar = hit
            if start > pos:
                fragments.append(PlainText(text[pos:start]))

            body_start = start + len(grammar.open_tag)
            end = text.find(grammar.close_tag, body_start) if grammar.close_tag else -1
            if end == -1:
                body, pos = text[body_start:], len(text)
            else:
                body, pos = text[body_start:end], end + len(grammar.close_tag)  # type: ignore[arg-type]

            try:
                fragments.extend(ToolCall(call) for call in decode_block(body))
            except ValueError as e:
                log.debug("dropped tool call block", grammar=grammar.version, reason=str(e))

        if pos < len(text):
            fragments.append(PlainText(text[pos:]))
        return fragments

    def parse(self, text: str) -> ParsedResponse:
        """Return the trimmed prose remainder and the tool calls, in order."""
        fragments = self.scan(text)
        message = "".join(f.text for f in fragments if isinstance(f, PlainText)).strip()
        calls = [f.request for f in fragments if isinstance(f, ToolCall)]
        return ParsedResponse(message=message, tool_calls=calls)
