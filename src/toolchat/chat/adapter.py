"""Turn the conversation into one model completion."""

from __future__ import annotations

import time
from collections.abc import Sequence
from typing import TYPE_CHECKING

from toolchat.foundation.errors import EngineError
from toolchat.runtime.observability import get_logger

from .engine import ModelHandle, ToolSchema

if TYPE_CHECKING:
    from .types import Conversation

log = get_logger("toolchat.adapter")


class ModelRequestAdapter:
    """Render the conversation with the engine's chat template and generate.

    Reads the conversation, never mutates it. Everything the engine raises is
    re-raised as `EngineError` with the original exception chained.

    Example:
        >>> adapter = ModelRequestAdapter(handle, max_new_tokens=512)
        >>> text = await adapter.complete(conversation, registry.to_chat_template())
    """

    __slots__ = ("handle", "max_new_tokens")

    def __init__(self, handle: ModelHandle, max_new_tokens: int = 1000) -> None:
        if max_new_tokens < 1:
            raise ValueError(f"max_new_tokens must be positive, got {max_new_tokens}")
        self.handle = handle
        self.max_new_tokens = max_new_tokens

    async def complete(self, conversation: Conversation, tools: Sequence[ToolSchema] = ()) -> str:
        engine = await self.handle.acquire()
        start = time.perf_counter()
        try:
            model_input = engine.render(conversation.turns, tools)
            text = await engine.generate(model_input, self.max_new_tokens)
        except EngineError:
            raise
        except Exception as e:
            raise EngineError.from_exception(e, "generation failed") from e

        text = text.strip()
        log.debug(
            "completion",
            turns=len(conversation),
            tools=len(tools),
            chars=len(text),
            duration_ms=round((time.perf_counter() - start) * 1000, 1),
        )
        return text
