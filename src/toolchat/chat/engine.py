"""Inference engine interface and the model handle that owns it.

The engine is the expensive part: loading a model takes seconds to minutes
and a lot of memory. It is therefore never a module-level global. A
`ModelHandle` owns exactly one engine, created by an explicit loader the
first time `acquire()` is awaited.

Example:
    >>> handle = ModelHandle(TransformersEngine.loader(settings.model))
    >>> engine = await handle.acquire()   # loads once
    >>> engine = await handle.acquire()   # memoized
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable, Sequence
from typing import TYPE_CHECKING, Any, Protocol, TypeAlias, runtime_checkable

from toolchat.foundation.errors import EngineError
from toolchat.runtime.observability import get_logger

if TYPE_CHECKING:
    from toolchat.foundation.config import ModelSettings

    from .types import Turn

log = get_logger("toolchat.engine")

ModelInput: TypeAlias = Any
"""Engine-specific rendered prompt (token ids for transformers, a string for fakes)."""

ToolSchema: TypeAlias = dict[str, Any]
EngineLoader: TypeAlias = Callable[[], "InferenceEngine | Awaitable[InferenceEngine]"]


@runtime_checkable
class InferenceEngine(Protocol):
    """What the chat loop needs from a language model.

    `render` is cheap and synchronous. `generate` is awaited; engines that
    block (local models) must push the work off the event loop themselves.
    """

    def render(self, turns: Sequence[Turn], tools: Sequence[ToolSchema]) -> ModelInput:
        """Apply the chat template to the turns, with the generation prompt appended."""
        ...

    async def generate(self, model_input: ModelInput, max_new_tokens: int) -> str:
        """Return the continuation only, special tokens stripped."""
        ...


class ModelHandle:
    """Lazily-initialised, exclusively-owned inference engine.

    The loader runs at most once per successful load. Concurrent `acquire`
    calls wait on the same load. A failed load raises `EngineError` and leaves
    the handle unloaded so the next `acquire` retries.
    """

    __slots__ = ("_loader", "_engine", "_lock")

    def __init__(self, loader: EngineLoader) -> None:
        self._loader = loader
        self._engine: InferenceEngine | None = None
        self._lock = asyncio.Lock()

    @classmethod
    def of(cls, engine: InferenceEngine) -> ModelHandle:
        """Wrap an already-constructed engine."""
        handle = cls(lambda: engine)
        handle._engine = engine
        return handle

    @property
    def is_loaded(self) -> bool:
        return self._engine is not None

    async def acquire(self) -> InferenceEngine:
        if self._engine is not None:
            return self._engine
        async with self._lock:
            if self._engine is None:
                log.info("loading inference engine")
                try:
                    engine = self._loader()
                    if inspect.isawaitable(engine):
                        engine = await engine
                except EngineError:
                    raise
                except Exception as e:
                    raise EngineError.from_exception(e, "loading inference engine") from e
                self._engine = engine  # type: ignore[assignment]
                log.info("inference engine ready", engine=type(engine).__name__)
        return self._engine  # type: ignore[return-value]

    def release(self) -> None:
        """Drop the engine reference so the next `acquire` reloads."""
        self._engine = None


# ─────────────────────────────────────────────────────────────────────────────
# Transformers backend
# ─────────────────────────────────────────────────────────────────────────────


class TransformersEngine:
    """Local causal LM via HuggingFace transformers.

    Requires the ``engine`` extra (transformers + torch). Imports happen on
    construction, so importing this module stays cheap.
    """

    __slots__ = ("_tokenizer", "_model", "_device", "model_id")

    def __init__(self, tokenizer: Any, model: Any, device: str, model_id: str) -> None:
        self._tokenizer, self._model, self._device, self.model_id = tokenizer, model, device, model_id

    @classmethod
    def from_settings(cls, settings: ModelSettings) -> TransformersEngine:
        """Load tokenizer and weights. Blocking; call via `loader()` from async code."""
        try:
            import torch
            from transformers import AutoModelForCausalLM, AutoTokenizer
        except ImportError as e:
            raise EngineError(
                "transformers and torch are required for TransformersEngine. "
                "Install with: pip install toolchat[engine]"
            ) from e

        dtype = None if settings.dtype == "auto" else getattr(torch, settings.dtype)
        tokenizer = AutoTokenizer.from_pretrained(settings.model_id)
        model = AutoModelForCausalLM.from_pretrained(
            settings.model_id, torch_dtype=dtype or "auto"
        ).to(settings.device)
        model.eval()
        return cls(tokenizer, model, settings.device, settings.model_id)

    @classmethod
    def loader(cls, settings: ModelSettings) -> EngineLoader:
        """Loader for `ModelHandle` that loads off the event loop."""
        async def load() -> InferenceEngine:
            return await asyncio.to_thread(cls.from_settings, settings)
        return load

    def render(self, turns: Sequence[Turn], tools: Sequence[ToolSchema]) -> ModelInput:
        return self._tokenizer.apply_chat_template(
            [t.as_message() for t in turns],
            tools=list(tools) or None,
            add_generation_prompt=True,
            return_tensors="pt",
            return_dict=True,
        ).to(self._device)

    def _generate_sync(self, model_input: ModelInput, max_new_tokens: int) -> str:
        import torch

        with torch.inference_mode():
            output = self._model.generate(**model_input, max_new_tokens=max_new_tokens)
        prompt_len = model_input["input_ids"].shape[-1]
        return self._tokenizer.decode(output[0][prompt_len:], skip_special_tokens=True)

    async def generate(self, model_input: ModelInput, max_new_tokens: int) -> str:
        return await asyncio.to_thread(self._generate_sync, model_input, max_new_tokens)

    def __repr__(self) -> str:
        return f"TransformersEngine({self.model_id!r}, device={self._device!r})"
