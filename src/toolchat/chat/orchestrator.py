"""The chat loop: generate, parse, run tools, repeat until the model answers.

One `ChatSession` owns one conversation. `ask` drives a small state machine::

    AWAITING_USER_INPUT -> GENERATING -> PARSING_RESPONSE
        -> EXECUTING_TOOLS -> GENERATING ...   (model asked for tools)
        -> DONE -> AWAITING_USER_INPUT          (model answered)

Every round appends the raw assistant turn and, when tools ran, a single
tool turn holding all of that round's results. The loop stops after
``max_rounds`` generations with a fallback reply.

Example:
    >>> session = ChatSession(adapter, build_registry, context=SessionContext(page=page))
    >>> answer = await session.ask("What is this page about?")
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Sequence
from enum import StrEnum
from typing import Any, TypeAlias

from toolchat.foundation.config import ChatSettings, ToolchatSettings, get_settings
from toolchat.foundation.errors import ConversationBusyError
from toolchat.foundation.registry import ToolRegistry
from toolchat.runtime.concurrency import CancelToken
from toolchat.runtime.middleware import Middleware
from toolchat.runtime.observability import get_logger

from .adapter import ModelRequestAdapter
from .dispatcher import ToolDispatcher, join_results
from .engine import ModelHandle, TransformersEngine
from .parser import ToolCallParser
from .prompts import SYSTEM_PROMPT
from .types import Conversation, Role, Turn


class ChatState(StrEnum):
    AWAITING_USER_INPUT = "awaiting_user_input"
    GENERATING = "generating"
    PARSING_RESPONSE = "parsing_response"
    EXECUTING_TOOLS = "executing_tools"
    DONE = "done"


StateListener: TypeAlias = Callable[[ChatState], None]
RegistryFactory: TypeAlias = Callable[[Any], ToolRegistry]


class ChatSession:
    """Conversation plus the loop that answers questions in it.

    Args:
        adapter: Produces one model completion per round
        tools: A fixed `ToolRegistry`, or a factory building one from a context
        context: Initial context handed to the factory
        settings: Loop settings (defaults to `get_settings().chat`)
        system_prompt: First turn of every conversation
        dispatcher: Custom dispatcher; defaults to one over the registry
        parser: Custom tool-call parser
        middleware: Extra tool middleware for the default dispatcher

    One question at a time: `ask` while another `ask` is running raises
    `ConversationBusyError`.
    """

    def __init__(
        self,
        adapter: ModelRequestAdapter,
        tools: ToolRegistry | RegistryFactory,
        *,
        context: Any = None,
        settings: ChatSettings | None = None,
        system_prompt: str | None = None,
        dispatcher: ToolDispatcher | None = None,
        parser: ToolCallParser | None = None,
        middleware: Sequence[Middleware] = (),
    ) -> None:
        self.adapter = adapter
        self.settings = settings or get_settings().chat
        self.system_prompt = system_prompt or SYSTEM_PROMPT
        self.parser = parser or ToolCallParser()
        self.conversation = Conversation()
        self.session_id = uuid.uuid4().hex[:8]

        if isinstance(tools, ToolRegistry):
            self._factory: RegistryFactory | None = None
            registry = tools
        else:
            self._factory = tools
            registry = tools(context) if context is not None else ToolRegistry()
        self._context = context

        if dispatcher is None:
            dispatcher = ToolDispatcher(
                registry,
                timeout=self.settings.tool_timeout,
                middleware=middleware,
                tool_timeouts=self.settings.tool_timeouts,
                log_arguments=self.settings.log_tool_arguments,
            )
        elif dispatcher.registry is not registry:
            dispatcher = dispatcher.with_registry(registry)
        self._dispatcher = dispatcher

        self._state = ChatState.AWAITING_USER_INPUT
        self._listeners: list[StateListener] = []
        self._busy = False
        self._log = get_logger("toolchat.chat", session=self.session_id)

    @classmethod
    def from_settings(
        cls,
        tools: ToolRegistry | RegistryFactory,
        settings: ToolchatSettings | None = None,
        **kwargs: Any,
    ) -> ChatSession:
        """Session over a lazily-loaded local transformers model.

        Example:
            >>> session = ChatSession.from_settings(build_registry, context=ctx)
        """
        settings = settings or get_settings()
        handle = ModelHandle(TransformersEngine.loader(settings.model))
        adapter = ModelRequestAdapter(handle, max_new_tokens=settings.model.max_new_tokens)
        return cls(adapter, tools, settings=settings.chat, **kwargs)

    # ─────────────────────────────────────────────────────────────────
    # Observable state
    # ─────────────────────────────────────────────────────────────────

    @property
    def state(self) -> ChatState:
        return self._state

    @property
    def is_busy(self) -> bool:
        return self._busy

    @property
    def registry(self) -> ToolRegistry:
        return self._dispatcher.registry

    @property
    def context(self) -> Any:
        return self._context

    @property
    def turns(self) -> tuple[Turn, ...]:
        return self.conversation.turns

    def on_state(self, listener: StateListener) -> Callable[[], None]:
        """Subscribe to state changes. Returns an unsubscribe function.

        A listener that raises is logged and skipped; it never changes the
        outcome of `ask`.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    def _set_state(self, state: ChatState) -> None:
        if state is self._state:
            return
        self._state = state
        for listener in tuple(self._listeners):
            try:
                listener(state)
            except Exception:
                self._log.exception("state listener failed", state=state.value)

    def _transition(self, state: ChatState, cancel: CancelToken) -> None:
        cancel.raise_if_cancelled()
        self._set_state(state)

    # ─────────────────────────────────────────────────────────────────
    # Tools and context
    # ─────────────────────────────────────────────────────────────────

    def refresh_tools(self, registry: ToolRegistry | None = None) -> ToolRegistry:
        """Swap in a new registry, or rebuild it from the current context.

        Takes effect from the next round.
        """
        if registry is None:
            if self._factory is None:
                raise ValueError("No registry given and session has no registry factory")
            registry = self._factory(self._context)
        self._dispatcher = self._dispatcher.with_registry(registry)
        self._log.debug("tools refreshed", tools=registry.names())
        return registry

    def update_context(self, context: Any) -> ToolRegistry:
        """Replace the context (e.g. the user navigated) and rebuild tools from it."""
        if self._factory is None:
            raise ValueError("update_context requires a session built with a registry factory")
        self._context = context
        return self.refresh_tools()

    def reset(self) -> None:
        """Start a fresh conversation."""
        if self._busy:
            raise ConversationBusyError("Cannot reset while a question is being answered")
        self.conversation.reset()
        self._log.debug("conversation reset")

    # ─────────────────────────────────────────────────────────────────
    # The loop
    # ─────────────────────────────────────────────────────────────────

    async def ask(self, question: str, *, cancel: CancelToken | None = None) -> str:
        """Answer a user question, calling tools as the model requests.

        Raises:
            ValueError: Empty or whitespace-only question
            ConversationBusyError: Another question is still being answered
            ChatCancelledError: `cancel` was triggered
            EngineError: The model could not be loaded or failed to generate
        """
        if not question or not question.strip():
            raise ValueError("question must not be empty")
        if self._busy:
            raise ConversationBusyError("A question is already being answered")

        self._busy = True
        token = cancel or CancelToken()
        token.arm()
        try:
            return await self._run(question.strip(), token)
        finally:
            self._busy = False
            self._set_state(ChatState.AWAITING_USER_INPUT)

    async def _run(self, question: str, cancel: CancelToken) -> str:
        cancel.raise_if_cancelled()
        self.conversation.ensure_system(self.system_prompt)
        self.conversation.add(Role.USER, question)

        for round_no in range(1, self.settings.max_rounds + 1):
            with self._log.scope(round=round_no):
                self._transition(ChatState.GENERATING, cancel)
                self._log.debug("generating", turns=len(self.conversation))
                raw = await self.adapter.complete(self.conversation, self.registry.to_chat_template())
                self.conversation.add(Role.ASSISTANT, raw)

                # a final answer already in the conversation is returned even if cancelled
                self._set_state(ChatState.PARSING_RESPONSE)
                parsed = self.parser.parse(raw)
                if not parsed.tool_calls:
                    self._set_state(ChatState.DONE)
                    self._log.info("answered", rounds=round_no)
                    return parsed.message

                self._transition(ChatState.EXECUTING_TOOLS, cancel)
                self._log.info("executing tools", tools=[c.name for c in parsed.tool_calls])
                results = await self._dispatcher.dispatch(parsed.tool_calls)
                self.conversation.add(Role.TOOL, join_results(results, self.settings.tool_separator))

        self._log.warning("round limit reached", max_rounds=self.settings.max_rounds)
        fallback = self.settings.round_limit_message
        self.conversation.add(Role.ASSISTANT, fallback)
        self._set_state(ChatState.DONE)
        return fallback

    def __repr__(self) -> str:
        return f"ChatSession(session={self.session_id!r}, turns={len(self.conversation)}, state={self._state.value!r})"
