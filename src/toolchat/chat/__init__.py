"""Chat loop: conversation model, engine access, tool-call parsing, dispatch, orchestration."""

from .adapter import ModelRequestAdapter
from .dispatcher import ToolDispatcher, join_results
from .engine import InferenceEngine, ModelHandle, ModelInput, TransformersEngine
from .orchestrator import ChatSession, ChatState
from .parser import (
    DEFAULT_GRAMMARS,
    GRAMMAR_V1,
    GRANITE_GRAMMAR,
    Fragment,
    ParsedResponse,
    PlainText,
    ToolCall,
    ToolCallGrammar,
    ToolCallParser,
)
from .prompts import SYSTEM_PROMPT
from .types import Conversation, Role, ToolCallRequest, ToolCallResult, Turn

__all__ = [
    # Conversation
    "Conversation", "Role", "Turn", "ToolCallRequest", "ToolCallResult", "SYSTEM_PROMPT",
    # Engine
    "InferenceEngine", "ModelHandle", "ModelInput", "TransformersEngine", "ModelRequestAdapter",
    # Parsing
    "ToolCallGrammar", "GRAMMAR_V1", "GRANITE_GRAMMAR", "DEFAULT_GRAMMARS",
    "ToolCallParser", "ParsedResponse", "Fragment", "PlainText", "ToolCall",
    # Dispatch and loop
    "ToolDispatcher", "join_results", "ChatSession", "ChatState",
]
