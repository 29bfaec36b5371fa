"""Core tool abstractions: BaseTool, ToolMetadata, and parameter types.

A tool is the capability contract the model may invoke by name: a name, a
natural-language description, an input schema, and an async ``execute``.
Tools are defined by subclassing BaseTool with a typed parameter schema, or
with the ``@tool`` decorator (see ``decorator.py``).
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, ClassVar, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..errors import ErrorCode, ToolError, ToolException


class ToolMetadata(BaseModel):
    """Metadata describing a tool's capabilities.

    Attributes:
        name: Unique identifier (snake_case, e.g., "get_page_context")
        description: What the tool does (shown to the model for selection)
        category: Grouping category (e.g., "context", "navigation", "search")
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., pattern=r"^[a-z][a-z0-9_]*$")
    description: str = Field(..., min_length=10)
    category: str = Field(default="general")


class EmptyParams(BaseModel):
    """Default parameter schema for tools with no required inputs."""
    pass


TParams = TypeVar("TParams", bound=BaseModel)


class BaseTool(ABC, Generic[TParams]):
    """Abstract base class for all tools.

    Subclasses must:
    - Define `metadata` class variable with ToolMetadata
    - Define `params_schema` class variable with the Pydantic model type
    - Implement `_run(params)` returning a string result, or override
      `_async_run(params)` for native async work

    The schema describes the arguments to the model. Arguments arriving from
    the model are untyped; ``execute`` validates them against the schema and
    a mismatch surfaces as a ToolException, which the dispatcher turns into
    an error result like any other tool failure.

    Example:
        >>> class SearchParams(BaseModel):
        ...     query: str = Field(..., description="Search query")
        ...
        >>> class SearchTool(BaseTool[SearchParams]):
        ...     metadata = ToolMetadata(
        ...         name="search_faq",
        ...         description="Search the FAQ for an answer",
        ...         category="search",
        ...     )
        ...     params_schema = SearchParams
        ...
        ...     def _run(self, params: SearchParams) -> str:
        ...         return f"Results for: {params.query}"
    """

    metadata: ClassVar[ToolMetadata]
    params_schema: ClassVar[type[BaseModel]] = EmptyParams

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def description(self) -> str:
        return self.metadata.description

    # ─────────────────────────────────────────────────────────────────
    # Schema
    # ─────────────────────────────────────────────────────────────────

    @property
    def input_schema(self) -> dict[str, Any]:
        """JSON schema of accepted arguments (property names, types, defaults, required)."""
        schema = self.params_schema.model_json_schema()
        properties = {
            name: {k: v for k, v in prop.items() if k != "title"}
            for name, prop in schema.get("properties", {}).items()
        }
        return {"type": "object", "properties": properties, "required": list(schema.get("required", []))}

    def to_chat_template(self) -> dict[str, Any]:
        """Function-calling shape accepted by HuggingFace chat templates.

        ```json
        {"type": "function", "function": {"name": ..., "description": ..., "parameters": {...}}}
        ```
        """
        return {
            "type": "function",
            "function": {
                "name": self.metadata.name,
                "description": self.metadata.description,
                "parameters": self.input_schema,
            },
        }

    # ─────────────────────────────────────────────────────────────────
    # Error Handling
    # ─────────────────────────────────────────────────────────────────

    def _error(self, message: str, code: ErrorCode = ErrorCode.UNKNOWN, *, recoverable: bool = True) -> ToolException:
        """Build a ToolException tagged with this tool's name, ready to raise."""
        return ToolException(ToolError.create(self.metadata.name, message, code, recoverable=recoverable))

    def _validate(self, arguments: Mapping[str, object]) -> TParams:
        try:
            return self.params_schema.model_validate(dict(arguments))  # type: ignore[return-value]
        except ValidationError as e:
            raise self._error(f"Invalid parameters: {e}", ErrorCode.INVALID_PARAMS) from e

    # ─────────────────────────────────────────────────────────────────
    # Core Execution
    # ─────────────────────────────────────────────────────────────────

    @abstractmethod
    def _run(self, params: TParams) -> str:
        """Execute the tool synchronously.

        Return a string result formatted for model consumption. It goes
        verbatim into the next tool turn and may itself carry an instruction
        for the model ("Tell the user ...").
        """
        ...

    async def _async_run(self, params: TParams) -> str:
        """Execute the tool asynchronously.

        Default implementation wraps `_run` in a thread. Override for
        native async implementations.
        """
        return await asyncio.to_thread(self._run, params)

    async def execute(self, arguments: Mapping[str, object] | None = None) -> str:
        """Validate untyped arguments and run the tool. May raise."""
        params = self._validate(arguments or {})
        return await self._async_run(params)

    async def __call__(self, **kwargs: object) -> str:
        """Async invoke with keyword arguments."""
        return await self.execute(kwargs)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.metadata.name!r}>"
