"""Tests for tool definitions, the @tool decorator and the registry."""

from __future__ import annotations

import pytest
from pydantic import BaseModel, Field, ValidationError

from toolchat.foundation.core import BaseTool, FunctionTool, ToolMetadata, tool
from toolchat.foundation.errors import ErrorCode, ToolException
from toolchat.foundation.registry import ToolRegistry


class LookupParams(BaseModel):
    sku: str = Field(..., description="Product SKU")
    quantity: int = Field(default=1, ge=1, description="Units wanted")


class StockTool(BaseTool[LookupParams]):
    metadata = ToolMetadata(name="check_stock", description="Check stock for a product", category="shop")
    params_schema = LookupParams

    def _run(self, params: LookupParams) -> str:
        return f"{params.quantity} x {params.sku}: in stock"


# ─────────────────────────────────────────────────────────────────────────────
# Metadata
# ─────────────────────────────────────────────────────────────────────────────


@pytest.mark.parametrize("name", ["Bad", "1tool", "has-dash", ""])
def test_metadata_rejects_bad_names(name: str) -> None:
    with pytest.raises(ValidationError):
        ToolMetadata(name=name, description="A long enough description")


def test_metadata_requires_description() -> None:
    with pytest.raises(ValidationError):
        ToolMetadata(name="short", description="too short")


# ─────────────────────────────────────────────────────────────────────────────
# BaseTool
# ─────────────────────────────────────────────────────────────────────────────


def test_input_schema_is_cleaned() -> None:
    schema = StockTool().input_schema
    assert schema["type"] == "object"
    assert schema["required"] == ["sku"]
    assert schema["properties"]["sku"] == {"type": "string", "description": "Product SKU"}
    assert "title" not in schema["properties"]["quantity"]


def test_chat_template_shape() -> None:
    entry = StockTool().to_chat_template()
    assert entry["type"] == "function"
    assert entry["function"]["name"] == "check_stock"
    assert entry["function"]["description"] == "Check stock for a product"
    assert entry["function"]["parameters"]["required"] == ["sku"]


@pytest.mark.asyncio
async def test_execute_validates_arguments() -> None:
    stock = StockTool()
    assert await stock.execute({"sku": "A-1", "quantity": 2}) == "2 x A-1: in stock"
    assert await stock(sku="B-2") == "1 x B-2: in stock"

    with pytest.raises(ToolException) as exc_info:
        await stock.execute({"quantity": 0})
    assert exc_info.value.error.code == ErrorCode.INVALID_PARAMS
    assert exc_info.value.error.tool_name == "check_stock"


# ─────────────────────────────────────────────────────────────────────────────
# @tool
# ─────────────────────────────────────────────────────────────────────────────


def test_decorator_builds_schema_from_signature() -> None:
    @tool(category="search")
    def search_docs(query: str, limit: int = 5) -> str:
        """Search the documentation.

        Args:
            query: What to look for
            limit: Max results to return
        """
        return f"{limit} results for {query}"

    assert isinstance(search_docs, FunctionTool)
    assert search_docs.metadata.name == "search_docs"
    assert search_docs.metadata.description == "Search the documentation."
    assert search_docs.metadata.category == "search"
    props = search_docs.input_schema["properties"]
    assert props["query"]["description"] == "What to look for"
    assert props["limit"]["default"] == 5
    assert search_docs.input_schema["required"] == ["query"]
    assert search_docs.params_schema.__name__ == "SearchDocsParams"


def test_decorator_requires_description() -> None:
    with pytest.raises(ValueError, match="needs a description"):
        @tool
        def undocumented() -> str:
            return ""


@pytest.mark.asyncio
async def test_decorated_closures_capture_state() -> None:
    def make(greeting: str) -> BaseTool:
        @tool(description="Return the configured greeting")
        async def greet(name: str) -> str:
            return f"{greeting}, {name}"
        return greet

    hello, hi = make("Hello"), make("Hi")
    assert await hello(name="Ada") == "Hello, Ada"
    assert await hi.execute({"name": "Ada"}) == "Hi, Ada"
    assert type(hello) is not type(hi)


@pytest.mark.asyncio
async def test_sync_decorated_tool_runs() -> None:
    @tool(description="Add two integers together")
    def add(a: int, b: int) -> str:
        return str(a + b)

    assert await add.execute({"a": 2, "b": 3}) == "5"


# ─────────────────────────────────────────────────────────────────────────────
# Registry
# ─────────────────────────────────────────────────────────────────────────────


def _named(name: str) -> BaseTool:
    @tool(name=name, description=f"Tool named {name} for tests")
    def _fn() -> str:
        return name
    return _fn


def test_registry_lookup_and_order() -> None:
    registry = ToolRegistry([_named("b_tool"), _named("a_tool")])
    registry.register(StockTool())

    assert registry.names() == ["b_tool", "a_tool", "check_stock"]
    assert len(registry) == 3
    assert "a_tool" in registry and "missing" not in registry
    assert registry.get("missing") is None
    assert registry["check_stock"].name == "check_stock"
    assert [t.name for t in registry] == registry.names()
    with pytest.raises(KeyError):
        registry["missing"]


def test_registry_rejects_duplicates() -> None:
    registry = ToolRegistry([_named("a_tool")])
    with pytest.raises(ValueError, match="already registered"):
        registry.register(_named("a_tool"))


def test_registry_unregister() -> None:
    registry = ToolRegistry([_named("a_tool")])
    assert registry.unregister("a_tool") is True
    assert registry.unregister("a_tool") is False
    assert len(registry) == 0


def test_registry_formatting() -> None:
    registry = ToolRegistry([StockTool()])
    assert registry.describe() == "- **check_stock** (shop): Check stock for a product"
    assert registry.to_chat_template() == [StockTool().to_chat_template()]
    assert repr(registry) == "ToolRegistry(['check_stock'])"
