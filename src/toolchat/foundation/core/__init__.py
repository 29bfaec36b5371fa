"""Core tool abstractions: BaseTool, ToolMetadata, @tool decorator."""

from .base import BaseTool, EmptyParams, ToolMetadata
from .decorator import FunctionTool, tool

__all__ = ["BaseTool", "EmptyParams", "FunctionTool", "ToolMetadata", "tool"]
