"""Testing utilities: mock tools and a scripted inference engine."""

from .mock import Invocation, MockTool, ScriptedEngine

__all__ = ["Invocation", "MockTool", "ScriptedEngine"]
