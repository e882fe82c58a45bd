"""Tool execution logic."""

from .dispatcher import ToolCallDispatcher

__all__ = ["ToolCallDispatcher"]
