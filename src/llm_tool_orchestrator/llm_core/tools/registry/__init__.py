"""Tool registry and the descriptor view handed to model bindings."""

from .base import ToolRegistry, ToolDescriptorView

__all__ = ["ToolRegistry", "ToolDescriptorView"]
