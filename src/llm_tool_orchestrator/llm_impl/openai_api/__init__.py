"""Expose the OpenAI chat-completions model capability."""

from .model import OpenAIChatModel

__all__ = ["OpenAIChatModel"]
