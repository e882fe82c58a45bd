"""Collect concrete model capabilities for the supported providers."""

from .gemini import GeminiChatModel
from .openai_api import OpenAIChatModel

__all__ = [
    "GeminiChatModel",
    "OpenAIChatModel",
]
