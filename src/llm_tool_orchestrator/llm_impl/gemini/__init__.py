"""Gemini LLM implementation."""

from .model import GeminiChatModel, GeminiPrompt

__all__ = ["GeminiChatModel", "GeminiPrompt"]
