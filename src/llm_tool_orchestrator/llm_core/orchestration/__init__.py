"""Conversation orchestration: the tool-calling loop and its caller-facing entry point."""

from .loop import ConversationLoop, ConversationResult, ConversationStatus, LoopState, run_conversation

__all__ = ["ConversationLoop", "ConversationResult", "ConversationStatus", "LoopState", "run_conversation"]
