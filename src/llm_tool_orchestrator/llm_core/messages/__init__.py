"""Expose provider-agnostic message model types shared by model bindings and the orchestration loop."""

from .models import ConversationMessage, SystemMessage, UserMessage, AssistantMessage, ToolMessage, Role

__all__ = [
    "ConversationMessage",
    "SystemMessage",
    "UserMessage",
    "AssistantMessage",
    "ToolMessage",
    "Role",
]
