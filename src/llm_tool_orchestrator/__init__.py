"""LLM Tool Orchestrator - provider-agnostic tool calling for language models."""

from .llm_core import (
    ChatModel,
    ModelBinding,
    OrchestratorConfig,
    ConversationLoop,
    ConversationResult,
    ConversationStatus,
    run_conversation,
    SystemMessage,
    UserMessage,
    AssistantMessage,
    ToolMessage,
    ToolRegistry,
    ToolDefinition,
    ToolCallDispatcher,
)
from .llm_impl import GeminiChatModel, OpenAIChatModel

__all__ = [
    "ChatModel",
    "ModelBinding",
    "OrchestratorConfig",
    "ConversationLoop",
    "ConversationResult",
    "ConversationStatus",
    "run_conversation",
    "SystemMessage",
    "UserMessage",
    "AssistantMessage",
    "ToolMessage",
    "ToolRegistry",
    "ToolDefinition",
    "ToolCallDispatcher",
    "GeminiChatModel",
    "OpenAIChatModel",
]
