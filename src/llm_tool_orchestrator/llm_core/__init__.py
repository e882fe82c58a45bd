"""Public exports for the core tool orchestration abstractions and utilities."""

from .binding import ChatModel, ModelBinding
from .config import OrchestratorConfig
from .exceptions import (
    LLMToolError,
    ToolRegistrationError,
    DuplicateToolNameError,
    ToolNotFoundError,
    UnknownToolError,
    ToolExecutionError,
    ExecutionError,
    ToolValidationError,
    SchemaValidationError,
    ModelInvocationError,
    OrchestrationError,
    IterationLimitExceeded,
    ConversationCancelled,
)
from .logger import get_logger, setup_logging
from .messages import (
    ConversationMessage,
    SystemMessage,
    UserMessage,
    AssistantMessage,
    ToolMessage,
)
from .orchestration import ConversationLoop, ConversationResult, ConversationStatus, LoopState, run_conversation
from .tools import (
    ToolDefinition,
    ToolDescriptor,
    ToolDescriptorView,
    ToolCallRequest,
    ToolCallResult,
    ToolError,
    ToolErrorKind,
    ToolRegistry,
    ToolCallDispatcher,
    Schema,
    PrimitiveSchema,
    ObjectSchema,
    ArraySchema,
    UnionSchema,
    SchemaValidator,
    schema_from_json,
)

__all__ = [
    "ChatModel",
    "ModelBinding",
    "OrchestratorConfig",
    "LLMToolError",
    "ToolRegistrationError",
    "DuplicateToolNameError",
    "ToolNotFoundError",
    "UnknownToolError",
    "ToolExecutionError",
    "ExecutionError",
    "ToolValidationError",
    "SchemaValidationError",
    "ModelInvocationError",
    "OrchestrationError",
    "IterationLimitExceeded",
    "ConversationCancelled",
    "get_logger",
    "setup_logging",
    "ConversationMessage",
    "SystemMessage",
    "UserMessage",
    "AssistantMessage",
    "ToolMessage",
    "ConversationLoop",
    "ConversationResult",
    "ConversationStatus",
    "LoopState",
    "run_conversation",
    "ToolDefinition",
    "ToolDescriptor",
    "ToolDescriptorView",
    "ToolCallRequest",
    "ToolCallResult",
    "ToolError",
    "ToolErrorKind",
    "ToolRegistry",
    "ToolCallDispatcher",
    "Schema",
    "PrimitiveSchema",
    "ObjectSchema",
    "ArraySchema",
    "UnionSchema",
    "SchemaValidator",
    "schema_from_json",
]
