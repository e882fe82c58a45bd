"""Export the exception hierarchy used across registration, dispatch and orchestration paths."""

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
    describe_exception,
)

__all__ = [
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
    "describe_exception",
]
