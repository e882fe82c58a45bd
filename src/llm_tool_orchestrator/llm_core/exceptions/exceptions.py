"""
Custom exception classes for the tool orchestration system.

Registration and model invocation errors propagate to the caller. Per-call
errors (unknown tool, invalid arguments, failing tools) are contained by the
dispatcher and reported back to the model as tool results, so the classes for
those are mostly raised and caught inside the library.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from ..orchestration.loop import ConversationResult


class LLMToolError(Exception):
    """Base exception for all tool-related errors."""

    pass


class ToolRegistrationError(LLMToolError):
    """Raised when there is an error registering a tool."""

    pass


class DuplicateToolNameError(ToolRegistrationError):
    """Raised when a tool name is registered twice in the same registry."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Tool '{name}' is already registered.")


class ToolNotFoundError(LLMToolError):
    """Raised when a requested tool is not found in the registry."""

    pass


class UnknownToolError(ToolNotFoundError):
    """Raised when a tool name cannot be resolved."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Tool '{name}' not found in the registry.")


class ToolExecutionError(LLMToolError):
    """Raised when a tool fails during execution."""

    pass


ExecutionError = ToolExecutionError


class ToolValidationError(LLMToolError):
    """Raised when tool parameters or definition are invalid."""

    pass


class SchemaValidationError(ToolValidationError):
    """Raised when a value does not conform to a schema.

    Attributes:
        path: Location of the offending value, e.g. ``$.items[2].price``.
        expected_type: What the schema required at that location.
        received_type: What was actually found there.
    """

    def __init__(self, path: str, expected_type: str, received_type: str, message: Optional[str] = None) -> None:
        self.path = path
        self.expected_type = expected_type
        self.received_type = received_type
        super().__init__(message or f"At '{path}': expected {expected_type}, got {received_type}.")


class ModelInvocationError(LLMToolError):
    """Raised when the underlying model call fails.

    The provider exception is kept untouched on ``original`` and as ``__cause__``.
    """

    def __init__(self, original: BaseException) -> None:
        self.original = original
        super().__init__(f"Model invocation failed: {type(original).__name__}: {original}")


class OrchestrationError(LLMToolError):
    """Base class for terminal conversation signals.

    Attributes:
        result: The conversation result at the moment the loop stopped.
    """

    def __init__(self, message: str, result: Optional["ConversationResult"] = None) -> None:
        self.result = result
        super().__init__(message)


class IterationLimitExceeded(OrchestrationError):
    """Raised by ``ConversationResult.raise_for_status`` when the loop hit its iteration limit."""

    pass


class ConversationCancelled(OrchestrationError):
    """Raised by ``ConversationResult.raise_for_status`` when the loop was cancelled."""

    pass


def describe_exception(exc: BaseException) -> str:
    """Render an exception as a short message suitable for a tool result."""
    text = str(exc)
    return text if text else type(exc).__name__
