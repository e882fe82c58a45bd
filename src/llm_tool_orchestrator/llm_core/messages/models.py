"""Provider-agnostic message models for chat history."""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from ..tools.models import ToolCallRequest, ToolCallResult

Role = Literal["system", "user", "assistant", "tool"]


class ConversationMessage(BaseModel):
    """Base model for messages exchanged with an LLM.

    Attributes:
        role: Role associated with the message.
        content: Text payload of the message, may be empty.
        tool_calls: Tool calls requested by the assistant, in model order.
        tool_call_id: For tool messages, the id of the request this answers.
        name: For tool messages, the name of the tool that produced it.
        is_error: For tool messages, whether the call failed.
    """

    role: Role
    content: str = ""
    tool_calls: List[ToolCallRequest] = Field(default_factory=list)
    tool_call_id: Optional[str] = None
    name: Optional[str] = None
    is_error: bool = False

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)


class SystemMessage(ConversationMessage):
    """Message authored by the system to steer behavior."""

    role: Literal["system"] = "system"


class UserMessage(ConversationMessage):
    """Message authored by an end user."""

    role: Literal["user"] = "user"


class AssistantMessage(ConversationMessage):
    """Message authored by the assistant, optionally containing tool calls."""

    role: Literal["assistant"] = "assistant"


class ToolMessage(ConversationMessage):
    """Message emitted by a tool invocation."""

    role: Literal["tool"] = "tool"
    tool_call_id: str
    name: str

    @classmethod
    def from_result(cls, result: ToolCallResult) -> "ToolMessage":
        """Build the tool-role message reporting a tool call result to the model."""
        return cls(
            content=result.to_json(),
            tool_call_id=result.id,
            name=result.tool_name,
            is_error=result.is_error,
        )
