import inspect
from typing import Annotated, Any, Iterable, List, Optional, Sequence

import pytest
from dotenv import find_dotenv, load_dotenv
from pydantic import Field

from llm_tool_orchestrator.llm_core import ChatModel, ToolRegistry
from llm_tool_orchestrator.llm_core.messages import AssistantMessage, ConversationMessage
from llm_tool_orchestrator.llm_core.tools import ToolCallRequest, ToolDescriptor

# Provider tests run against mocks; a local .env only matters for the example scripts.
load_dotenv(find_dotenv(usecwd=True))


class ScriptedModel(ChatModel[AssistantMessage]):
    """Model capability replaying prepared replies.

    A reply is an AssistantMessage, an exception to raise, or a callable
    receiving the serialized history (sync or async) and returning the message.
    """

    def __init__(self, *replies: Any) -> None:
        self.replies: List[Any] = list(replies)
        self.seen_histories: List[List[ConversationMessage]] = []
        self.declared_tools: Optional[List[str]] = None
        self.serialize_tools_calls = 0

    @property
    def calls(self) -> int:
        return len(self.seen_histories)

    def serialize_history(self, history: Sequence[ConversationMessage]) -> List[ConversationMessage]:
        return list(history)

    def serialize_tools(self, descriptors: Iterable[ToolDescriptor]) -> Optional[List[str]]:
        self.serialize_tools_calls += 1
        names = [descriptor.name for descriptor in descriptors]
        return names or None

    async def complete(self, serialized_history: Any, serialized_tools: Any) -> AssistantMessage:
        self.seen_histories.append(serialized_history)
        self.declared_tools = serialized_tools
        if not self.replies:
            raise AssertionError("No scripted reply left.")

        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        if callable(reply):
            reply = reply(serialized_history)
        if inspect.isawaitable(reply):
            reply = await reply
        return reply

    def parse_response(self, response: AssistantMessage) -> AssistantMessage:
        return response


def call(call_id: str, tool_name: str, raw_arguments: Any = None) -> ToolCallRequest:
    return ToolCallRequest(id=call_id, tool_name=tool_name, raw_arguments=raw_arguments)


def reply_with_calls(*calls: ToolCallRequest, content: str = "") -> AssistantMessage:
    return AssistantMessage(content=content, tool_calls=list(calls))


@pytest.fixture
def multiply_registry() -> ToolRegistry:
    registry = ToolRegistry()

    @registry.tool
    def multiply(
        a: Annotated[float, Field(description="The first factor.")],
        b: Annotated[float, Field(description="The second factor.")],
    ) -> float:
        """Multiply two numbers and return the product."""
        return a * b

    return registry
