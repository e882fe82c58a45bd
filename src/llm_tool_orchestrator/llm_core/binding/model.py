"""Core abstraction for LLM provider implementations."""

from abc import ABC, abstractmethod
from typing import Any, Generic, Iterable, Sequence, TypeVar

from ..messages import AssistantMessage, ConversationMessage
from ..tools.models import ToolDescriptor

ProviderResT = TypeVar("ProviderResT")


class ChatModel(ABC, Generic[ProviderResT]):
    """Abstract base class for the model capability behind a binding.

    An implementation translates between the provider-agnostic message and
    descriptor types and the provider's calling convention. Whether the model
    calls a tool is entirely the provider's decision; implementations only
    transport it. ``ProviderResT`` is the provider's raw response type.
    """

    @abstractmethod
    def serialize_history(self, history: Sequence[ConversationMessage]) -> Any:
        """Convert provider-agnostic history into the provider's message format."""

    @abstractmethod
    def serialize_tools(self, descriptors: Iterable[ToolDescriptor]) -> Any:
        """Convert tool descriptors into the provider's tool declaration format.

        Returns:
            The provider payload, or None when there are no tools.
        """

    @abstractmethod
    async def complete(self, serialized_history: Any, serialized_tools: Any) -> ProviderResT:
        """Send one request to the provider and return its raw response."""

    @abstractmethod
    def parse_response(self, response: ProviderResT) -> AssistantMessage:
        """Extract text and tool call requests from a raw provider response."""
