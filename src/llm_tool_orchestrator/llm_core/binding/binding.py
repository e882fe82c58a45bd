"""Association of a model with a fixed tool set."""

from typing import Any, Generic, Sequence

from ..exceptions import ModelInvocationError
from ..logger import get_logger
from ..messages import AssistantMessage, ConversationMessage
from ..tools.registry import ToolRegistry
from .model import ChatModel, ProviderResT

logger = get_logger(__name__)


class ModelBinding(Generic[ProviderResT]):
    """Presents a model with a fixed tool set and normalizes its responses.

    The registry is frozen on construction; binding a different tool set means
    creating a new binding.
    """

    def __init__(self, model: ChatModel[ProviderResT], registry: ToolRegistry) -> None:
        """Bind a model to a tool set.

        Args:
            model: The provider implementation.
            registry: The tools to offer. A frozen snapshot is taken.
        """
        self.model = model
        self.registry = registry.freeze()
        self._serialized_tools: Any = None
        self._tools_serialized = False
        logger.info(f"Bound {type(model).__name__} to {len(self.registry)} tool(s).")

    @property
    def serialized_tools(self) -> Any:
        """Tool declarations in the provider's format, built once per binding."""
        if not self._tools_serialized:
            self._serialized_tools = self.model.serialize_tools(self.registry.describe_all())
            self._tools_serialized = True
        return self._serialized_tools

    async def invoke(self, history: Sequence[ConversationMessage]) -> AssistantMessage:
        """Send the history to the model and return its next message.

        Args:
            history: The conversation so far.

        Returns:
            The assistant message, with zero or more tool call requests.

        Raises:
            ModelInvocationError: If the provider call fails or its response cannot
                be parsed. The provider exception is chained and kept on
                ``original``. No retries.
        """
        serialized_history = self.model.serialize_history(history)
        logger.debug(f"Invoking {type(self.model).__name__} with {len(history)} message(s).")

        try:
            response = await self.model.complete(serialized_history, self.serialized_tools)
            message = self.model.parse_response(response)
        except Exception as exc:
            logger.error(f"Model invocation failed: {type(exc).__name__}: {exc}")
            raise ModelInvocationError(exc) from exc

        logger.debug(f"Model replied with {len(message.tool_calls)} tool call(s).")
        return message
