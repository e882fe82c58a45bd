import json
import uuid
from typing import Any, Dict, Iterable, List, Optional, Sequence, cast

from openai import AsyncOpenAI
from openai.types.chat import ChatCompletion, ChatCompletionToolParam

from llm_tool_orchestrator.llm_core import ChatModel, get_logger
from llm_tool_orchestrator.llm_core.messages import AssistantMessage, ConversationMessage
from llm_tool_orchestrator.llm_core.tools import ToolCallRequest, ToolDescriptor

logger = get_logger(__name__)


class OpenAIChatModel(ChatModel[ChatCompletion]):
    """
    Chat-completions model capability for OpenAI and API-compatible servers.
    """

    def __init__(
        self,
        client: AsyncOpenAI,
        model_name: str,
        sys_instruction: Optional[str] = None,
        temp: float = 1.0,
        max_tokens: int = 3000,
    ):
        """
        Initializes the OpenAI model capability.

        Args:
            client: The initialized AsyncOpenAI client.
            model_name: The identifier for the OpenAI model to use (e.g., 'gpt-4o').
            sys_instruction: System instruction, prepended when the history has no system message.
            temp: The temperature for text generation, controlling randomness.
            max_tokens: The maximum number of tokens to generate in the response.
        """
        self.client = client
        self.model = model_name
        self.sys_instruction = sys_instruction
        self.temperature = temp
        self.max_tokens = max_tokens

    def serialize_history(self, history: Sequence[ConversationMessage]) -> List[Dict[str, Any]]:
        """
        Converts generic history to OpenAI chat message dictionaries.

        Args:
            history: List of ConversationMessage objects.

        Returns:
            List of OpenAI message dictionaries.
        """
        messages: List[Dict[str, Any]] = []
        if self.sys_instruction and not any(msg.role == "system" for msg in history):
            messages.append({"role": "system", "content": self.sys_instruction})

        for msg in history:
            if msg.role == "assistant":
                openai_msg: Dict[str, Any] = {"role": "assistant", "content": msg.content or None}
                if msg.tool_calls:
                    openai_msg["tool_calls"] = [
                        {
                            "id": call.id,
                            "type": "function",
                            "function": {"name": call.tool_name, "arguments": self._encode_arguments(call.raw_arguments)},
                        }
                        for call in msg.tool_calls
                    ]
                messages.append(openai_msg)
            elif msg.role == "tool":
                messages.append(
                    {"role": "tool", "content": msg.content, "tool_call_id": msg.tool_call_id, "name": msg.name}
                )
            else:
                messages.append({"role": msg.role, "content": msg.content})
        return messages

    def serialize_tools(self, descriptors: Iterable[ToolDescriptor]) -> Optional[List[ChatCompletionToolParam]]:
        """Build the ``tools`` parameter: one function declaration per tool, or None."""
        tools: List[ChatCompletionToolParam] = [
            cast(
                ChatCompletionToolParam,
                {
                    "type": "function",
                    "function": {
                        "name": descriptor.name,
                        "description": descriptor.description,
                        "parameters": descriptor.input_schema.to_json_schema(),
                    },
                },
            )
            for descriptor in descriptors
        ]
        return tools or None

    async def complete(
        self, serialized_history: List[Dict[str, Any]], serialized_tools: Optional[List[ChatCompletionToolParam]]
    ) -> ChatCompletion:
        kwargs: Dict[str, Any] = {
            "model": self.model,
            # The library expects a union of message param types; plain dicts are structurally compatible.
            "messages": cast(Iterable[Any], serialized_history),
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        if serialized_tools:
            kwargs["tools"] = serialized_tools

        logger.debug(f"Sending request to OpenAI model: {self.model}")
        return await self.client.chat.completions.create(**kwargs)

    def parse_response(self, response: ChatCompletion) -> AssistantMessage:
        """Extract text and function tool calls from a chat completion.

        Args:
            response: The chat completion response from OpenAI.

        Returns:
            The assistant message. Tool call arguments stay raw JSON strings.
        """
        if not response.choices:
            logger.warning("OpenAI response has no choices.")
            return AssistantMessage(content="")

        message = response.choices[0].message
        requests: List[ToolCallRequest] = []
        for tool_call in message.tool_calls or []:
            # Check if it's a function tool call (has 'function' attribute)
            if tool_call.type != "function":
                logger.debug(f"Ignoring non-function tool call of type '{tool_call.type}'.")
                continue
            requests.append(
                ToolCallRequest(
                    id=tool_call.id or f"call_{uuid.uuid4().hex[:24]}",
                    tool_name=tool_call.function.name,
                    raw_arguments=tool_call.function.arguments,
                )
            )

        return AssistantMessage(content=message.content or "", tool_calls=requests)

    @staticmethod
    def _encode_arguments(raw_arguments: Any) -> str:
        if isinstance(raw_arguments, str):
            return raw_arguments
        if raw_arguments is None:
            return "{}"
        return json.dumps(raw_arguments)
