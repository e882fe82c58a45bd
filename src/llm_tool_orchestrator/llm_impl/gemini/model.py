"""Gemini model capability built on the google-genai async client."""

import json
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence

from google.genai import types
from google.genai.client import AsyncClient
from google.genai.types import GenerateContentResponse

from llm_tool_orchestrator.llm_core import ChatModel, get_logger
from llm_tool_orchestrator.llm_core.messages import AssistantMessage, ConversationMessage
from llm_tool_orchestrator.llm_core.tools import ToolCallRequest, ToolDescriptor
from . import schema_sanitizer

logger = get_logger(__name__)


@dataclass
class GeminiPrompt:
    """Serialized history: Gemini keeps system instructions out of the contents."""

    contents: List[types.Content] = field(default_factory=list)
    system_instruction: Optional[str] = None


class GeminiChatModel(ChatModel[GenerateContentResponse]):
    """
    Model capability for Google's Gemini models.
    """

    def __init__(
        self,
        aclient: AsyncClient,
        model_name: str,
        sys_instruction: Optional[str] = None,
        temp: float = 1.0,
        max_tokens: int = 3000,
    ):
        """
        Initializes the Gemini model capability.

        Args:
            aclient: The initialized Google GenAI async client (``Client(...).aio``).
            model_name: The identifier for the Gemini model to use (e.g., 'gemini-flash-latest').
            sys_instruction: A system-level instruction or persona for the LLM.
            temp: The temperature for text generation, controlling randomness.
            max_tokens: The maximum number of tokens to generate in the response.
        """
        self.client = aclient
        self.model = model_name
        self.sys_instruction = sys_instruction
        self.temperature = temp
        self.max_tokens = max_tokens
        logger.info(f"Initialized GeminiChatModel with model='{model_name}', temp={temp}, max_tokens={max_tokens}")

    def serialize_history(self, history: Sequence[ConversationMessage]) -> GeminiPrompt:
        """
        Converts generic history to Gemini Content history.

        System messages are folded into the system instruction. Consecutive
        tool messages are grouped into one content, as Gemini expects all
        function responses of a turn together.

        Args:
            history: List of ConversationMessage objects.

        Returns:
            The contents plus the effective system instruction.
        """
        prompt = GeminiPrompt()
        system_parts = [self.sys_instruction] if self.sys_instruction else []

        for msg in history:
            if msg.role == "system":
                system_parts.append(msg.content)
            elif msg.role == "user":
                prompt.contents.append(types.Content(role="user", parts=[types.Part(text=msg.content)]))
            elif msg.role == "assistant":
                parts = [types.Part(text=msg.content)] if msg.content else []
                parts.extend(
                    types.Part(
                        function_call=types.FunctionCall(
                            id=call.id, name=call.tool_name, args=self._decode_arguments(call.raw_arguments)
                        )
                    )
                    for call in msg.tool_calls
                )
                prompt.contents.append(types.Content(role="model", parts=parts))
            elif msg.role == "tool":
                part = types.Part(
                    function_response=types.FunctionResponse(
                        id=msg.tool_call_id, name=msg.name, response=self._decode_tool_content(msg.content)
                    )
                )
                previous = prompt.contents[-1] if prompt.contents else None
                if previous is not None and previous.parts and all(p.function_response for p in previous.parts):
                    previous.parts.append(part)
                else:
                    prompt.contents.append(types.Content(role="user", parts=[part]))

        prompt.system_instruction = "\n\n".join(system_parts) or None
        return prompt

    def serialize_tools(self, descriptors: Iterable[ToolDescriptor]) -> Optional[types.Tool]:
        """
        Generates a `types.Tool` object with one function declaration per tool.

        Returns:
            The tool declaration, or None if there are no tools.
        """
        declarations = []
        for descriptor in descriptors:
            parameters = descriptor.input_schema.to_json_schema()
            if parameters.get("properties"):
                declarations.append(
                    types.FunctionDeclaration(
                        name=descriptor.name,
                        description=descriptor.description,
                        parameters=schema_sanitizer.sanitize(parameters),  # type: ignore[arg-type]
                    )
                )
            else:
                declarations.append(types.FunctionDeclaration(name=descriptor.name, description=descriptor.description))

        if not declarations:
            return None
        logger.debug(f"Declared {len(declarations)} function(s) for Gemini.")
        return types.Tool(function_declarations=declarations)

    async def complete(self, serialized_history: GeminiPrompt, serialized_tools: Optional[types.Tool]) -> GenerateContentResponse:
        config = types.GenerateContentConfig(
            system_instruction=serialized_history.system_instruction,
            temperature=self.temperature,
            max_output_tokens=self.max_tokens,
            tools=[serialized_tools] if serialized_tools else None,
        )
        logger.debug(f"Sending request to Gemini model: {self.model}")
        return await self.client.models.generate_content(
            model=self.model,
            contents=serialized_history.contents,  # type: ignore[arg-type]
            config=config,
        )

    def parse_response(self, response: GenerateContentResponse) -> AssistantMessage:
        """Extract text and function calls from the first candidate.

        Function calls without an id get a generated one, so results can be
        correlated.
        """
        parts: List[types.Part] = []
        if response.candidates and response.candidates[0].content and response.candidates[0].content.parts:
            parts = list(response.candidates[0].content.parts)

        text = "".join(part.text for part in parts if part.text and not part.thought)
        requests = [
            ToolCallRequest(
                id=part.function_call.id or f"call_{uuid.uuid4().hex[:24]}",
                tool_name=part.function_call.name or "",
                raw_arguments=part.function_call.args or {},
            )
            for part in parts
            if part.function_call
        ]
        return AssistantMessage(content=text, tool_calls=requests)

    @staticmethod
    def _decode_arguments(raw_arguments: Any) -> Dict[str, Any]:
        if isinstance(raw_arguments, dict):
            return raw_arguments
        if isinstance(raw_arguments, str) and raw_arguments:
            try:
                decoded = json.loads(raw_arguments)
            except json.JSONDecodeError:
                return {"raw": raw_arguments}
            return decoded if isinstance(decoded, dict) else {"value": decoded}
        return {}

    @staticmethod
    def _decode_tool_content(content: str) -> Dict[str, Any]:
        try:
            decoded = json.loads(content)
        except json.JSONDecodeError:
            return {"result": content}
        return decoded if isinstance(decoded, dict) else {"result": decoded}
