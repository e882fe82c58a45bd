from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..schema import ObjectSchema, Schema

_TOOL_NAME_PATTERN = r"^[a-zA-Z0-9_-]{1,64}$"


class ToolDescriptor(BaseModel):
    """
    The model-facing view of a tool.

    This is what gets serialized into a provider request. It deliberately has
    no reference to the executable capability.

    Attributes:
        name: The unique name of the tool.
        description: Natural-language description guiding the model's selection.
        input_schema: Structure of the arguments the tool accepts.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    input_schema: Schema


class ToolDefinition(BaseModel):
    """
    Represents the definition of a tool that can be registered with an LLM.

    Attributes:
        name: The unique name of the tool, used by the model to address it.
        description: A brief description of what the tool does.
        func: The callable (sync or async) implementing the tool. It is called
              with the validated arguments as keyword arguments.
        input_schema: Schema the raw arguments are validated against.
        output_schema: Optional schema the tool's return value is checked against.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str = Field(pattern=_TOOL_NAME_PATTERN)
    description: str
    func: Callable[..., Any]
    input_schema: Schema = Field(default_factory=ObjectSchema)
    output_schema: Optional[Schema] = None

    def describe(self) -> ToolDescriptor:
        return ToolDescriptor(name=self.name, description=self.description, input_schema=self.input_schema)
