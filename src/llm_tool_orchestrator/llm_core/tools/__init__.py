from .models import ToolDefinition, ToolDescriptor, ToolCallRequest, ToolCallResult, ToolError, ToolErrorKind
from .registry import ToolRegistry, ToolDescriptorView
from .execution import ToolCallDispatcher
from .schema import (
    Schema,
    PrimitiveSchema,
    ObjectSchema,
    ArraySchema,
    UnionSchema,
    SchemaValidator,
    schema_from_json,
)

__all__ = [
    "ToolDefinition",
    "ToolDescriptor",
    "ToolCallRequest",
    "ToolCallResult",
    "ToolError",
    "ToolErrorKind",
    "ToolRegistry",
    "ToolDescriptorView",
    "ToolCallDispatcher",
    "Schema",
    "PrimitiveSchema",
    "ObjectSchema",
    "ArraySchema",
    "UnionSchema",
    "SchemaValidator",
    "schema_from_json",
]
