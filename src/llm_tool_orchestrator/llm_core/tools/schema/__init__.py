"""Tool schema variants, validation and signature-based schema generation."""

from .schema_types import (
    Schema,
    PrimitiveSchema,
    ObjectSchema,
    ArraySchema,
    UnionSchema,
    any_schema,
    schema_from_json,
)
from .schema_validator import SchemaValidator, received_type
from .tool_param_factory import ToolParameterFactory, FieldTuple

__all__ = [
    "Schema",
    "PrimitiveSchema",
    "ObjectSchema",
    "ArraySchema",
    "UnionSchema",
    "any_schema",
    "schema_from_json",
    "SchemaValidator",
    "received_type",
    "ToolParameterFactory",
    "FieldTuple",
]
