"""Structural schema variants used to describe tool inputs and outputs.

A schema is one of four tagged variants (``kind`` is the discriminator):
``PrimitiveSchema``, ``ObjectSchema``, ``ArraySchema`` and ``UnionSchema``.
The set is closed on purpose, so validation stays deterministic and every
variant can be rendered back to JSON schema for the provider request.
"""

from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ...exceptions import ToolValidationError
from ...logger import get_logger

logger = get_logger(__name__)

PrimitiveType = Literal["string", "number", "integer", "boolean", "null"]

_PRIMITIVE_TYPES = ("string", "number", "integer", "boolean", "null")


class _SchemaBase(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    description: Optional[str] = None

    def _with_description(self, data: Dict[str, Any]) -> Dict[str, Any]:
        if self.description:
            data["description"] = self.description
        return data


class PrimitiveSchema(_SchemaBase):
    """A scalar value, optionally restricted to a fixed set of values."""

    kind: Literal["primitive"] = "primitive"
    type: PrimitiveType
    enum: Optional[List[Any]] = None

    def describe(self) -> str:
        return self.type

    def to_json_schema(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"type": self.type}
        if self.enum is not None:
            data["enum"] = list(self.enum)
        return self._with_description(data)


class ObjectSchema(_SchemaBase):
    """A mapping with named, individually typed properties."""

    kind: Literal["object"] = "object"
    properties: Dict[str, "Schema"] = Field(default_factory=dict)
    required: List[str] = Field(default_factory=list)
    additional_properties: bool = False

    @model_validator(mode="after")
    def _required_are_declared(self) -> "ObjectSchema":
        undeclared = [name for name in self.required if name not in self.properties]
        if undeclared:
            raise ValueError(f"Required properties {undeclared} are not declared in 'properties'.")
        return self

    def describe(self) -> str:
        return "object"

    def to_json_schema(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "type": "object",
            "properties": {name: prop.to_json_schema() for name, prop in self.properties.items()},
        }
        if self.required:
            data["required"] = list(self.required)
        data["additionalProperties"] = self.additional_properties
        return self._with_description(data)


class ArraySchema(_SchemaBase):
    """A homogeneous list. ``items=None`` accepts items of any shape."""

    kind: Literal["array"] = "array"
    items: Optional["Schema"] = None
    min_items: Optional[int] = Field(default=None, ge=0)
    max_items: Optional[int] = Field(default=None, ge=0)

    def describe(self) -> str:
        return "array"

    def to_json_schema(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"type": "array"}
        if self.items is not None:
            data["items"] = self.items.to_json_schema()
        if self.min_items is not None:
            data["minItems"] = self.min_items
        if self.max_items is not None:
            data["maxItems"] = self.max_items
        return self._with_description(data)


class UnionSchema(_SchemaBase):
    """A value matching at least one of the variants, tried in order."""

    kind: Literal["union"] = "union"
    variants: List["Schema"] = Field(min_length=1)

    def describe(self) -> str:
        return " | ".join(variant.describe() for variant in self.variants)

    def to_json_schema(self) -> Dict[str, Any]:
        return self._with_description({"anyOf": [variant.to_json_schema() for variant in self.variants]})


Schema = Annotated[
    Union[PrimitiveSchema, ObjectSchema, ArraySchema, UnionSchema],
    Field(discriminator="kind"),
]

ObjectSchema.model_rebuild()
ArraySchema.model_rebuild()
UnionSchema.model_rebuild()


def any_schema(description: Optional[str] = None) -> UnionSchema:
    """Schema accepting any JSON value, used for untyped JSON schema fragments."""
    return UnionSchema(
        description=description,
        variants=[
            PrimitiveSchema(type="string"),
            PrimitiveSchema(type="number"),
            PrimitiveSchema(type="boolean"),
            PrimitiveSchema(type="null"),
            ObjectSchema(additional_properties=True),
            ArraySchema(),
        ],
    )


def _json_type_of(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return "string"
    raise ToolValidationError(f"Unsupported enum value {value!r}: only scalar values are allowed.")


def _from_enum(values: List[Any], description: Optional[str]) -> Union[PrimitiveSchema, UnionSchema]:
    grouped: Dict[str, List[Any]] = {}
    for value in values:
        grouped.setdefault(_json_type_of(value), []).append(value)

    if len(grouped) == 1:
        (json_type, members), = grouped.items()
        return PrimitiveSchema(type=json_type, enum=members, description=description)  # type: ignore[arg-type]
    return UnionSchema(
        description=description,
        variants=[PrimitiveSchema(type=json_type, enum=members) for json_type, members in grouped.items()],  # type: ignore[arg-type]
    )


def schema_from_json(json_schema: Any) -> Union[PrimitiveSchema, ObjectSchema, ArraySchema, UnionSchema]:
    """Convert a plain JSON schema document into schema variants.

    References must already be resolved (see ``jsonref.replace_refs``).

    Args:
        json_schema: The JSON schema as a dictionary.

    Returns:
        The equivalent schema variant.

    Raises:
        ToolValidationError: If the document uses unresolved references or unsupported constructs.
    """
    if isinstance(json_schema, bool):
        # 'true' accepts everything; 'false' has no variant equivalent
        if json_schema:
            return any_schema()
        raise ToolValidationError("Boolean schema 'false' cannot be represented.")

    if not isinstance(json_schema, dict):
        raise ToolValidationError(f"Expected a JSON schema object, got {type(json_schema).__name__}.")

    if "$ref" in json_schema:
        raise ToolValidationError(f"Unresolved reference '{json_schema['$ref']}'. Resolve references first.")

    description = json_schema.get("description")

    if "allOf" in json_schema:
        # pydantic wraps a described reference as a single-item allOf
        parts = json_schema["allOf"]
        if len(parts) != 1:
            raise ToolValidationError("Only single-item 'allOf' schemas are supported.")
        merged = {key: value for key, value in json_schema.items() if key != "allOf"}
        merged = {**parts[0], **merged} if isinstance(parts[0], dict) else merged
        return schema_from_json(merged)

    for key in ("anyOf", "oneOf"):
        if key in json_schema:
            variants = [schema_from_json(item) for item in json_schema[key]]
            if len(variants) == 1:
                return variants[0]
            return UnionSchema(variants=variants, description=description)

    if "const" in json_schema:
        return _from_enum([json_schema["const"]], description)

    json_type = json_schema.get("type")

    if isinstance(json_type, list):
        variants = []
        for single in json_type:
            sub_schema = dict(json_schema, type=single)
            sub_schema.pop("description", None)
            variants.append(schema_from_json(sub_schema))
        if len(variants) == 1:
            return variants[0]
        return UnionSchema(variants=variants, description=description)

    if json_type is None:
        if "enum" in json_schema:
            return _from_enum(list(json_schema["enum"]), description)
        if "properties" in json_schema:
            json_type = "object"
        elif "items" in json_schema:
            json_type = "array"
        else:
            return any_schema(description)

    if json_type == "object":
        properties = {name: schema_from_json(prop) for name, prop in (json_schema.get("properties") or {}).items()}
        required = [name for name in json_schema.get("required", []) if name in properties]
        dangling = set(json_schema.get("required", [])) - set(required)
        if dangling:
            logger.debug(f"Dropping required names without property definitions: {sorted(dangling)}")
        # JSON schema treats a missing or schema-valued 'additionalProperties' as permissive
        additional = json_schema.get("additionalProperties", True) is not False
        return ObjectSchema(
            properties=properties,
            required=required,
            additional_properties=additional,
            description=description,
        )

    if json_type == "array":
        raw_items = json_schema.get("items")
        items: Optional[Any]
        if raw_items is None or raw_items is True:
            items = None
        elif isinstance(raw_items, list):
            tuple_variants = [schema_from_json(item) for item in raw_items]
            items = tuple_variants[0] if len(tuple_variants) == 1 else UnionSchema(variants=tuple_variants)
        else:
            items = schema_from_json(raw_items)
        return ArraySchema(
            items=items,
            min_items=json_schema.get("minItems"),
            max_items=json_schema.get("maxItems"),
            description=description,
        )

    if json_type in _PRIMITIVE_TYPES:
        return PrimitiveSchema(type=json_type, enum=json_schema.get("enum"), description=description)

    raise ToolValidationError(f"Unsupported JSON schema type '{json_type}'.")
