import pytest
from pydantic import ValidationError

from llm_tool_orchestrator.llm_core.exceptions import ToolValidationError
from llm_tool_orchestrator.llm_core.tools.schema import (
    ArraySchema,
    ObjectSchema,
    PrimitiveSchema,
    UnionSchema,
    any_schema,
    schema_from_json,
)


def test_variants_are_parsed_by_kind() -> None:
    schema = ObjectSchema.model_validate(
        {
            "properties": {
                "name": {"kind": "primitive", "type": "string"},
                "tags": {"kind": "array", "items": {"kind": "primitive", "type": "string"}},
                "size": {
                    "kind": "union",
                    "variants": [{"kind": "primitive", "type": "integer"}, {"kind": "primitive", "type": "null"}],
                },
            },
            "required": ["name"],
        }
    )

    assert isinstance(schema.properties["name"], PrimitiveSchema)
    assert isinstance(schema.properties["tags"], ArraySchema)
    assert isinstance(schema.properties["size"], UnionSchema)


def test_required_names_must_be_declared() -> None:
    with pytest.raises(ValidationError):
        ObjectSchema(properties={"a": PrimitiveSchema(type="string")}, required=["b"])


def test_union_needs_at_least_one_variant() -> None:
    with pytest.raises(ValidationError):
        UnionSchema(variants=[])


def test_schemas_are_immutable() -> None:
    schema = PrimitiveSchema(type="string")
    with pytest.raises(ValidationError):
        schema.type = "integer"  # type: ignore[misc]


def test_object_renders_json_schema() -> None:
    schema = ObjectSchema(
        description="Point",
        properties={"x": PrimitiveSchema(type="number", description="X axis")},
        required=["x"],
    )

    assert schema.to_json_schema() == {
        "type": "object",
        "properties": {"x": {"type": "number", "description": "X axis"}},
        "required": ["x"],
        "additionalProperties": False,
        "description": "Point",
    }


def test_union_renders_any_of() -> None:
    schema = UnionSchema(variants=[PrimitiveSchema(type="string"), ArraySchema(items=PrimitiveSchema(type="integer"))])
    assert schema.to_json_schema() == {"anyOf": [{"type": "string"}, {"type": "array", "items": {"type": "integer"}}]}


def test_schema_from_json_object() -> None:
    schema = schema_from_json(
        {
            "type": "object",
            "properties": {"a": {"type": "integer"}, "b": {"anyOf": [{"type": "string"}, {"type": "null"}]}},
            "required": ["a", "ghost"],
            "additionalProperties": False,
        }
    )

    assert isinstance(schema, ObjectSchema)
    assert schema.required == ["a"]
    assert schema.additional_properties is False
    assert schema.properties["a"] == PrimitiveSchema(type="integer")
    b = schema.properties["b"]
    assert isinstance(b, UnionSchema)
    assert [variant.describe() for variant in b.variants] == ["string", "null"]


def test_schema_from_json_treats_missing_additional_properties_as_permissive() -> None:
    schema = schema_from_json({"type": "object", "properties": {}})
    assert isinstance(schema, ObjectSchema)
    assert schema.additional_properties is True


def test_schema_from_json_type_lists_and_enums() -> None:
    assert schema_from_json({"type": ["string", "null"]}).describe() == "string | null"

    mixed = schema_from_json({"enum": ["a", 1]})
    assert isinstance(mixed, UnionSchema)
    assert mixed.variants == [PrimitiveSchema(type="string", enum=["a"]), PrimitiveSchema(type="integer", enum=[1])]


def test_schema_from_json_untyped_fragment_accepts_anything() -> None:
    assert schema_from_json({}) == any_schema()
    assert schema_from_json(True) == any_schema()


def test_schema_from_json_rejects_unresolved_refs() -> None:
    with pytest.raises(ToolValidationError):
        schema_from_json({"$ref": "#/$defs/Thing"})
