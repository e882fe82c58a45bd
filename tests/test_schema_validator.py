import pytest
from typing import Any

from llm_tool_orchestrator.llm_core.exceptions import SchemaValidationError, ToolValidationError
from llm_tool_orchestrator.llm_core.tools.schema import (
    ArraySchema,
    ObjectSchema,
    PrimitiveSchema,
    SchemaValidator,
    UnionSchema,
)


def _obj(**properties: Any) -> ObjectSchema:
    return ObjectSchema(properties=properties, required=list(properties))


@pytest.mark.parametrize(
    "schema_type, value, received",
    [
        ("number", "2", "string"),
        ("integer", True, "boolean"),
        ("number", False, "boolean"),
        ("integer", 2.0, "number"),
        ("string", 3, "integer"),
        ("boolean", 1, "integer"),
        ("null", 0, "integer"),
    ],
)
def test_primitive_types_are_never_coerced(schema_type: Any, value: Any, received: str) -> None:
    with pytest.raises(SchemaValidationError) as exc_info:
        SchemaValidator.validate(PrimitiveSchema(type=schema_type), value)

    assert exc_info.value.path == "$"
    assert exc_info.value.expected_type == schema_type
    assert exc_info.value.received_type == received


def test_integer_is_a_valid_number() -> None:
    assert SchemaValidator.validate(PrimitiveSchema(type="number"), 2) == 2
    assert SchemaValidator.validate(PrimitiveSchema(type="number"), 2.5) == 2.5


def test_missing_required_property_is_reported_as_missing() -> None:
    schema = _obj(a=PrimitiveSchema(type="number"), b=PrimitiveSchema(type="number"))

    with pytest.raises(SchemaValidationError) as exc_info:
        SchemaValidator.validate(schema, {"a": 1})

    assert exc_info.value.path == "$.b"
    assert exc_info.value.expected_type == "number"
    assert exc_info.value.received_type == "missing"


def test_optional_property_may_be_omitted() -> None:
    schema = ObjectSchema(
        properties={"a": PrimitiveSchema(type="string"), "b": PrimitiveSchema(type="integer")},
        required=["a"],
    )
    assert SchemaValidator.validate(schema, {"a": "x"}) == {"a": "x"}


def test_undeclared_property_is_rejected_by_default() -> None:
    schema = _obj(a=PrimitiveSchema(type="string"))

    with pytest.raises(SchemaValidationError) as exc_info:
        SchemaValidator.validate(schema, {"a": "x", "extra": 1})

    assert exc_info.value.path == "$.extra"
    assert exc_info.value.expected_type == "absent"
    assert exc_info.value.received_type == "integer"


def test_additional_properties_are_kept_when_allowed() -> None:
    schema = ObjectSchema(properties={"a": PrimitiveSchema(type="string")}, additional_properties=True)
    assert SchemaValidator.validate(schema, {"a": "x", "extra": [1]}) == {"a": "x", "extra": [1]}


def test_nested_paths_point_at_the_offending_value() -> None:
    schema = _obj(items=ArraySchema(items=_obj(price=PrimitiveSchema(type="number"))))

    with pytest.raises(SchemaValidationError) as exc_info:
        SchemaValidator.validate(schema, {"items": [{"price": 1}, {"price": "free"}]})

    assert exc_info.value.path == "$.items[1].price"
    assert exc_info.value.received_type == "string"


def test_non_identifier_keys_use_bracket_paths() -> None:
    schema = _obj(**{"first name": PrimitiveSchema(type="string")})

    with pytest.raises(SchemaValidationError) as exc_info:
        SchemaValidator.validate(schema, {"first name": None})

    assert exc_info.value.path == "$['first name']"


def test_array_bounds() -> None:
    schema = ArraySchema(items=PrimitiveSchema(type="integer"), min_items=1, max_items=2)

    assert SchemaValidator.validate(schema, (1, 2)) == [1, 2]
    with pytest.raises(SchemaValidationError):
        SchemaValidator.validate(schema, [])
    with pytest.raises(SchemaValidationError):
        SchemaValidator.validate(schema, [1, 2, 3])


def test_union_takes_first_matching_variant() -> None:
    schema = UnionSchema(variants=[PrimitiveSchema(type="integer"), PrimitiveSchema(type="number")])
    assert SchemaValidator.validate(schema, 3) == 3
    assert SchemaValidator.validate(schema, 3.5) == 3.5


def test_union_error_lists_all_variants() -> None:
    schema = UnionSchema(variants=[PrimitiveSchema(type="string"), PrimitiveSchema(type="integer")])

    with pytest.raises(SchemaValidationError) as exc_info:
        SchemaValidator.validate(schema, [1])

    assert exc_info.value.expected_type == "string | integer"
    assert exc_info.value.received_type == "array"


def test_enum_checks_value_and_type() -> None:
    schema = PrimitiveSchema(type="integer", enum=[1, 2])

    assert SchemaValidator.validate(schema, 2) == 2
    with pytest.raises(SchemaValidationError):
        SchemaValidator.validate(schema, 3)
    with pytest.raises(SchemaValidationError):
        SchemaValidator.validate(PrimitiveSchema(type="number", enum=[1]), True)


def test_validation_returns_a_fresh_value_and_leaves_input_alone() -> None:
    schema = _obj(tags=ArraySchema(items=PrimitiveSchema(type="string")))
    value = {"tags": ["a", "b"]}

    result = SchemaValidator.validate(schema, value)

    assert result == value
    assert result is not value
    assert result["tags"] is not value["tags"]
    assert value == {"tags": ["a", "b"]}


def test_recursive_refs_are_rejected() -> None:
    schema = {
        "type": "object",
        "properties": {"root": {"$ref": "#/$defs/Node"}},
        "$defs": {
            "Node": {
                "type": "object",
                "properties": {"children": {"type": "array", "items": {"$ref": "#/$defs/Node"}}},
            }
        },
    }

    with pytest.raises(ToolValidationError, match="Recursive structure"):
        SchemaValidator.assert_no_recursive_refs(schema)


def test_sanitize_schema_strips_metadata_but_not_properties_named_like_it() -> None:
    schema = {
        "title": "Params",
        "$defs": {"Unused": {"type": "string"}},
        "type": "object",
        "properties": {
            "title": {"title": "Title", "type": "string"},
            "when": {"anyOf": [{"type": "string"}, {"type": "null"}], "title": "When"},
        },
    }

    sanitized = SchemaValidator.sanitize_schema(schema)

    assert sanitized == {
        "type": "object",
        "additionalProperties": False,
        "properties": {
            "title": {"type": "string"},
            "when": {"anyOf": [{"type": "string"}, {"type": "null"}]},
        },
    }
