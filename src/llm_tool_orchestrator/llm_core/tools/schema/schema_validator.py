import copy
from functools import singledispatch
from typing import Any, Dict, List, Set

from ...exceptions import SchemaValidationError, ToolValidationError
from ...logger import get_logger
from .schema_types import ArraySchema, ObjectSchema, PrimitiveSchema, Schema, UnionSchema

logger = get_logger(__name__)


def received_type(value: Any) -> str:
    """Name the JSON type of a Python value for error reports."""
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
    if isinstance(value, dict):
        return "object"
    if isinstance(value, (list, tuple)):
        return "array"
    return type(value).__name__


def _child_path(path: str, key: str) -> str:
    if key.isidentifier():
        return f"{path}.{key}"
    return f"{path}[{key!r}]"


class SchemaValidator:
    """
    Helper class for validating values against tool schemas and for
    validating and sanitizing JSON schemas before they are imported.
    """

    @staticmethod
    def validate(schema: Schema, value: Any, path: str = "$") -> Any:
        """
        Validates a value against a schema without coercing it.

        Types must match exactly: numeric strings are not numbers, booleans
        are not integers and ``2.0`` is not an integer. An integer is a valid
        ``number``.

        Args:
            schema: The schema variant to validate against.
            value: The untrusted value.
            path: Path prefix used in error reports.

        Returns:
            A freshly built copy of the validated value (tuples become lists).

        Raises:
            SchemaValidationError: On the first mismatch found, with its path.
        """
        return _validate(schema, value, path)

    @staticmethod
    def assert_no_recursive_refs(schema: Dict[str, Any]) -> None:
        """
        Checks if the schema contains recursive references by traversing the graph.
        Raises ToolValidationError if a cycle is detected.

        Args:
            schema: The JSON schema to check.

        Raises:
            ToolValidationError: If a recursive reference is found.
        """
        defs = schema.get("$defs", {}) or schema.get("definitions", {})

        def check(node: Any, path: Set[str]) -> None:
            if isinstance(node, dict):
                if "$ref" in node:
                    ref = node["$ref"]
                    if ref in path:
                        msg = (
                            f"Recursive structure detected: {ref}. "
                            "Recursive structures are not allowed in tool inputs. "
                            "Use parent_id, lists, or a workflow loop instead."
                        )
                        logger.error(msg)
                        raise ToolValidationError(msg)

                    # e.g. #/$defs/MyModel
                    if ref.startswith("#"):
                        parts = ref.split("/")
                        if len(parts) >= 3:
                            def_name = parts[-1]
                            if def_name in defs:
                                check(defs[def_name], path | {ref})
                    return

                for v in node.values():
                    check(v, path)
            elif isinstance(node, list):
                for item in node:
                    check(item, path)

        check(schema, set())

    @staticmethod
    def sanitize_schema(schema: Any) -> Any:
        """
        Cleans up a JSON schema before it is converted into schema variants.
        Removes $defs, $schema, $id, title.
        Enforces additionalProperties: false for objects.
        Optional fields (anyOf with null) are kept, the validator handles unions.

        Args:
            schema: The JSON schema to sanitize.

        Returns:
            The sanitized schema.
        """
        if not isinstance(schema, dict):
            return schema

        new_schema = schema.copy()

        for key in ["$defs", "$schema", "$id", "title", "definitions"]:
            new_schema.pop(key, None)

        if new_schema.get("type") == "object":
            if "additionalProperties" not in new_schema:
                new_schema["additionalProperties"] = False

        for key, value in new_schema.items():
            if key == "properties" and isinstance(value, dict):
                new_schema[key] = {name: SchemaValidator.sanitize_schema(prop) for name, prop in value.items()}
            elif isinstance(value, dict):
                new_schema[key] = SchemaValidator.sanitize_schema(value)
            elif isinstance(value, list):
                new_schema[key] = [
                    SchemaValidator.sanitize_schema(item) if isinstance(item, dict) else item for item in value
                ]

        return new_schema


@singledispatch
def _validate(schema: Any, value: Any, path: str) -> Any:
    raise ToolValidationError(f"Unsupported schema variant: {type(schema).__name__}")


@_validate.register(PrimitiveSchema)
def _(schema: PrimitiveSchema, value: Any, path: str) -> Any:
    matches = {
        "string": isinstance(value, str),
        "boolean": isinstance(value, bool),
        "integer": isinstance(value, int) and not isinstance(value, bool),
        "number": isinstance(value, (int, float)) and not isinstance(value, bool),
        "null": value is None,
    }[schema.type]

    if not matches:
        raise SchemaValidationError(path, schema.type, received_type(value))

    if schema.enum is not None and not any(
        value == member and received_type(value) == received_type(member) for member in schema.enum
    ):
        raise SchemaValidationError(path, f"one of {schema.enum!r}", repr(value))

    return value


@_validate.register(ObjectSchema)
def _(schema: ObjectSchema, value: Any, path: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise SchemaValidationError(path, "object", received_type(value))

    result: Dict[str, Any] = {}
    for name, prop_schema in schema.properties.items():
        if name in value:
            result[name] = _validate(prop_schema, value[name], _child_path(path, name))
        elif name in schema.required:
            raise SchemaValidationError(_child_path(path, name), prop_schema.describe(), "missing")

    for name, item in value.items():
        if name in schema.properties:
            continue
        if not isinstance(name, str):
            raise SchemaValidationError(path, "object with string keys", f"key of type {type(name).__name__}")
        if not schema.additional_properties:
            raise SchemaValidationError(_child_path(path, name), "absent", received_type(item))
        result[name] = copy.deepcopy(item)

    return result


@_validate.register(ArraySchema)
def _(schema: ArraySchema, value: Any, path: str) -> List[Any]:
    if not isinstance(value, (list, tuple)):
        raise SchemaValidationError(path, "array", received_type(value))

    if schema.min_items is not None and len(value) < schema.min_items:
        raise SchemaValidationError(path, f"array with at least {schema.min_items} items", f"{len(value)} items")
    if schema.max_items is not None and len(value) > schema.max_items:
        raise SchemaValidationError(path, f"array with at most {schema.max_items} items", f"{len(value)} items")

    if schema.items is None:
        return copy.deepcopy(list(value))
    return [_validate(schema.items, item, f"{path}[{index}]") for index, item in enumerate(value)]


@_validate.register(UnionSchema)
def _(schema: UnionSchema, value: Any, path: str) -> Any:
    for variant in schema.variants:
        try:
            return _validate(variant, value, path)
        except SchemaValidationError:
            continue
    raise SchemaValidationError(path, schema.describe(), received_type(value))
