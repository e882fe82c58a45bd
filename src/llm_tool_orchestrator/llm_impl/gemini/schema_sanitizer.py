"""
A module for sanitizing tool schemas for the Google Gemini API.

Gemini accepts an OpenAPI-style subset of JSON schema. This module adapts the
JSON schema rendered from tool descriptors to it:

- ``additionalProperties`` is not supported and is removed.
- ``{"type": "null"}`` union branches become ``nullable: true``.
- ``enum`` is only allowed on strings; other enums are moved into the description.
- ``required`` may only list declared properties.
"""

from typing import Any, Dict, List, Set, cast
from functools import singledispatch


def sanitize(schema: Dict[str, Any]) -> Dict[str, Any]:
    """
    Performs all necessary, recursive sanitization steps on a tool schema.

    Args:
        schema: The tool parameter schema to sanitize.

    Returns:
        A sanitized schema dictionary ready for the Gemini API.
    """
    return cast(Dict[str, Any], _recursive_sanitize(schema, set()))


@singledispatch
def _recursive_sanitize(schema: Any, seen: Set[int]) -> Any:
    # Base case for non-dict and non-list types.
    return schema


@_recursive_sanitize.register(dict)
def _(schema: dict, seen: Set[int]) -> dict:
    obj_id = id(schema)
    if obj_id in seen:
        return schema  # Circular reference detected
    seen.add(obj_id)

    level = _collapse_null_branches(schema)
    level = _ensure_required_params(level)
    level = _restrict_enum(level)

    result = {}
    for key, value in level.items():
        if key == "additionalProperties":
            continue
        if key == "properties" and isinstance(value, dict):
            result[key] = {name: _recursive_sanitize(prop, seen) for name, prop in value.items()}
        else:
            result[key] = _recursive_sanitize(value, seen)

    seen.remove(obj_id)
    return result


@_recursive_sanitize.register(list)
def _(schema: list, seen: Set[int]) -> list:
    obj_id = id(schema)
    if obj_id in seen:
        return schema  # Circular reference detected
    seen.add(obj_id)

    result = [_recursive_sanitize(item, seen) for item in schema]

    seen.remove(obj_id)
    return result


def _collapse_null_branches(params: Dict[str, Any]) -> Dict[str, Any]:
    """Turn ``anyOf: [X, {type: null}]`` into ``X`` with ``nullable: true``."""
    any_of = params.get("anyOf")
    if not isinstance(any_of, list):
        return params

    non_null: List[Any] = [
        branch for branch in any_of if not (isinstance(branch, dict) and branch.get("type") == "null")
    ]
    if len(non_null) == len(any_of):
        return params

    _params = {key: value for key, value in params.items() if key != "anyOf"}
    if len(non_null) == 1 and isinstance(non_null[0], dict):
        merged = dict(non_null[0])
        if "description" in _params:
            merged["description"] = _params["description"]
        merged["nullable"] = True
        return merged

    if non_null:
        _params["anyOf"] = non_null
    _params["nullable"] = True
    return _params


def _ensure_required_params(params: Dict[str, Any]) -> Dict[str, Any]:
    """
    Ensures all required parameters in a dictionary are defined in its
    'properties'. This operates on a single dictionary level.
    """
    if "required" not in params or "properties" not in params:
        return params

    _params = params.copy()
    defined_properties = _params["properties"].keys()
    valid_required = [name for name in _params["required"] if name in defined_properties]

    if valid_required:
        _params["required"] = valid_required
    else:
        _params.pop("required", None)

    return _params


def _restrict_enum(params: Dict[str, Any]) -> Dict[str, Any]:
    """Keep ``enum`` on string schemas only; describe other allowed values in text."""
    if "enum" not in params or params.get("type") == "string":
        return params

    _params = params.copy()
    allowed = _params.pop("enum")
    hint = f"Allowed values: {', '.join(repr(value) for value in allowed)}."
    _params["description"] = f"{_params['description']} {hint}" if _params.get("description") else hint
    return _params
