from llm_tool_orchestrator.llm_impl.gemini import schema_sanitizer


def test_strip_additional_properties():
    """Tests that 'additionalProperties' is recursively removed."""
    schema = {
        "type": "object",
        "properties": {
            "user": {
                "type": "object",
                "properties": {"name": {"type": "string"}},
                "additionalProperties": False,
            },
            "items": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {"price": {"type": "number"}},
                    "additionalProperties": False,
                },
            },
        },
        "additionalProperties": False,
    }

    sanitized = schema_sanitizer.sanitize(schema)

    assert "additionalProperties" not in sanitized
    assert "additionalProperties" not in sanitized["properties"]["user"]
    assert "additionalProperties" not in sanitized["properties"]["items"]["items"]
    assert "price" in sanitized["properties"]["items"]["items"]["properties"]
    # the input is left untouched
    assert schema["additionalProperties"] is False


def test_property_names_are_not_treated_as_keywords():
    schema = {
        "type": "object",
        "properties": {"additionalProperties": {"type": "boolean"}},
        "additionalProperties": False,
    }

    sanitized = schema_sanitizer.sanitize(schema)

    assert sanitized == {"type": "object", "properties": {"additionalProperties": {"type": "boolean"}}}


def test_ensure_required_params_removes_undefined():
    """Tests that required properties not in 'properties' are removed."""
    schema = {
        "type": "object",
        "properties": {"defined_prop": {"type": "string"}},
        "required": ["defined_prop", "undefined_prop"],
    }

    sanitized = schema_sanitizer.sanitize(schema)

    assert sanitized["required"] == ["defined_prop"]


def test_ensure_required_params_removes_key_if_empty():
    """Tests that the 'required' key is removed if no properties are valid."""
    schema = {
        "type": "object",
        "properties": {"defined_prop": {"type": "string"}},
        "required": ["undefined_prop_1", "undefined_prop_2"],
    }

    sanitized = schema_sanitizer.sanitize(schema)

    assert "required" not in sanitized


def test_null_branch_becomes_nullable():
    schema = {
        "type": "object",
        "properties": {
            "limit": {"anyOf": [{"type": "integer"}, {"type": "null"}], "description": "Max hits"},
            "either": {"anyOf": [{"type": "integer"}, {"type": "string"}, {"type": "null"}]},
        },
    }

    sanitized = schema_sanitizer.sanitize(schema)

    assert sanitized["properties"]["limit"] == {"type": "integer", "description": "Max hits", "nullable": True}
    assert sanitized["properties"]["either"] == {
        "anyOf": [{"type": "integer"}, {"type": "string"}],
        "nullable": True,
    }


def test_non_string_enums_move_into_the_description():
    schema = {
        "type": "object",
        "properties": {
            "level": {"type": "integer", "enum": [1, 2, 3], "description": "Log level."},
            "mode": {"type": "string", "enum": ["fast", "slow"]},
        },
    }

    sanitized = schema_sanitizer.sanitize(schema)

    assert sanitized["properties"]["level"] == {"type": "integer", "description": "Log level. Allowed values: 1, 2, 3."}
    assert sanitized["properties"]["mode"] == {"type": "string", "enum": ["fast", "slow"]}
