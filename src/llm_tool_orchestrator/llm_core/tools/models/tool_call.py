"""Data models for tool execution."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel

from ...exceptions import SchemaValidationError


class ToolErrorKind(str, Enum):
    """Categories of per-call failures reported back to the model."""

    UNKNOWN_TOOL = "UnknownTool"
    SCHEMA_VALIDATION = "SchemaValidationError"
    EXECUTION = "ExecutionError"
    OUTPUT_SCHEMA_MISMATCH = "OutputSchemaMismatch"
    DUPLICATE_CALL_ID = "DuplicateCallId"


@dataclass(frozen=True)
class ToolError:
    """Describes why a tool call did not produce a (clean) output."""

    kind: ToolErrorKind
    message: str
    path: Optional[str] = None
    expected_type: Optional[str] = None
    received_type: Optional[str] = None

    @classmethod
    def from_schema_error(cls, kind: ToolErrorKind, exc: SchemaValidationError) -> "ToolError":
        return cls(
            kind=kind,
            message=str(exc),
            path=exc.path,
            expected_type=exc.expected_type,
            received_type=exc.received_type,
        )

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"kind": self.kind.value, "message": self.message}
        for key in ("path", "expected_type", "received_type"):
            value = getattr(self, key)
            if value is not None:
                payload[key] = value
        return payload


@dataclass(frozen=True)
class ToolCallRequest:
    """Represents a normalized tool call request from an LLM response.

    ``raw_arguments`` is whatever the model produced (dict, JSON string, None, ...);
    it is only trusted after validation by the dispatcher.
    """

    id: str
    tool_name: str
    raw_arguments: Any = None


@dataclass(frozen=True)
class ToolCallResult:
    """Represents the outcome of executing a tool call."""

    id: str
    tool_name: str
    output: Any = None
    error: Optional[ToolError] = None
    warnings: Tuple[ToolError, ...] = field(default_factory=tuple)

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def to_payload(self) -> Dict[str, Any]:
        """Shape the result the way it is reported to the model."""
        payload: Dict[str, Any]
        if self.error is not None:
            details = self.error.to_payload()
            payload = {"error": details.pop("message"), **details}
        else:
            payload = {"result": self.output}
        if self.warnings:
            payload["warnings"] = [warning.to_payload() for warning in self.warnings]
        return payload

    def to_json(self) -> str:
        """Encode the payload as the JSON text sent to the model.

        Raises:
            TypeError: If the output holds keys or values JSON cannot represent.
            ValueError: If the output contains a circular reference.
        """
        return json.dumps(self.to_payload(), default=_json_fallback)


def _json_fallback(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    return str(value)
