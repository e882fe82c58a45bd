"""Tool registry and helper utilities."""

from __future__ import annotations

import inspect
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Union, cast

import jsonref  # type: ignore
from pydantic import BaseModel, ValidationError, create_model

from ..models import ToolDefinition, ToolDescriptor
from ..schema import ObjectSchema, Schema, SchemaValidator, ToolParameterFactory, schema_from_json
from ...exceptions import (
    DuplicateToolNameError,
    ToolRegistrationError,
    ToolValidationError,
    UnknownToolError,
)
from ...logger import get_logger

logger = get_logger(__name__)

SchemaInput = Union[Schema, Dict[str, Any]]


class ToolDescriptorView:
    """Lazy, restartable sequence of tool descriptors.

    Every iteration starts over and builds descriptors on the fly, so the view
    can be serialized into any number of model requests.
    """

    def __init__(self, tools: Mapping[str, ToolDefinition]) -> None:
        self._tools = tools

    def __iter__(self) -> Iterator[ToolDescriptor]:
        return (tool.describe() for tool in self._tools.values())

    def __len__(self) -> int:
        return len(self._tools)

    def __bool__(self) -> bool:
        return bool(self._tools)


class ToolRegistry:
    """
    A central registry to manage and access all available LLM tools.

    A registry is built by registering tools and then frozen. Model bindings
    only ever read a frozen snapshot, so the tool set cannot change while a
    conversation is running.
    """

    def __init__(self) -> None:
        """Initialize an empty, mutable ToolRegistry."""
        self._tools: Dict[str, ToolDefinition] = {}
        self._frozen = False

    @classmethod
    def from_tools(cls, tools: Iterable[Union[ToolDefinition, Callable[..., Any]]]) -> "ToolRegistry":
        """Build a registry from tool definitions and/or documented functions.

        Raises:
            DuplicateToolNameError: If two tools share a name.
        """
        registry = cls()
        for tool in tools:
            registry.register(tool)
        return registry

    @property
    def tools(self) -> Mapping[str, ToolDefinition]:
        """Read-only mapping of tool name to definition."""
        return MappingProxyType(self._tools)

    @property
    def names(self) -> List[str]:
        return list(self._tools)

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def register(
        self,
        name_or_tool: Union[str, ToolDefinition, Callable[..., Any]],
        description: Optional[str] = None,
        func: Optional[Callable[..., Any]] = None,
        input_schema: Optional[SchemaInput] = None,
        output_schema: Optional[SchemaInput] = None,
    ) -> ToolDefinition:
        """
        Register a new tool for the LLM.

        A tool can be registered as a ready `ToolDefinition`, as a documented
        function whose signature yields the input schema, or from individual
        components (name, description, function, schema). Schemas may be given
        as schema variants or as plain JSON schema dictionaries.

        Args:
            name_or_tool: Either a `ToolDefinition` object, the name of the tool (str), or a Callable.
            description: What the tool does. Required if a name and an input schema are given.
            func: The callable implementing the tool. Required if `name_or_tool` is a string.
            input_schema: Argument schema. If None, it is inferred from `func`.
            output_schema: Optional schema the tool's return value is checked against.

        Returns:
            The registered definition.

        Raises:
            DuplicateToolNameError: If a tool with the same name is already registered.
            ToolRegistrationError: If the registry is frozen or the definition is incomplete or invalid.
            ToolValidationError: If the function or schema cannot describe a tool.
        """
        if self._frozen:
            raise ToolRegistrationError("Registry is frozen. Build a new registry to change the tool set.")

        try:
            tool = self._build_definition(name_or_tool, description, func, input_schema, output_schema)
        except ValidationError as exc:
            logger.error(f"Invalid tool definition: {exc}")
            raise ToolRegistrationError(f"Invalid tool definition: {exc}") from exc

        if tool.name in self._tools:
            logger.error(f"Tool '{tool.name}' is already registered.")
            raise DuplicateToolNameError(tool.name)

        self._tools[tool.name] = tool
        logger.info(f"Successfully registered tool: '{tool.name}'")
        return tool

    def _build_definition(
        self,
        name_or_tool: Union[str, ToolDefinition, Callable[..., Any]],
        description: Optional[str],
        func: Optional[Callable[..., Any]],
        input_schema: Optional[SchemaInput],
        output_schema: Optional[SchemaInput],
    ) -> ToolDefinition:
        if isinstance(name_or_tool, ToolDefinition):
            tool = name_or_tool
        elif callable(name_or_tool):
            tool = self._generate_tool_definition(
                name_or_tool, description=description, output_schema=output_schema
            )
        else:
            if func is None:
                raise ToolRegistrationError("If passing name as string, func is required.")

            if input_schema is None:
                tool = self._generate_tool_definition(
                    func, name=name_or_tool, description=description, output_schema=output_schema
                )
            else:
                if description is None:
                    raise ToolRegistrationError("If passing name and input_schema, description is required.")
                tool = ToolDefinition(
                    name=name_or_tool,
                    description=description,
                    func=func,
                    input_schema=self._coerce_schema(input_schema),
                    output_schema=self._coerce_schema(output_schema) if output_schema is not None else None,
                )
        return tool

    def unregister(self, tool_name: str) -> None:
        """Remove a tool while the registry is still being built.

        Raises:
            ToolRegistrationError: If the registry is frozen.
            UnknownToolError: If the tool does not exist in the registry.
        """
        if self._frozen:
            raise ToolRegistrationError("Registry is frozen. Build a new registry to change the tool set.")
        if tool_name not in self._tools:
            raise UnknownToolError(tool_name)
        del self._tools[tool_name]
        logger.info(f"Successfully unregistered tool: '{tool_name}'")

    def resolve(self, name: str) -> ToolDefinition:
        """Look up a tool by name.

        Raises:
            UnknownToolError: If no tool with that name is registered.
        """
        try:
            return self._tools[name]
        except KeyError:
            raise UnknownToolError(name) from None

    def describe_all(self) -> ToolDescriptorView:
        """Descriptors of all tools, in registration order, without their callables."""
        return ToolDescriptorView(self.tools)

    def freeze(self) -> "ToolRegistry":
        """Return an immutable snapshot of this registry.

        Later registrations on this builder do not affect the snapshot.
        """
        if self._frozen:
            return self
        snapshot = type(self)()
        snapshot._tools = dict(self._tools)
        snapshot._frozen = True
        logger.debug(f"Froze registry with {len(snapshot._tools)} tool(s).")
        return snapshot

    def tool(
        self,
        func: Optional[Callable[..., Any]] = None,
        *,
        output_schema: Optional[SchemaInput] = None,
    ) -> Any:
        """A decorator to turn a function into an LLM tool.

        Usable bare (``@registry.tool``) or with options
        (``@registry.tool(output_schema=...)``).

        Returns:
            The original function, after registering it as a tool.
        """

        def decorator(target: Callable[..., Any]) -> Callable[..., Any]:
            self.register(target, output_schema=output_schema)
            return target

        if func is not None:
            return decorator(func)
        return decorator

    def _generate_tool_definition(
        self,
        func: Callable[..., Any],
        name: Optional[str] = None,
        description: Optional[str] = None,
        output_schema: Optional[SchemaInput] = None,
    ) -> ToolDefinition:
        """Generate a ToolDefinition from a callable function.

        Raises:
            ToolValidationError: If the function is missing a docstring or parameter descriptions.
        """
        tool_name = name or getattr(func, "__name__", None)
        if not tool_name:
            raise ToolRegistrationError("Cannot derive a tool name from this callable; pass a name explicitly.")

        if description is None:
            description = self._get_docstring_from_func(func, tool_name)

        signature = inspect.signature(func)
        fields = ToolParameterFactory.build_fields(signature, tool_name)

        # create_model expects **field_definitions: Any
        params_model: type[BaseModel] = create_model(f"{tool_name}Params", **cast(Dict[str, Any], fields))

        return ToolDefinition(
            name=tool_name,
            description=description,
            func=func,
            input_schema=self._coerce_schema(params_model.model_json_schema()),
            output_schema=self._coerce_schema(output_schema) if output_schema is not None else None,
        )

    @staticmethod
    def _coerce_schema(schema: SchemaInput) -> Schema:
        """Accept a schema variant as-is, or import a JSON schema dictionary."""
        if not isinstance(schema, dict):
            return schema

        # 1. Check for recursion
        SchemaValidator.assert_no_recursive_refs(schema)

        # 2. Resolve refs; proxies=False ensures we get a plain dict back, not JsonRef objects
        resolved = jsonref.replace_refs(schema, proxies=False)

        # 3. Sanitize schema (remove $defs, title, etc.)
        sanitized = SchemaValidator.sanitize_schema(resolved)

        imported = schema_from_json(sanitized)
        if not isinstance(imported, ObjectSchema) and not sanitized:
            return ObjectSchema()
        return imported

    @staticmethod
    def _get_docstring_from_func(func: Callable[..., Any], tool_name: str) -> str:
        doc = inspect.getdoc(func)
        if not doc:
            msg = f"Tool '{tool_name}' missing docstring. LLMs need a description of what the tool does."
            logger.error(msg)
            raise ToolValidationError(msg)
        return doc
