import inspect
from typing import Any, Annotated, Dict, get_args, get_origin

from pydantic import BaseModel, ConfigDict, Field
from pydantic.fields import FieldInfo

from ...exceptions import ToolValidationError
from ...logger import get_logger

logger = get_logger(__name__)


class FieldTuple(BaseModel):
    """Typed (annotation, FieldInfo) pair as expected by pydantic's ``create_model``."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    annotation: Any
    field: FieldInfo

    def as_definition(self) -> tuple[Any, FieldInfo]:
        return self.annotation, self.field


class ToolParameterFactory:
    """Turns the parameters of a tool function into pydantic field definitions."""

    _UNSUPPORTED_KINDS = (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)

    @classmethod
    def build_fields(cls, signature: inspect.Signature, tool_name: str) -> Dict[str, tuple[Any, FieldInfo]]:
        """Build the ``create_model`` field definitions for a whole signature.

        ``self`` and ``cls`` are skipped so bound methods can be registered.

        Raises:
            ToolValidationError: If a parameter cannot be expressed as a named tool argument.
        """
        fields: Dict[str, tuple[Any, FieldInfo]] = {}
        for param_name, param in signature.parameters.items():
            if param_name in ("self", "cls"):
                continue
            fields[param_name] = cls.build_field_tuple(param_name, param, tool_name).as_definition()
        return fields

    @classmethod
    def build_field_tuple(cls, param_name: str, param: inspect.Parameter, tool_name: str) -> FieldTuple:
        """Creates the (annotation, FieldInfo) pair for a single function parameter.

        Args:
            param_name: The name of the parameter.
            param: The inspect.Parameter object.
            tool_name: The name of the tool for error reporting.

        Returns:
            A FieldTuple containing the type annotation and Pydantic Field configuration.
        """
        if param.kind in cls._UNSUPPORTED_KINDS:
            msg = f"Parameter '{param_name}' in tool '{tool_name}' is variadic. Tool arguments must be named."
            logger.error(msg)
            raise ToolValidationError(msg)

        if param.annotation is inspect.Parameter.empty:
            msg = f"Parameter '{param_name}' in tool '{tool_name}' has no type annotation."
            logger.error(msg)
            raise ToolValidationError(msg)

        description = cls._extract_description(param.annotation, param_name, tool_name)
        default = param.default if param.default is not inspect.Parameter.empty else ...

        return FieldTuple(annotation=param.annotation, field=Field(default=default, description=description))

    @staticmethod
    def _extract_description(annotation: Any, param_name: str, tool_name: str) -> str:
        """Every parameter is annotated as ``Annotated[<type>, Field(description='...')]``.

        Raises:
            ToolValidationError: If the parameter is missing a Pydantic Field description.
        """
        if get_origin(annotation) is Annotated:
            for metadata in get_args(annotation)[1:]:
                if isinstance(metadata, FieldInfo) and metadata.description:
                    return metadata.description

        msg = (
            f"Parameter '{param_name}' in tool '{tool_name}' is missing a description.\n"
            f"Usage: {param_name}: Annotated[Type, Field(description='...')] = ..."
        )
        logger.error(msg)
        raise ToolValidationError(msg)
