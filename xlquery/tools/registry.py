"""
Tool registry and invocation bridge.

The registry is an explicit mapping from tool name to descriptor,
handler and result kind, assembled once at start-up. Invoking a tool
never raises: any failure is logged with its error code and replaced by
the sentinel of the tool's result kind, so an agent always receives a
well-typed answer it can reason about.

Example:
    registry = ToolRegistry()
    registry.register(descriptor, handler, ResultKind.COUNT)
    registry.freeze()
    registry.invoke("count_in_excel", {"file_path": "/tmp/a.xlsx", "keyword": "x"})
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ValidationError, create_model

from xlquery.exceptions.excel_exceptions import ExcelServiceError
from xlquery.logger import summarize
from xlquery.models.tool_models import ToolDescriptor

logger = logging.getLogger(__name__)

ERROR_PREFIX = "Error: "


class ResultKind(str, Enum):
    """
    Shape of a tool's result, which fixes its failure sentinel.

    TEXT tools fail with "Error: <message>", COUNT tools with -1 and
    ROWS tools with an empty list.
    """

    TEXT = "text"
    COUNT = "count"
    ROWS = "rows"

    def sentinel(self, message: str) -> Any:
        if self is ResultKind.TEXT:
            return f"{ERROR_PREFIX}{message}"
        if self is ResultKind.COUNT:
            return -1
        return []


@dataclass(frozen=True)
class RegisteredTool:
    """A descriptor bound to its handler."""

    descriptor: ToolDescriptor
    handler: Callable[..., Any]
    result_kind: ResultKind
    arguments_model: type[BaseModel]


def build_arguments_model(descriptor: ToolDescriptor) -> type[BaseModel]:
    """
    Create a pydantic model validating a tool's arguments.

    Optional parameters without a default accept None. Values are
    coerced in lax mode, so "3" is accepted for an integer and "true"
    for a boolean.
    """
    fields: dict[str, Any] = {}
    for parameter in descriptor.parameters:
        annotation = parameter.param_type.python_type
        if parameter.required:
            fields[parameter.name] = (annotation, ...)
        elif parameter.default is None:
            fields[parameter.name] = (annotation | None, None)
        else:
            fields[parameter.name] = (annotation, parameter.default)

    model_name = "".join(part.title() for part in descriptor.name.split("_")) + "Arguments"
    return create_model(model_name, **fields)


def _describe_validation_error(error: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in err['loc']) or 'arguments'}: {err['msg']}"
        for err in error.errors()
    )


class ToolRegistry:
    """
    Ordered, explicitly populated set of agent-callable tools.

    The registry is mutable only until freeze() is called; the
    capability set handed to an agent is always the full, ordered tuple
    of descriptors.
    """

    def __init__(self) -> None:
        self._tools: dict[str, RegisteredTool] = {}
        self._frozen = False

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    @property
    def frozen(self) -> bool:
        return self._frozen

    def register(
        self,
        descriptor: ToolDescriptor,
        handler: Callable[..., Any],
        result_kind: ResultKind,
    ) -> None:
        """
        Add a tool.

        Args:
            descriptor: Name, description and parameters of the tool.
            handler: Callable receiving the parameters as keyword arguments.
            result_kind: Shape of the handler's result.

        Raises:
            RuntimeError: If the registry is frozen.
            ValueError: If a tool with the same name is already registered.
        """
        if self._frozen:
            raise RuntimeError("Tool registry is frozen")
        if descriptor.name in self._tools:
            raise ValueError(f"Tool already registered: {descriptor.name}")

        self._tools[descriptor.name] = RegisteredTool(
            descriptor=descriptor,
            handler=handler,
            result_kind=result_kind,
            arguments_model=build_arguments_model(descriptor),
        )

    def freeze(self) -> "ToolRegistry":
        """Close the registry for further registrations."""
        self._frozen = True
        return self

    def names(self) -> list[str]:
        return list(self._tools)

    def get(self, name: str) -> RegisteredTool | None:
        return self._tools.get(name)

    def descriptors(self) -> tuple[ToolDescriptor, ...]:
        """Return every descriptor, in registration order."""
        return tuple(tool.descriptor for tool in self._tools.values())

    def openai_tools(self) -> list[dict[str, Any]]:
        """Return the capability set in chat-completions function calling format."""
        return [descriptor.openai_schema() for descriptor in self.descriptors()]

    def invoke(self, name: str, arguments: dict[str, Any] | None = None) -> Any:
        """
        Call a tool by name.

        Args:
            name: Registered tool name.
            arguments: Raw arguments as produced by the agent.

        Returns:
            The tool result, or the sentinel of the tool's result kind when
            the arguments are invalid or the tool fails. Unknown tool names
            yield an "Error: ..." string.
        """
        tool = self._tools.get(name)
        if tool is None:
            logger.warning("Unknown tool requested: %s", name)
            return ResultKind.TEXT.sentinel(f"Unknown tool: {name}")

        logger.info("Tool %s called with %s", name, summarize(arguments))

        try:
            bound = tool.arguments_model.model_validate(arguments or {})
            result = tool.handler(**bound.model_dump())
        except ValidationError as e:
            message = _describe_validation_error(e)
            logger.warning("Tool %s failed [INVALID_ARGUMENTS]: %s", name, message)
            return tool.result_kind.sentinel(f"Invalid arguments for {name}: {message}")
        except ExcelServiceError as e:
            logger.warning("Tool %s failed [%s]: %s", name, e.error_code, e.message)
            return tool.result_kind.sentinel(e.message)
        except Exception as e:
            logger.exception("Tool %s failed [%s]", name, type(e).__name__)
            return tool.result_kind.sentinel(str(e) or type(e).__name__)

        logger.debug("Tool %s returned %s", name, summarize(result))
        return result
