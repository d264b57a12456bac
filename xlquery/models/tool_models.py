"""
Pydantic models describing agent-callable tools.

A ToolDescriptor is what a capability-calling agent sees: a name, a
natural-language description and a list of primitive parameters. The
descriptors are frozen once built and render to JSON Schema for both
the MCP protocol and chat-completions function calling.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ParameterType(str, Enum):
    """Primitive argument types accepted by tools."""

    STRING = "string"
    INTEGER = "integer"
    BOOLEAN = "boolean"

    @property
    def python_type(self) -> type:
        return {
            ParameterType.STRING: str,
            ParameterType.INTEGER: int,
            ParameterType.BOOLEAN: bool,
        }[self]


class ToolParameter(BaseModel):
    """
    A single tool argument.

    Attributes:
        name: Argument name as passed by the agent.
        description: Natural-language description for the agent.
        param_type: Primitive type of the argument.
        required: Whether the agent must supply it.
        default: Value used when an optional argument is omitted.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Argument name")
    description: str = Field(description="Natural-language description of the argument")
    param_type: ParameterType = Field(
        default=ParameterType.STRING,
        description="Primitive type of the argument",
    )
    required: bool = Field(default=True, description="Whether the argument is mandatory")
    default: str | int | bool | None = Field(
        default=None,
        description="Default used when an optional argument is omitted",
    )

    def json_schema(self) -> dict[str, Any]:
        """Render the parameter as a JSON Schema property."""
        schema: dict[str, Any] = {
            "type": self.param_type.value,
            "description": self.description,
        }
        if not self.required and self.default is not None:
            schema["default"] = self.default
        return schema


class ToolDescriptor(BaseModel):
    """
    Immutable description of an agent-callable tool.

    Attributes:
        name: Unique tool name.
        description: Natural-language description used by the agent to
            decide when the tool applies.
        parameters: Ordered tool arguments.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1, description="Unique tool name")
    description: str = Field(description="Natural-language description of the tool")
    parameters: tuple[ToolParameter, ...] = Field(
        default=(),
        description="Ordered tool arguments",
    )

    @model_validator(mode="after")
    def validate_unique_parameters(self) -> "ToolDescriptor":
        """Ensure parameter names are unique."""
        names = [p.name for p in self.parameters]
        if len(names) != len(set(names)):
            raise ValueError(f"duplicate parameter names in tool {self.name}")
        return self

    def input_schema(self) -> dict[str, Any]:
        """
        Render the parameters as a JSON Schema object.

        Returns:
            Schema with "type", "properties" and "required" keys.
        """
        return {
            "type": "object",
            "properties": {p.name: p.json_schema() for p in self.parameters},
            "required": [p.name for p in self.parameters if p.required],
        }

    def openai_schema(self) -> dict[str, Any]:
        """Render the tool in chat-completions function calling format."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.input_schema(),
            },
        }
