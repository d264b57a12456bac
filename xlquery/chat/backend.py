"""Interface between the upload bridge and a chat-completion backend."""

import json
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from xlquery.tools.registry import ToolRegistry


class ChatBackend(Protocol):
    """
    A chat-completion backend able to call tools.

    Implementations send the prompt together with the full capability
    set of the registry, execute the tool calls the model asks for
    through ToolRegistry.invoke and return the model's final text.
    """

    def complete(self, prompt: str, registry: "ToolRegistry") -> str: ...


def render_tool_result(result: Any) -> str:
    """Serialize a tool result for a tool message; text results pass through unchanged."""
    if isinstance(result, str):
        return result
    return json.dumps(result, ensure_ascii=False, default=str)
