"""
OpenAI chat-completions backend.

Runs the tool-calling loop: the prompt and the registry's tools are
sent to the model; while the model answers with tool calls they are
executed through the registry and their results are fed back; the first
answer without tool calls is returned.

Example:
    client = OpenAIChatClient.from_settings(load_settings())
    answer = client.complete("How many rows mention Wuxi?", build_tool_registry())
"""

import json
import logging
from typing import Any

import openai
from openai import OpenAI

from xlquery.chat.backend import render_tool_result
from xlquery.config import Settings
from xlquery.exceptions.excel_exceptions import ChatBackendError
from xlquery.logger import summarize
from xlquery.tools.registry import ERROR_PREFIX, ToolRegistry

logger = logging.getLogger(__name__)


def assistant_message_to_dict(message: Any) -> dict[str, Any]:
    """Convert an assistant message carrying tool calls back into request form."""
    return {
        "role": "assistant",
        "content": message.content,
        "tool_calls": [
            {
                "id": call.id,
                "type": "function",
                "function": {
                    "name": call.function.name,
                    "arguments": call.function.arguments,
                },
            }
            for call in message.tool_calls
        ],
    }


class OpenAIChatClient:
    """
    Chat backend on the OpenAI chat-completions API.

    Any OpenAI-compatible endpoint works through base_url.

    Attributes:
        model: Model identifier sent with each request.
        max_tool_rounds: Maximum number of model round trips per prompt.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str | None = None,
        max_tool_rounds: int = 8,
        client: OpenAI | None = None,
    ) -> None:
        self.model = model
        self.max_tool_rounds = max_tool_rounds
        self._client = client or OpenAI(api_key=api_key, base_url=base_url or None)

    @classmethod
    def from_settings(cls, settings: Settings) -> "OpenAIChatClient":
        return cls(
            api_key=settings.api_key,
            model=settings.model,
            base_url=settings.base_url,
            max_tool_rounds=settings.max_tool_rounds,
        )

    def _run_tool_call(self, call: Any, registry: ToolRegistry) -> str:
        name = call.function.name
        try:
            arguments = json.loads(call.function.arguments or "{}")
        except json.JSONDecodeError as e:
            logger.warning("Tool call %s has malformed arguments: %s", name, e)
            return f"{ERROR_PREFIX}arguments are not valid JSON ({e})"
        if not isinstance(arguments, dict):
            return f"{ERROR_PREFIX}arguments must be a JSON object"
        return render_tool_result(registry.invoke(name, arguments))

    def complete(self, prompt: str, registry: ToolRegistry) -> str:
        """
        Answer a prompt, letting the model call the registry's tools.

        Args:
            prompt: The user instruction.
            registry: Tools offered to the model.

        Returns:
            The model's final text content, verbatim.

        Raises:
            ChatBackendError: If the API call fails or the model keeps
                calling tools past max_tool_rounds.
        """
        messages: list[dict[str, Any]] = [{"role": "user", "content": prompt}]
        tools = registry.openai_tools()

        for round_number in range(1, self.max_tool_rounds + 1):
            try:
                response = self._client.chat.completions.create(
                    model=self.model,
                    messages=messages,
                    tools=tools or openai.NOT_GIVEN,
                )
            except openai.OpenAIError as e:
                raise ChatBackendError(str(e)) from e

            message = response.choices[0].message
            if not message.tool_calls:
                logger.info("Chat completed after %d round(s)", round_number)
                return message.content or ""

            messages.append(assistant_message_to_dict(message))
            for call in message.tool_calls:
                content = self._run_tool_call(call, registry)
                logger.debug("Tool %s -> %s", call.function.name, summarize(content))
                messages.append({"role": "tool", "tool_call_id": call.id, "content": content})

        raise ChatBackendError(f"no final answer after {self.max_tool_rounds} tool rounds")
