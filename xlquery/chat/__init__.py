"""
Chat-completion backends.

The upload bridge talks to a ChatBackend; OpenAIChatClient is the
implementation on the OpenAI chat-completions API.
"""

from xlquery.chat.backend import ChatBackend, render_tool_result
from xlquery.chat.openai_client import OpenAIChatClient

__all__ = [
    "ChatBackend",
    "OpenAIChatClient",
    "render_tool_result",
]
