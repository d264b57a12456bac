"""
Agent tool layer.

Wraps the Excel query operations as named, described, typed tools and
converts failures into in-band sentinel values.
"""

from xlquery.tools.excel_tools import build_tool_registry
from xlquery.tools.registry import RegisteredTool, ResultKind, ToolRegistry

__all__ = [
    "ToolRegistry",
    "RegisteredTool",
    "ResultKind",
    "build_tool_registry",
]
