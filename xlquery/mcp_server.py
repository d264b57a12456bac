"""
MCP (Model Context Protocol) server for Excel queries.

This module exposes the tool registry through the MCP protocol so that
AI agents can call the Excel tools directly. It serves the same tools,
with the same sentinel semantics, as the chat endpoint of the REST API.

MCP Tools:
    - read_excel_sheet: Dump a worksheet as JSON row objects
    - count_in_excel: Count keyword or regex occurrences
    - filter_excel_rows: Filter rows by a column value
    - count_column_value_frequency: Value frequencies of a column
    - get_excel_metadata: Sheet names, columns and row counts

Example:
    To run the MCP server:
        python -m xlquery.mcp_server

    Or programmatically:
        from xlquery.mcp_server import run_mcp_server
        run_mcp_server()
"""

import asyncio
import logging
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import (
    TextContent,
    Tool,
)

from xlquery.chat.backend import render_tool_result
from xlquery.config import load_settings
from xlquery.logger import setup_logging
from xlquery.tools.excel_tools import build_tool_registry
from xlquery.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


class MCPExcelServer:
    """
    MCP server implementation for Excel queries.

    This class wraps a ToolRegistry and exposes it through the MCP protocol.

    The server implements:
        - list_tools: Returns the registry descriptors as MCP tools
        - call_tool: Invokes a tool and returns its result as text

    Attributes:
        registry: The tool registry served.
        server: The MCP Server instance.

    Example:
        mcp_server = MCPExcelServer()
        await mcp_server.run()
    """

    def __init__(self, registry: ToolRegistry | None = None) -> None:
        """
        Initialize the MCP Excel Server.

        Args:
            registry: Optional ToolRegistry. If None, builds the Excel tools.
        """
        self.registry = registry or build_tool_registry()
        self.server = Server("xlquery-mcp-server")
        self._setup_handlers()

    def _setup_handlers(self) -> None:
        """Set up MCP request handlers."""

        @self.server.list_tools()
        async def list_tools() -> list[Tool]:
            """Return the list of available Excel tools."""
            return self._get_tools()

        @self.server.call_tool()
        async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
            """Execute a tool and return the result."""
            return await self._execute_tool(name, arguments)

    def _get_tools(self) -> list[Tool]:
        """
        Get the list of available Excel tools.

        Returns:
            List of MCP Tool definitions, in registry order.
        """
        return [
            Tool(
                name=descriptor.name,
                description=descriptor.description,
                inputSchema=descriptor.input_schema(),
            )
            for descriptor in self.registry.descriptors()
        ]

    async def _execute_tool(self, name: str, arguments: dict[str, Any] | None) -> list[TextContent]:
        """
        Execute a tool by name with the given arguments.

        The registry never raises, so tool failures reach the agent as the
        tool's sentinel value.

        Args:
            name: The name of the tool to execute.
            arguments: The arguments to pass to the tool.

        Returns:
            A single TextContent holding the result.
        """
        result = await asyncio.to_thread(self.registry.invoke, name, arguments or {})
        return [TextContent(type="text", text=render_tool_result(result))]

    async def run(self) -> None:
        """
        Run the MCP server using stdio transport.

        This method starts the server and blocks until it is terminated.
        It uses stdin/stdout for communication with the MCP client.
        """
        async with stdio_server() as (read_stream, write_stream):
            await self.server.run(
                read_stream,
                write_stream,
                self.server.create_initialization_options(),
            )


def run_mcp_server() -> None:
    """
    Run the MCP Excel server.

    This is the entry point for running the MCP server from the command line.
    Logs go to stderr; stdout carries the protocol.

    Example:
        python -m xlquery.mcp_server
    """
    settings = load_settings()
    setup_logging(settings.log_level)
    server = MCPExcelServer()
    logger.info("Starting MCP server with tools: %s", ", ".join(server.registry.names()))
    asyncio.run(server.run())


if __name__ == "__main__":
    run_mcp_server()
