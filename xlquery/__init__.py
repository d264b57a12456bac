"""
xlquery: spreadsheet query engine with agent-callable tools.

This package answers structured queries against spreadsheet workbooks
(row dumps, occurrence counts, row filters, column value frequencies and
workbook metadata) and exposes each query as a tool that an LLM chat
client can select and call.

Architecture:
    - Service Layer pattern: queries are decoupled from transports
    - openpyxl for OOXML workbooks (formula text preserved)
    - python-calamine for .xls/.xlsb/.ods workbooks
    - Explicit tool registry shared by the REST API, the MCP server and
      the upload-and-chat endpoint
"""

__version__ = "0.1.0"
