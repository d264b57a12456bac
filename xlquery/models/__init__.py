"""
Data models for the Excel query service.

Contains Pydantic models for the decoded workbook, query results,
tool descriptors and request/response validation.
"""

from xlquery.models.excel_models import (
    Cell,
    CellType,
    ChatResponse,
    ColumnQueryRequest,
    CountOccurrencesRequest,
    CountResponse,
    ExcelErrorResponse,
    FilterRowsRequest,
    HeaderColumn,
    Row,
    Sheet,
    SheetJsonRequest,
    SheetMetadata,
    ToolInvocationResponse,
    ValueFrequency,
    WorkbookMetadata,
)
from xlquery.models.tool_models import ParameterType, ToolDescriptor, ToolParameter

__all__ = [
    "Cell",
    "CellType",
    "Row",
    "Sheet",
    "HeaderColumn",
    "ValueFrequency",
    "SheetMetadata",
    "WorkbookMetadata",
    "SheetJsonRequest",
    "CountOccurrencesRequest",
    "ColumnQueryRequest",
    "FilterRowsRequest",
    "CountResponse",
    "ToolInvocationResponse",
    "ChatResponse",
    "ExcelErrorResponse",
    "ParameterType",
    "ToolParameter",
    "ToolDescriptor",
]
