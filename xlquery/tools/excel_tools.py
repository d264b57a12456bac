"""
Excel query operations exposed as agent tools.

build_tool_registry() binds each ExcelQueryService operation to a
ToolDescriptor whose descriptions tell the agent when to use the tool
and how to fill in its arguments.
"""

from typing import Any

from xlquery.models.tool_models import ParameterType, ToolDescriptor, ToolParameter
from xlquery.services.excel_service import ExcelQueryService
from xlquery.tools.registry import ResultKind, ToolRegistry

FILE_PATH = ToolParameter(
    name="file_path",
    description="Local path of the Excel file (string, required, e.g. /path/to/file.xlsx)",
)
SHEET_NAME = ToolParameter(
    name="sheet_name",
    description="Worksheet name (string, e.g. Sheet1); leave empty to use the first worksheet",
    required=False,
)

READ_EXCEL_SHEET = ToolDescriptor(
    name="read_excel_sheet",
    description="Read all data of a worksheet and return it as a JSON array of row objects keyed by header name",
    parameters=(
        FILE_PATH,
        SHEET_NAME,
        ToolParameter(
            name="header_row",
            description="Header row number (integer, 0-based, e.g. 0 for the first row)",
            param_type=ParameterType.INTEGER,
            required=False,
            default=0,
        ),
    ),
)

COUNT_IN_EXCEL = ToolDescriptor(
    name="count_in_excel",
    description="Count exactly how many times a keyword or number occurs in a worksheet (regular expressions supported)",
    parameters=(
        FILE_PATH,
        SHEET_NAME,
        ToolParameter(
            name="keyword",
            description="Keyword or number to count (string, required)",
        ),
        ToolParameter(
            name="use_regex",
            description="Whether keyword is a regular expression (boolean; false means plain substring match)",
            param_type=ParameterType.BOOLEAN,
            required=False,
            default=False,
        ),
    ),
)

FILTER_EXCEL_ROWS = ToolDescriptor(
    name="filter_excel_rows",
    description="Filter worksheet rows by a column value and return the matching rows",
    parameters=(
        FILE_PATH,
        SHEET_NAME,
        ToolParameter(
            name="column",
            description="Column name to filter on (string, required; row 0 is the header)",
        ),
        ToolParameter(
            name="value",
            description="Value to match (string, required, case-insensitive)",
        ),
    ),
)

COUNT_COLUMN_VALUE_FREQUENCY = ToolDescriptor(
    name="count_column_value_frequency",
    description=(
        "Count how often each value occurs in a worksheet column (read the workbook metadata first); "
        "results are sorted by count, highest first"
    ),
    parameters=(
        FILE_PATH,
        SHEET_NAME,
        ToolParameter(
            name="column",
            description="Column name to analyse (string, required; row 0 is the header)",
        ),
    ),
)

GET_EXCEL_METADATA = ToolDescriptor(
    name="get_excel_metadata",
    description=(
        "Read workbook metadata: worksheet names, column names and row counts "
        "(call this before any other Excel tool)"
    ),
    parameters=(FILE_PATH,),
)


def build_tool_registry(service: ExcelQueryService | None = None) -> ToolRegistry:
    """
    Assemble the frozen registry of Excel tools.

    Args:
        service: Optional ExcelQueryService instance. If None, creates a new one.

    Returns:
        Frozen ToolRegistry holding the five Excel tools.
    """
    service = service or ExcelQueryService()

    def read_excel_sheet(file_path: str, sheet_name: str | None, header_row: int) -> str:
        return service.sheet_to_json(file_path, sheet_name, header_row)

    def count_in_excel(file_path: str, sheet_name: str | None, keyword: str, use_regex: bool) -> int:
        return service.count_occurrences(file_path, sheet_name, keyword, use_regex)

    def filter_excel_rows(
        file_path: str, sheet_name: str | None, column: str, value: str
    ) -> list[dict[str, Any]]:
        return service.filter_rows(file_path, sheet_name, column, value)

    def count_column_value_frequency(
        file_path: str, sheet_name: str | None, column: str
    ) -> list[dict[str, Any]]:
        return [f.model_dump() for f in service.column_value_frequency(file_path, sheet_name, column)]

    def get_excel_metadata(file_path: str) -> str:
        return service.workbook_metadata(file_path)

    registry = ToolRegistry()
    registry.register(READ_EXCEL_SHEET, read_excel_sheet, ResultKind.TEXT)
    registry.register(COUNT_IN_EXCEL, count_in_excel, ResultKind.COUNT)
    registry.register(FILTER_EXCEL_ROWS, filter_excel_rows, ResultKind.ROWS)
    registry.register(COUNT_COLUMN_VALUE_FREQUENCY, count_column_value_frequency, ResultKind.ROWS)
    registry.register(GET_EXCEL_METADATA, get_excel_metadata, ResultKind.TEXT)
    return registry.freeze()
