"""
Pydantic models for Excel query operations.

This module contains the in-memory workbook model produced by the
readers (cells, rows, sheets), the result models of the query
operations, and the request/response models of the HTTP interface.

All models use Pydantic v2 for validation, serialization, and
JSON Schema generation for OpenAPI documentation.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class CellType(str, Enum):
    """
    Enumeration of cell kinds.

    Every decoded cell carries exactly one of these tags. Dates are
    decoded as numeric serial values and error cells as empty.
    """

    STRING = "string"
    NUMERIC = "numeric"
    BOOLEAN = "boolean"
    FORMULA = "formula"
    EMPTY = "empty"


_VALUE_TYPES: dict[CellType, type | None] = {
    CellType.STRING: str,
    CellType.NUMERIC: float,
    CellType.BOOLEAN: bool,
    CellType.FORMULA: str,
    CellType.EMPTY: None,
}


class Cell(BaseModel):
    """
    A single typed cell value.

    Use the named constructors instead of building instances directly:

        Cell.string("Alice")
        Cell.numeric(30)
        Cell.formula("SUM(B2:B4)")

    Attributes:
        cell_type: The tag of the cell.
        value: The raw value matching the tag (None for empty cells).
    """

    model_config = ConfigDict(frozen=True)

    cell_type: CellType = Field(
        default=CellType.EMPTY,
        description="The kind of value stored in the cell",
    )
    value: str | float | bool | None = Field(
        default=None,
        description="Raw cell value; formula cells hold the formula source text",
    )

    @model_validator(mode="after")
    def validate_value_matches_type(self) -> "Cell":
        """Ensure the value agrees with the tag."""
        expected = _VALUE_TYPES[self.cell_type]
        if expected is None:
            if self.value is not None:
                raise ValueError("empty cells cannot carry a value")
        elif type(self.value) is not expected:
            raise ValueError(f"{self.cell_type.value} cells require a {expected.__name__} value")
        return self

    @classmethod
    def string(cls, text: str) -> "Cell":
        return cls(cell_type=CellType.STRING, value=text)

    @classmethod
    def numeric(cls, number: float) -> "Cell":
        return cls(cell_type=CellType.NUMERIC, value=float(number))

    @classmethod
    def boolean(cls, flag: bool) -> "Cell":
        return cls(cell_type=CellType.BOOLEAN, value=bool(flag))

    @classmethod
    def formula(cls, source: str) -> "Cell":
        return cls(cell_type=CellType.FORMULA, value=source)

    @classmethod
    def empty(cls) -> "Cell":
        return cls()


class Row(BaseModel):
    """
    A sparse row of cells.

    Attributes:
        index: The 0-based row index within the sheet.
        cells: Present cells keyed by 0-based column index, in column order.
    """

    index: int = Field(ge=0, description="The 0-based row index")
    cells: dict[int, Cell] = Field(
        default_factory=dict,
        description="Present cells keyed by 0-based column index",
    )

    def cell(self, column: int) -> Cell | None:
        """Return the cell at a column, or None when it is absent."""
        return self.cells.get(column)


class Sheet(BaseModel):
    """
    A decoded worksheet.

    Rows without any content are not stored; they read back as absent.

    Attributes:
        name: The sheet name.
        rows: Present rows keyed by 0-based row index, in row order.
        last_row_index: Highest present row index, -1 for an empty sheet.
    """

    name: str = Field(description="The name of the sheet")
    rows: dict[int, Row] = Field(
        default_factory=dict,
        description="Present rows keyed by 0-based row index",
    )
    last_row_index: int = Field(
        default=-1,
        ge=-1,
        description="Highest present row index, -1 when the sheet has no rows",
    )

    def row(self, index: int) -> Row | None:
        """Return the row at an index, or None when it is absent."""
        return self.rows.get(index)

    def rows_between(self, start: int, stop: int) -> list[Row]:
        """Return the present rows with start <= index <= stop, in order."""
        return [self.rows[i] for i in range(max(start, 0), stop + 1) if i in self.rows]


class HeaderColumn(BaseModel):
    """
    One named column of a header row.

    Attributes:
        index: 0-based column index.
        name: String-coerced header cell (may be empty).
    """

    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=0, description="0-based column index")
    name: str = Field(description="Header name of the column")


class ValueFrequency(BaseModel):
    """
    Occurrence count of one distinct value in a column.

    Attributes:
        value: The trimmed string form of the value.
        count: Number of data rows holding the value.
    """

    value: str = Field(description="Distinct trimmed value")
    count: int = Field(ge=1, description="Number of occurrences")


class SheetMetadata(BaseModel):
    """
    Summary of a worksheet.

    Attributes:
        name: The sheet name.
        rows: Last row index plus one, header included.
        columns: String-coerced cells of row 0.
    """

    name: str = Field(description="The name of the sheet")
    rows: int = Field(ge=0, description="Number of rows, header included")
    columns: list[str] = Field(
        default_factory=list,
        description="Header names read from the first row",
    )


class WorkbookMetadata(BaseModel):
    """
    Summary of every sheet in a workbook.

    Attributes:
        sheets: Sheet summaries in workbook order.
    """

    sheets: list[SheetMetadata] = Field(
        default_factory=list,
        description="Sheet summaries in workbook order",
    )


class SheetQueryRequest(BaseModel):
    """
    Common fields of the direct query endpoints.

    Attributes:
        file_path: Path to the Excel file.
        sheet_name: Sheet to query. If None or empty, the first sheet is used.
    """

    file_path: str = Field(description="Path to the Excel file")
    sheet_name: str | None = Field(
        default=None,
        description="Name of the sheet. If None or empty, uses the first sheet.",
    )


class SheetJsonRequest(SheetQueryRequest):
    """Request model for dumping a sheet as JSON."""

    header_row: int = Field(
        default=0,
        description="0-based index of the header row",
    )


class CountOccurrencesRequest(SheetQueryRequest):
    """Request model for counting keyword occurrences."""

    keyword: str = Field(description="Keyword or regular expression to count")
    use_regex: bool = Field(
        default=False,
        description="Treat keyword as a regular expression",
    )


class ColumnQueryRequest(SheetQueryRequest):
    """Request model for column based queries."""

    column: str = Field(description="Header name of the column (case-insensitive)")


class FilterRowsRequest(ColumnQueryRequest):
    """Request model for filtering rows by a column value."""

    value: str = Field(description="Value to match (case-insensitive)")


class CountResponse(BaseModel):
    """Response model for occurrence counting."""

    count: int = Field(ge=0, description="Number of occurrences found")


class ToolInvocationResponse(BaseModel):
    """
    Response model for tool invocations.

    The result follows the tool's sentinel contract, so failures show up
    as an "Error: ..." string, -1 or an empty list instead of an HTTP error.
    """

    tool: str = Field(description="Name of the invoked tool")
    result: Any = Field(default=None, description="Tool result or sentinel value")


class ChatResponse(BaseModel):
    """
    Response model for the upload-and-chat endpoint.

    Attributes:
        success: Whether the chat call completed.
        file_path: Where the upload was stored.
        content: The model's final answer.
    """

    success: bool = Field(default=True, description="Whether the chat call completed")
    file_path: str = Field(description="Path where the uploaded file was stored")
    content: str = Field(description="Text returned by the chat-completion backend")


class ExcelErrorResponse(BaseModel):
    """
    Standard error response model for the API.

    Attributes:
        success: Always False for error responses.
        error_code: Machine-readable error code.
        message: Human-readable error description.
        details: Additional error context.
    """

    success: bool = Field(
        default=False,
        description="Always False for error responses",
    )
    error_code: str = Field(
        description="Machine-readable error code",
    )
    message: str = Field(
        description="Human-readable error description",
    )
    details: dict | None = Field(
        default=None,
        description="Additional error context",
    )
