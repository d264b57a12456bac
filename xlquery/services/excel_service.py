"""
Core Excel query service layer.

This module provides the ExcelQueryService class which encapsulates the
read-only queries answered against a workbook and serves as the single
entry point for the HTTP endpoints, the tool registry and the MCP server.

Every operation opens its own workbook scope through WorkbookAccessor and
releases it before returning; nothing is cached between calls. Typed
ExcelServiceError subclasses propagate to the caller.

Example:
    service = ExcelQueryService()

    metadata = service.workbook_metadata("/path/to/file.xlsx")
    rows = service.filter_rows("/path/to/file.xlsx", "Sheet1", "City", "Wuxi")
    top = service.column_value_frequency("/path/to/file.xlsx", None, "City")
"""

import json
import logging
import re
from collections import Counter
from typing import Any

from xlquery.adapters.workbook_accessor import WorkbookAccessor
from xlquery.exceptions.excel_exceptions import PatternError
from xlquery.models.excel_models import SheetMetadata, ValueFrequency, WorkbookMetadata
from xlquery.services.coercion import CellValue, string_of, text_of, value_of
from xlquery.services.headers import build_header_index, require_column

logger = logging.getLogger(__name__)

# Row 0 is the header for every operation except sheet_to_json.
DEFAULT_HEADER_ROW = 0


class ExcelQueryService:
    """
    Read-only query operations over spreadsheet workbooks.

    Sheet names are matched exactly; None or an empty name selects the
    first sheet. Column names are matched against the header row
    ignoring case.

    Attributes:
        accessor: WorkbookAccessor used to open workbooks.

    Example:
        service = ExcelQueryService()
        count = service.count_occurrences("/path/to/file.xlsx", "Sheet1", "Wuxi")
    """

    def __init__(self, accessor: WorkbookAccessor | None = None) -> None:
        """
        Initialize the ExcelQueryService.

        Args:
            accessor: Optional WorkbookAccessor instance.
                     If None, creates a new instance.
        """
        self.accessor = accessor or WorkbookAccessor()

    def sheet_to_json(
        self,
        file_path: str,
        sheet_name: str | None = None,
        header_row: int = 0,
    ) -> str:
        """
        Dump a sheet as a JSON array of row objects.

        Each present row after the header row becomes one object keyed by
        header name, with string-coerced values. Rows with no content are
        skipped. Duplicate header names collapse, the rightmost wins.

        Args:
            file_path: Path to the Excel file.
            sheet_name: Name of the sheet. If None or empty, uses the first sheet.
            header_row: 0-based index of the header row.

        Returns:
            JSON text; "[]" when the header row is absent.

        Raises:
            WorkbookIOError: If the file cannot be opened.
            SheetNotFoundError: If the specified sheet does not exist.
        """
        with self.accessor.open(file_path) as reader:
            sheet = self.accessor.sheet(reader, sheet_name)

        headers = build_header_index(sheet, header_row)
        records: list[dict[str, str]] = []
        if headers:
            for row in sheet.rows_between(header_row + 1, sheet.last_row_index):
                records.append({h.name: string_of(row.cell(h.index)) for h in headers})

        return json.dumps(records, ensure_ascii=False, separators=(",", ":"))

    def count_occurrences(
        self,
        file_path: str,
        sheet_name: str | None,
        keyword: str,
        use_regex: bool = False,
    ) -> int:
        """
        Count a keyword across every cell of a sheet, header included.

        In substring mode each cell containing the keyword counts once
        (case-sensitive). In regex mode every non-overlapping match counts.

        Args:
            file_path: Path to the Excel file.
            sheet_name: Name of the sheet. If None or empty, uses the first sheet.
            keyword: Substring or regular expression.
            use_regex: Whether keyword is a regular expression.

        Returns:
            The number of occurrences.

        Raises:
            PatternError: If keyword is not a valid regular expression.
            WorkbookIOError: If the file cannot be opened.
            SheetNotFoundError: If the specified sheet does not exist.
        """
        pattern = None
        if use_regex:
            try:
                pattern = re.compile(keyword)
            except re.error as e:
                raise PatternError(pattern=keyword, reason=str(e)) from e

        with self.accessor.open(file_path) as reader:
            sheet = self.accessor.sheet(reader, sheet_name)

        count = 0
        for row in sheet.rows.values():
            for cell in row.cells.values():
                text = string_of(cell)
                if pattern is not None:
                    count += sum(1 for _ in pattern.finditer(text))
                elif keyword in text:
                    count += 1
        return count

    def filter_rows(
        self,
        file_path: str,
        sheet_name: str | None,
        column: str,
        value: str,
    ) -> list[dict[str, Any]]:
        """
        Return the data rows whose column equals a value, ignoring case.

        Row 0 is the header. Each returned row maps header name to the
        native value of every present cell under a header, in column order.

        Args:
            file_path: Path to the Excel file.
            sheet_name: Name of the sheet. If None or empty, uses the first sheet.
            column: Header name of the column to test.
            value: Expected string form of the cell.

        Returns:
            Matching rows in sheet order.

        Raises:
            WorkbookIOError: If the file cannot be opened.
            SheetNotFoundError: If the specified sheet does not exist.
            ColumnNotFoundError: If the column is not in the header row.
        """
        with self.accessor.open(file_path) as reader:
            sheet = self.accessor.sheet(reader, sheet_name)

        headers = build_header_index(sheet, DEFAULT_HEADER_ROW)
        column_index = require_column(headers, column, sheet.name)
        names = {h.index: h.name for h in headers}
        expected = value.lower()

        matches: list[dict[str, Any]] = []
        for row in sheet.rows_between(DEFAULT_HEADER_ROW + 1, sheet.last_row_index):
            if string_of(row.cell(column_index)).lower() != expected:
                continue
            matches.append(
                {names[index]: value_of(cell) for index, cell in row.cells.items() if index in names}
            )
        return matches

    def read_column_data(
        self,
        file_path: str,
        sheet_name: str | None,
        column: str,
    ) -> list[CellValue]:
        """
        Return the native values of one column, header excluded.

        Row 0 is the header. Every present data row contributes one entry,
        None where the row has no cell in the column.

        Args:
            file_path: Path to the Excel file.
            sheet_name: Name of the sheet. If None or empty, uses the first sheet.
            column: Header name of the column.

        Returns:
            Column values in sheet order; empty when the header row is absent.

        Raises:
            WorkbookIOError: If the file cannot be opened.
            SheetNotFoundError: If the specified sheet does not exist.
            ColumnNotFoundError: If the column is not in the header row.
        """
        with self.accessor.open(file_path) as reader:
            sheet = self.accessor.sheet(reader, sheet_name)

        headers = build_header_index(sheet, DEFAULT_HEADER_ROW)
        if not headers:
            return []

        column_index = require_column(headers, column, sheet.name)
        return [
            value_of(row.cell(column_index))
            for row in sheet.rows_between(DEFAULT_HEADER_ROW + 1, sheet.last_row_index)
        ]

    def column_value_frequency(
        self,
        file_path: str,
        sheet_name: str | None,
        column: str,
    ) -> list[ValueFrequency]:
        """
        Count how often each distinct value appears in a column.

        Values are compared by their trimmed string form; blank entries are
        ignored. Results are sorted by count, highest first; equal counts
        keep the order in which the values first appear.

        Args:
            file_path: Path to the Excel file.
            sheet_name: Name of the sheet. If None or empty, uses the first sheet.
            column: Header name of the column.

        Returns:
            One ValueFrequency per distinct value.

        Raises:
            WorkbookIOError: If the file cannot be opened.
            SheetNotFoundError: If the specified sheet does not exist.
            ColumnNotFoundError: If the column is not in the header row.
        """
        values = self.read_column_data(file_path, sheet_name, column)
        counts = Counter(text for text in (text_of(v).strip() for v in values) if text)
        return [ValueFrequency(value=text, count=count) for text, count in counts.most_common()]

    def workbook_metadata(self, file_path: str) -> str:
        """
        Describe every sheet of a workbook.

        Args:
            file_path: Path to the Excel file.

        Returns:
            JSON text of the form
            {"sheets":[{"name":..,"rows":..,"columns":[..]}]} where rows is
            the last row index plus one and columns is row 0.

        Raises:
            WorkbookIOError: If the file cannot be opened.
        """
        sheets: list[SheetMetadata] = []
        with self.accessor.open(file_path) as reader:
            for name in reader.sheet_names:
                sheet = reader.read_sheet(name)
                sheets.append(
                    SheetMetadata(
                        name=sheet.name,
                        rows=sheet.last_row_index + 1,
                        columns=[h.name for h in build_header_index(sheet, DEFAULT_HEADER_ROW)],
                    )
                )

        return WorkbookMetadata(sheets=sheets).model_dump_json()
