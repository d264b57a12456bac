"""
Calamine adapter for non-OOXML workbooks.

This module provides the CalamineAdapter class that wraps python-calamine
for the containers openpyxl cannot decode. python-calamine is a Rust-based
library reading cached cell values, so formula cells from these formats
surface as their last computed value.

Supported containers:
    - .xls (Excel 97-2003, OLE2 compound file)
    - .xlsb (Excel Binary)
    - .ods (OpenDocument Spreadsheet)

Example:
    adapter = CalamineAdapter()
    with open("/path/to/file.xls", "rb") as handle:
        reader = adapter.open(handle, "/path/to/file.xls")
        try:
            sheet = reader.read_sheet("Sheet1")
        finally:
            reader.close()
"""

import logging
from datetime import date, datetime, time, timedelta
from typing import Any, BinaryIO

from python_calamine import CalamineWorkbook

from xlquery.exceptions.excel_exceptions import InvalidFileFormatError, ReadError
from xlquery.models.excel_models import Cell, Row, Sheet

logger = logging.getLogger(__name__)

# Excel's date system epoch. Excel incorrectly treats 1900 as a leap year
# for compatibility with Lotus 1-2-3, so the epoch is December 30, 1899.
# All Excel serial dates are counted from this date.
EXCEL_EPOCH = datetime(1899, 12, 30)
ONE_DAY = timedelta(days=1)

# calamine renders error cells as their display text.
ERROR_VALUES = frozenset(
    {"#NULL!", "#DIV/0!", "#VALUE!", "#REF!", "#NAME?", "#NUM!", "#N/A", "#GETTING_DATA"}
)


def to_serial_date(value: datetime | date | time | timedelta) -> float:
    """
    Convert a Python date/time value to an Excel serial number.

    Args:
        value: datetime, date, time of day or duration.

    Returns:
        Days since the Excel epoch; time of day and durations are
        fractions of a day.
    """
    if isinstance(value, datetime):
        return (value - EXCEL_EPOCH) / ONE_DAY
    if isinstance(value, date):
        return (datetime.combine(value, time()) - EXCEL_EPOCH) / ONE_DAY
    if isinstance(value, time):
        return (value.hour * 3600 + value.minute * 60 + value.second + value.microsecond / 1e6) / 86400
    return value / ONE_DAY


def decode_value(value: Any) -> Cell:
    """
    Convert a value from calamine to a typed Cell.

    calamine reports empty cells as "" and numbers as int or float.
    Error values become empty cells; a text cell spelling an error code
    exactly is indistinguishable from one and is read as empty too.
    """
    if value is None or value == "" or value in ERROR_VALUES:
        return Cell.empty()

    if isinstance(value, bool):
        return Cell.boolean(value)

    if isinstance(value, (int, float)):
        return Cell.numeric(value)

    if isinstance(value, (datetime, date, time, timedelta)):
        return Cell.numeric(to_serial_date(value))

    return Cell.string(str(value))


class CalamineWorkbookReader:
    """
    An open workbook decoded by calamine.

    Attributes:
        file_path: Path the workbook was opened from.
    """

    def __init__(self, workbook: CalamineWorkbook, file_path: str) -> None:
        self._workbook = workbook
        self.file_path = file_path

    @property
    def sheet_names(self) -> list[str]:
        return list(self._workbook.sheet_names)

    def read_sheet(self, sheet_name: str) -> Sheet:
        """
        Decode one worksheet.

        Args:
            sheet_name: Exact name of the sheet.

        Returns:
            Sheet holding every row with at least one non-empty cell.

        Raises:
            ReadError: If the sheet cannot be decoded.
        """
        try:
            # Keep leading empty rows/columns so indexes match the sheet grid.
            raw_data = self._workbook.get_sheet_by_name(sheet_name).to_python(skip_empty_area=False)
        except Exception as e:
            raise ReadError(
                file_path=self.file_path,
                operation="read sheet",
                reason=str(e),
            ) from e

        rows: dict[int, Row] = {}
        for row_index, raw_row in enumerate(raw_data):
            cells: dict[int, Cell] = {}
            for column_index, value in enumerate(raw_row):
                cell = decode_value(value)
                if cell.value is not None:
                    cells[column_index] = cell
            if cells:
                rows[row_index] = Row(index=row_index, cells=cells)

        return Sheet(
            name=sheet_name,
            rows=rows,
            last_row_index=max(rows, default=-1),
        )

    def close(self) -> None:
        self._workbook.close()


class CalamineAdapter:
    """
    Adapter opening workbooks with python-calamine.

    Example:
        adapter = CalamineAdapter()
        reader = adapter.open(handle, file_path)
    """

    def open(self, handle: BinaryIO, file_path: str) -> CalamineWorkbookReader:
        """
        Open a workbook from a binary handle.

        Args:
            handle: Readable handle positioned at the start.
            file_path: Path of the handle, used for error messages.

        Returns:
            CalamineWorkbookReader for the workbook.

        Raises:
            InvalidFileFormatError: If the file cannot be parsed.
            ReadError: If an unexpected error occurs during opening.
        """
        try:
            workbook = CalamineWorkbook.from_filelike(handle)
        except Exception as e:
            error_msg = str(e).lower()
            if "invalid" in error_msg or "corrupt" in error_msg or "format" in error_msg:
                raise InvalidFileFormatError(
                    file_path=file_path,
                    reason=str(e),
                ) from e
            raise ReadError(
                file_path=file_path,
                operation="open",
                reason=str(e),
            ) from e

        logger.debug("Opened %s with calamine: %d sheet(s)", file_path, len(workbook.sheet_names))
        return CalamineWorkbookReader(workbook, file_path)
