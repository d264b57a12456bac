"""
Openpyxl adapter for OOXML workbooks.

This module provides the OpenpyxlAdapter class that decodes .xlsx and
.xlsm containers with openpyxl. Workbooks are opened in read-only mode
without cached values, so formula cells surface as their formula text
instead of a computed result.

Example:
    adapter = OpenpyxlAdapter()
    with open("/path/to/file.xlsx", "rb") as handle:
        reader = adapter.open(handle, "/path/to/file.xlsx")
        try:
            sheet = reader.read_sheet(reader.sheet_names[0])
        finally:
            reader.close()
"""

import logging
import zipfile
from datetime import date, datetime, time, timedelta
from typing import Any, BinaryIO

from openpyxl import load_workbook
from openpyxl.utils.datetime import to_excel
from openpyxl.utils.exceptions import InvalidFileException
from openpyxl.workbook.workbook import Workbook
from openpyxl.worksheet._read_only import ReadOnlyWorksheet

from xlquery.exceptions.excel_exceptions import InvalidFileFormatError, ReadError
from xlquery.models.excel_models import Cell, Row, Sheet

logger = logging.getLogger(__name__)


class OpenpyxlWorkbookReader:
    """
    An open OOXML workbook.

    Attributes:
        file_path: Path the workbook was opened from.
    """

    def __init__(self, workbook: Workbook, file_path: str) -> None:
        self._workbook = workbook
        self.file_path = file_path

    @property
    def sheet_names(self) -> list[str]:
        return list(self._workbook.sheetnames)

    def _decode_cell(self, cell: Any) -> Cell:
        """
        Convert an openpyxl read-only cell to a typed Cell.

        Formula text drops the leading "=". Dates become Excel serial
        numbers and error values become empty cells.
        """
        value = cell.value

        if value is None or cell.data_type == "e":
            return Cell.empty()

        if cell.data_type == "f":
            source = str(getattr(value, "text", value))
            return Cell.formula(source[1:] if source.startswith("=") else source)

        if isinstance(value, bool):
            return Cell.boolean(value)

        if isinstance(value, (int, float)):
            return Cell.numeric(value)

        if isinstance(value, (datetime, date, time, timedelta)):
            return Cell.numeric(to_excel(value, self._workbook.epoch))

        return Cell.string(str(value))

    def read_sheet(self, sheet_name: str) -> Sheet:
        """
        Decode one worksheet.

        Args:
            sheet_name: Exact name of the sheet.

        Returns:
            Sheet holding every row with at least one non-empty cell.
            Chartsheets hold no cells and decode as an empty sheet.

        Raises:
            ReadError: If the sheet XML cannot be decoded.
        """
        try:
            worksheet = self._workbook[sheet_name]
            if not isinstance(worksheet, ReadOnlyWorksheet):
                return Sheet(name=sheet_name, rows={}, last_row_index=-1)

            # Stored dimensions are often stale; scan the whole sheet instead.
            worksheet.reset_dimensions()

            rows: dict[int, Row] = {}
            for row_index, row in enumerate(worksheet.iter_rows()):
                cells: dict[int, Cell] = {}
                for column_index, raw_cell in enumerate(row):
                    cell = self._decode_cell(raw_cell)
                    if cell.value is not None:
                        cells[column_index] = cell
                if cells:
                    rows[row_index] = Row(index=row_index, cells=cells)
        except Exception as e:
            raise ReadError(
                file_path=self.file_path,
                operation="read sheet",
                reason=str(e),
            ) from e

        return Sheet(
            name=sheet_name,
            rows=rows,
            last_row_index=max(rows, default=-1),
        )

    def close(self) -> None:
        self._workbook.close()


class OpenpyxlAdapter:
    """
    Adapter opening OOXML containers with openpyxl.

    The adapter receives an already opened binary handle, so openpyxl
    never looks at the file extension and never owns the file descriptor.

    Example:
        adapter = OpenpyxlAdapter()
        reader = adapter.open(handle, file_path)
    """

    def open(self, handle: BinaryIO, file_path: str) -> OpenpyxlWorkbookReader:
        """
        Open a workbook from a binary handle.

        Args:
            handle: Readable, seekable handle positioned at the start.
            file_path: Path of the handle, used for error messages.

        Returns:
            OpenpyxlWorkbookReader for the workbook.

        Raises:
            InvalidFileFormatError: If the container cannot be parsed.
            ReadError: If an unexpected error occurs during opening.
        """
        try:
            workbook = load_workbook(handle, read_only=True, data_only=False)
        except (InvalidFileException, zipfile.BadZipFile, KeyError) as e:
            raise InvalidFileFormatError(
                file_path=file_path,
                reason=str(e),
            ) from e
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

        logger.debug("Opened %s with openpyxl: %d sheet(s)", file_path, len(workbook.sheetnames))
        return OpenpyxlWorkbookReader(workbook, file_path)
