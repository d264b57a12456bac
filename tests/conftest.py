"""
Test fixtures and utilities for the Excel query tests.

This module provides shared fixtures including temporary workbooks
written with xlsxwriter, service instances and the tool registry.
"""

import tempfile
from collections.abc import Callable, Generator
from datetime import datetime
from pathlib import Path

import pytest
import xlsxwriter
from odf.opendocument import OpenDocumentSpreadsheet
from odf.table import Table, TableCell, TableRow
from odf.text import P

from xlquery.services.excel_service import ExcelQueryService
from xlquery.tools.excel_tools import build_tool_registry
from xlquery.tools.registry import ToolRegistry


def write_workbook(file_path: Path, sheets: dict[str, list[list]]) -> Path:
    """
    Write a workbook where each sheet is a grid of rows.

    None leaves a cell blank; booleans, numbers and strings get their
    native cell type and strings starting with "=" become formulas.
    """
    workbook = xlsxwriter.Workbook(str(file_path))
    try:
        for sheet_name, rows in sheets.items():
            worksheet = workbook.add_worksheet(sheet_name)
            for row_index, row in enumerate(rows):
                for column_index, value in enumerate(row):
                    if value is None:
                        continue
                    if isinstance(value, str) and value.startswith("="):
                        worksheet.write_formula(row_index, column_index, value)
                    elif isinstance(value, str):
                        worksheet.write_string(row_index, column_index, value)
                    else:
                        worksheet.write(row_index, column_index, value)
    finally:
        workbook.close()
    return file_path


@pytest.fixture
def excel_service() -> ExcelQueryService:
    """
    Create an ExcelQueryService instance for testing.

    Returns:
        ExcelQueryService instance.
    """
    return ExcelQueryService()


@pytest.fixture
def tool_registry(excel_service: ExcelQueryService) -> ToolRegistry:
    """
    Build the Excel tool registry on the test service.

    Returns:
        Frozen ToolRegistry.
    """
    return build_tool_registry(excel_service)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """
    Create a temporary directory for test files.

    Yields:
        Path to the temporary directory.
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_excel_file(temp_dir: Path) -> Path:
    """
    Create a two-sheet workbook.

    Sheet1 holds people with their age and city, Sheet2 a product list.

    Returns:
        Path to the sample Excel file.
    """
    return write_workbook(
        temp_dir / "sample.xlsx",
        {
            "Sheet1": [
                ["Name", "Age", "City"],
                ["Alice", 30, "Wuxi"],
                ["Bob", 25, "Suzhou"],
                ["Carol", 35, "wuxi"],
                ["Dave", 28, "Wuxi"],
            ],
            "Sheet2": [
                ["Product", "Price"],
                ["Widget", 10.5],
            ],
        },
    )


@pytest.fixture
def sparse_excel_file(temp_dir: Path) -> Path:
    """
    Create a sheet with missing rows and missing cells.

    Rows 1, 3 and 4 are absent; row 2 has no cell in column B.

    Returns:
        Path to the sparse Excel file.
    """
    return write_workbook(
        temp_dir / "sparse.xlsx",
        {
            "Sparse": [
                ["Key", "Value", None, "Note"],
                [],
                ["k1", None, None, "first"],
                [],
                [],
                ["k2", 2, "orphan", "second"],
            ],
        },
    )


@pytest.fixture
def typed_excel_file(temp_dir: Path) -> Path:
    """
    Create a sheet with boolean, formula and date cells.

    Returns:
        Path to the typed Excel file.
    """
    file_path = temp_dir / "typed.xlsx"
    workbook = xlsxwriter.Workbook(str(file_path))
    try:
        worksheet = workbook.add_worksheet("Calc")
        date_format = workbook.add_format({"num_format": "yyyy-mm-dd"})
        worksheet.write_row(0, 0, ["Flag", "Total", "Day"])
        worksheet.write_boolean(1, 0, True)
        worksheet.write_formula(1, 1, "=SUM(1,2)")
        worksheet.write_datetime(1, 2, datetime(2024, 1, 1), date_format)
        worksheet.write_boolean(2, 0, False)
        worksheet.write_number(2, 1, 5)
    finally:
        workbook.close()
    return file_path


@pytest.fixture
def values_excel_file(temp_dir: Path) -> Path:
    """
    Create a single-column sheet used for counting and frequency checks.

    Returns:
        Path to the Excel file.
    """
    return write_workbook(
        temp_dir / "values.xlsx",
        {
            "Values": [
                ["Val"],
                ["x"],
                ["ax"],
                ["b"],
                ["X"],
            ],
            "Letters": [
                ["Letter"],
                ["a"],
                ["a"],
                ["b"],
                ["  "],
                ["a"],
            ],
        },
    )


@pytest.fixture
def empty_sheet_file(temp_dir: Path) -> Path:
    """
    Create a workbook whose only sheet has no cells.

    Returns:
        Path to the Excel file.
    """
    return write_workbook(temp_dir / "empty.xlsx", {"Empty": []})


@pytest.fixture
def make_workbook(temp_dir: Path) -> Callable[[str, dict[str, list[list]]], Path]:
    """
    Return a factory writing workbooks into the temporary directory.

    Returns:
        Callable taking a file name and the sheets to write.
    """

    def factory(file_name: str, sheets: dict[str, list[list]]) -> Path:
        return write_workbook(temp_dir / file_name, sheets)

    return factory


@pytest.fixture
def chartsheet_excel_file(temp_dir: Path) -> Path:
    """
    Create a workbook whose first sheet is a chartsheet.

    Returns:
        Path to the Excel file.
    """
    file_path = temp_dir / "chart.xlsx"
    workbook = xlsxwriter.Workbook(str(file_path))
    try:
        chartsheet = workbook.add_chartsheet("Chart1")
        worksheet = workbook.add_worksheet("Data")
        worksheet.write_row(0, 0, ["Name", "Age"])
        worksheet.write_row(1, 0, ["Alice", 30])
        worksheet.write_row(2, 0, ["Bob", 25])

        chart = workbook.add_chart({"type": "column"})
        chart.add_series({"categories": "=Data!$A$2:$A$3", "values": "=Data!$B$2:$B$3"})
        chartsheet.set_chart(chart)
    finally:
        workbook.close()
    return file_path


@pytest.fixture
def ods_file_with_xlsx_name(temp_dir: Path) -> Path:
    """
    Create an OpenDocument spreadsheet saved under a .xlsx name.

    Returns:
        Path to the spreadsheet.
    """
    file_path = temp_dir / "people.xlsx"

    document = OpenDocumentSpreadsheet()
    table = Table(name="People")
    for row in [["Name", "Age"], ["Alice", 30], ["Bob", 4]]:
        table_row = TableRow()
        for value in row:
            if isinstance(value, str):
                cell = TableCell(valuetype="string")
            else:
                cell = TableCell(valuetype="float", value=str(value))
            cell.addElement(P(text=str(value)))
            table_row.addElement(cell)
        table.addElement(table_row)
    document.spreadsheet.addElement(table)
    document.save(str(file_path))

    return file_path
