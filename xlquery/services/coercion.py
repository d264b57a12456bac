"""
Cell value coercion.

Two views of a cell are needed: a native value (string, float, bool,
formula text or None) for row objects handed to programmatic consumers,
and a string for JSON dumps, searching and comparisons.
"""

from collections.abc import Callable

from xlquery.models.excel_models import Cell, CellType

CellValue = str | float | bool | None

# One entry per CellType; test_coercion checks the table stays complete.
VALUE_READERS: dict[CellType, Callable[[Cell], CellValue]] = {
    CellType.STRING: lambda cell: cell.value,
    CellType.NUMERIC: lambda cell: float(cell.value),
    CellType.BOOLEAN: lambda cell: bool(cell.value),
    CellType.FORMULA: lambda cell: cell.value,
    CellType.EMPTY: lambda cell: None,
}


def value_of(cell: Cell | None) -> CellValue:
    """
    Return the native value of a cell.

    Args:
        cell: The cell, or None for an absent cell reference.

    Returns:
        str for string cells, float for numeric cells, bool for boolean
        cells, the formula source text for formula cells and None for
        empty or absent cells.
    """
    if cell is None:
        return None
    return VALUE_READERS[cell.cell_type](cell)


def text_of(value: CellValue) -> str:
    """
    Format a native cell value as text.

    Floats keep their canonical Python form ("30.0", "0.1", "1e+16"),
    booleans are lowercase.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return repr(value)
    return str(value)


def string_of(cell: Cell | None) -> str:
    """Return the string form of a cell; empty string for empty or absent cells."""
    return text_of(value_of(cell))
