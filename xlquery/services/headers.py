"""
Header row resolution.

Builds the ordered column list of a header row and maps column names
back to column indexes, ignoring case.
"""

from xlquery.exceptions.excel_exceptions import ColumnNotFoundError
from xlquery.models.excel_models import HeaderColumn, Sheet
from xlquery.services.coercion import string_of


def build_header_index(sheet: Sheet, header_row: int) -> list[HeaderColumn]:
    """
    Read the header row of a sheet.

    Args:
        sheet: The decoded sheet.
        header_row: 0-based index of the header row.

    Returns:
        Header columns left to right, keyed by their real column index.
        Empty when the header row is absent.
    """
    row = sheet.row(header_row)
    if row is None:
        return []
    return [HeaderColumn(index=index, name=string_of(cell)) for index, cell in row.cells.items()]


def resolve_column(headers: list[HeaderColumn], name: str) -> int | None:
    """Return the index of the first header matching name case-insensitively."""
    wanted = name.lower()
    for header in headers:
        if header.name.lower() == wanted:
            return header.index
    return None


def require_column(headers: list[HeaderColumn], name: str, sheet_name: str | None = None) -> int:
    """
    Resolve a column name or fail.

    Raises:
        ColumnNotFoundError: If no header matches.
    """
    index = resolve_column(headers, name)
    if index is None:
        raise ColumnNotFoundError(
            column=name,
            sheet_name=sheet_name,
            available_columns=[h.name for h in headers],
        )
    return index
