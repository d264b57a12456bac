"""
Custom exceptions for the Excel query service.

Provides type-safe, descriptive exceptions for error handling throughout
the application.
"""

from xlquery.exceptions.excel_exceptions import (
    ChatBackendError,
    ColumnNotFoundError,
    EmptyUploadError,
    ExcelServiceError,
    InvalidFileFormatError,
    PatternError,
    ReadError,
    SheetNotFoundError,
    UploadError,
    WorkbookIOError,
)
from xlquery.exceptions.excel_exceptions import (
    FileNotFoundError as ExcelFileNotFoundError,
)
from xlquery.exceptions.excel_exceptions import (
    PermissionError as ExcelPermissionError,
)

__all__ = [
    "ExcelServiceError",
    "WorkbookIOError",
    "ExcelFileNotFoundError",
    "InvalidFileFormatError",
    "ReadError",
    "ExcelPermissionError",
    "SheetNotFoundError",
    "ColumnNotFoundError",
    "PatternError",
    "EmptyUploadError",
    "UploadError",
    "ChatBackendError",
]
