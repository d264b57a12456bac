"""
Custom exceptions for Excel query operations.

This module defines a hierarchy of exceptions for handling the error
conditions of workbook access, query execution and the upload/chat
boundary. All exceptions inherit from ExcelServiceError for consistent
error handling.

Example:
    try:
        service.filter_rows("/data/report.xlsx", "Sheet1", "City", "Wuxi")
    except ColumnNotFoundError as e:
        logger.error("Column error: %s", e.column)
    except ExcelServiceError as e:
        logger.error("General error: %s", e)
"""


class ExcelServiceError(Exception):
    """
    Root of every error raised by workbook access, queries and uploads.

    The tool bridge converts these into sentinel results and the REST
    layer into HTTP responses, both keyed on error_code.

    Attributes:
        message: Text shown to the caller (and to the agent).
        error_code: Stable upper-case identifier, e.g. "SHEET_NOT_FOUND".
        details: Structured context such as paths or available names.
    """

    def __init__(
        self,
        message: str,
        error_code: str = "EXCEL_ERROR",
        details: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict[str, object]:
        """Serialize the error as {"error_code", "message", "details"}."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class WorkbookIOError(ExcelServiceError):
    """
    Base class for failures to open or decode a workbook file.

    Covers missing paths, unreadable files and containers that are not
    a supported spreadsheet format.
    """


class FileNotFoundError(WorkbookIOError):
    """Raised when no file exists at the given workbook path."""

    def __init__(self, file_path: str) -> None:
        self.file_path = file_path
        super().__init__(
            message=f"Excel file not found: {file_path}",
            error_code="FILE_NOT_FOUND",
            details={"file_path": file_path},
        )


class InvalidFileFormatError(WorkbookIOError):
    """
    Raised when the file is not a valid workbook container.

    The container is recognised by its leading bytes, so a file with an
    Excel extension but foreign content is rejected here too.

    Attributes:
        file_path: Path to the invalid file.
        expected_formats: List of supported container formats.
    """

    def __init__(
        self,
        file_path: str,
        expected_formats: list[str] | None = None,
        reason: str | None = None,
    ) -> None:
        self.file_path = file_path
        self.expected_formats = expected_formats or ["xlsx", "xlsm", "xlsb", "xls", "ods"]
        self.reason = reason

        message = f"Invalid Excel file format: {file_path}"
        if reason:
            message += f" - {reason}"

        super().__init__(
            message=message,
            error_code="INVALID_FILE_FORMAT",
            details={
                "file_path": file_path,
                "expected_formats": self.expected_formats,
                "reason": reason,
            },
        )


class ReadError(WorkbookIOError):
    """
    Raised when a workbook exists but cannot be opened or decoded.

    Attributes:
        file_path: Path of the workbook.
        operation: Step that failed, e.g. "open" or "read sheet".
        reason: Message of the underlying error.
    """

    def __init__(
        self,
        file_path: str,
        operation: str = "read",
        reason: str | None = None,
    ) -> None:
        self.file_path = file_path
        self.operation = operation
        self.reason = reason

        message = f"Failed to {operation} Excel file: {file_path}"
        if reason:
            message += f" - {reason}"

        super().__init__(
            message=message,
            error_code="READ_ERROR",
            details={
                "file_path": file_path,
                "operation": operation,
                "reason": reason,
            },
        )


class PermissionError(WorkbookIOError):
    """Raised when the operating system refuses access to the workbook."""

    def __init__(
        self,
        file_path: str,
        operation: str = "read",
    ) -> None:
        self.file_path = file_path
        self.operation = operation

        super().__init__(
            message=f"Permission denied for {operation} on: {file_path}",
            error_code="PERMISSION_DENIED",
            details={
                "file_path": file_path,
                "operation": operation,
            },
        )


class SheetNotFoundError(ExcelServiceError):
    """
    Raised when the specified sheet does not exist in the workbook.

    Attributes:
        sheet_name: Name of the sheet that was not found.
        available_sheets: List of sheets available in the workbook.
    """

    def __init__(
        self,
        sheet_name: str,
        available_sheets: list[str] | None = None,
    ) -> None:
        self.sheet_name = sheet_name
        self.available_sheets = available_sheets or []

        message = f"Sheet not found: {sheet_name}"
        if available_sheets:
            message += f". Available sheets: {', '.join(available_sheets)}"

        super().__init__(
            message=message,
            error_code="SHEET_NOT_FOUND",
            details={
                "sheet_name": sheet_name,
                "available_sheets": self.available_sheets,
            },
        )


class ColumnNotFoundError(ExcelServiceError):
    """
    Raised when a column name cannot be resolved against the header row.

    Attributes:
        column: The requested column name.
        sheet_name: Sheet whose header was searched.
        available_columns: Header names present in the sheet.
    """

    def __init__(
        self,
        column: str,
        sheet_name: str | None = None,
        available_columns: list[str] | None = None,
    ) -> None:
        self.column = column
        self.sheet_name = sheet_name
        self.available_columns = available_columns or []

        message = f"Column not found: {column}"
        if sheet_name:
            message += f" in sheet {sheet_name}"
        if available_columns:
            message += f". Available columns: {', '.join(available_columns)}"

        super().__init__(
            message=message,
            error_code="COLUMN_NOT_FOUND",
            details={
                "column": column,
                "sheet_name": sheet_name,
                "available_columns": self.available_columns,
            },
        )


class PatternError(ExcelServiceError):
    """
    Raised when a search keyword is not a valid regular expression.

    Attributes:
        pattern: The pattern that failed to compile.
        reason: Compiler message.
    """

    def __init__(self, pattern: str, reason: str | None = None) -> None:
        self.pattern = pattern
        self.reason = reason

        message = f"Invalid regular expression: {pattern}"
        if reason:
            message += f" - {reason}"

        super().__init__(
            message=message,
            error_code="INVALID_PATTERN",
            details={"pattern": pattern, "reason": reason},
        )


class EmptyUploadError(ExcelServiceError):
    """Raised when an uploaded file has no content."""

    def __init__(self, filename: str | None = None) -> None:
        self.filename = filename

        super().__init__(
            message=f"Uploaded file is empty: {filename}" if filename else "Uploaded file is empty",
            error_code="EMPTY_UPLOAD",
            details={"filename": filename},
        )


class UploadError(ExcelServiceError):
    """
    Raised when an uploaded file cannot be persisted.

    Attributes:
        file_path: Destination path of the upload.
        reason: Underlying I/O failure.
    """

    def __init__(self, file_path: str, reason: str | None = None) -> None:
        self.file_path = file_path
        self.reason = reason

        message = f"Failed to store uploaded file: {file_path}"
        if reason:
            message += f" - {reason}"

        super().__init__(
            message=message,
            error_code="UPLOAD_ERROR",
            details={"file_path": file_path, "reason": reason},
        )


class ChatBackendError(ExcelServiceError):
    """Raised when the chat-completion backend fails or does not converge."""

    def __init__(self, reason: str) -> None:
        self.reason = reason

        super().__init__(
            message=f"Chat completion failed - {reason}",
            error_code="CHAT_BACKEND_ERROR",
            details={"reason": reason},
        )
