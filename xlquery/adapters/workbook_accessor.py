"""
Scoped workbook access.

WorkbookAccessor is the single way query code opens a workbook. It
validates the path, detects the container from its leading bytes (never
from the extension), hands the open file to the matching reader and
guarantees that the reader and the file handle are released when the
``with`` block exits, whether it returns normally or raises.

Example:
    accessor = WorkbookAccessor()
    with accessor.open("/path/to/file.xlsx") as reader:
        sheet = accessor.sheet(reader, "Sheet1")
"""

import logging
import zipfile
from collections.abc import Iterator
from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from typing import BinaryIO, Protocol

from xlquery.adapters.calamine_adapter import CalamineAdapter
from xlquery.adapters.openpyxl_adapter import OpenpyxlAdapter
from xlquery.exceptions.excel_exceptions import (
    FileNotFoundError as ExcelFileNotFoundError,
)
from xlquery.exceptions.excel_exceptions import InvalidFileFormatError, ReadError, SheetNotFoundError
from xlquery.exceptions.excel_exceptions import (
    PermissionError as ExcelPermissionError,
)
from xlquery.models.excel_models import Sheet

logger = logging.getLogger(__name__)

ZIP_SIGNATURE = b"PK\x03\x04"
OLE2_SIGNATURE = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"
ODS_MIMETYPE = b"application/vnd.oasis.opendocument.spreadsheet"


class ContainerFormat(str, Enum):
    """Workbook containers recognised by their signature."""

    XLSX = "xlsx"
    XLSB = "xlsb"
    XLS = "xls"
    ODS = "ods"


class WorkbookReader(Protocol):
    """An open workbook as returned by the adapters."""

    file_path: str

    @property
    def sheet_names(self) -> list[str]: ...

    def read_sheet(self, sheet_name: str) -> Sheet: ...

    def close(self) -> None: ...


class WorkbookAccessor:
    """
    Opens workbooks for the duration of a single operation.

    OOXML workbooks (.xlsx/.xlsm) go to openpyxl so formula text is
    available; every other supported container goes to calamine.

    Attributes:
        ooxml_adapter: Adapter for xlsx/xlsm containers.
        fallback_adapter: Adapter for xls, xlsb and ods containers.
    """

    def __init__(
        self,
        ooxml_adapter: OpenpyxlAdapter | None = None,
        fallback_adapter: CalamineAdapter | None = None,
    ) -> None:
        self.ooxml_adapter = ooxml_adapter or OpenpyxlAdapter()
        self.fallback_adapter = fallback_adapter or CalamineAdapter()

    def _validate_file_path(self, file_path: str) -> Path:
        """
        Validate that the path exists and is a regular file.

        Raises:
            ExcelFileNotFoundError: If the file does not exist.
            ReadError: If the path is not a regular file.
        """
        path = Path(file_path)

        if not path.exists():
            raise ExcelFileNotFoundError(file_path)

        if not path.is_file():
            raise ReadError(
                file_path=file_path,
                operation="open",
                reason="Path is not a regular file",
            )

        return path

    def detect_container(self, handle: BinaryIO, file_path: str) -> ContainerFormat:
        """
        Identify the container format from the file content.

        The handle is rewound to the start before returning.

        Raises:
            InvalidFileFormatError: If the content is not a known workbook container.
        """
        signature = handle.read(len(OLE2_SIGNATURE))
        handle.seek(0)

        if signature.startswith(OLE2_SIGNATURE):
            return ContainerFormat.XLS

        if not signature.startswith(ZIP_SIGNATURE):
            raise InvalidFileFormatError(
                file_path=file_path,
                reason="Content is neither a ZIP nor an OLE2 container",
            )

        try:
            with zipfile.ZipFile(handle) as archive:
                names = set(archive.namelist())
                mimetype = archive.read("mimetype").strip() if "mimetype" in names else b""
        except zipfile.BadZipFile as e:
            raise InvalidFileFormatError(file_path=file_path, reason=str(e)) from e
        finally:
            handle.seek(0)

        if "xl/workbook.xml" in names:
            return ContainerFormat.XLSX
        if "xl/workbook.bin" in names:
            return ContainerFormat.XLSB
        if mimetype == ODS_MIMETYPE:
            return ContainerFormat.ODS

        raise InvalidFileFormatError(
            file_path=file_path,
            reason="ZIP archive does not contain a spreadsheet",
        )

    @contextmanager
    def open(self, file_path: str) -> Iterator[WorkbookReader]:
        """
        Open a workbook for the duration of a ``with`` block.

        Args:
            file_path: Path to the workbook file.

        Yields:
            WorkbookReader for the workbook.

        Raises:
            ExcelFileNotFoundError: If the file does not exist.
            ExcelPermissionError: If the file cannot be read due to permissions.
            InvalidFileFormatError: If the file is not a supported container.
            ReadError: If the file cannot be opened or decoded.
        """
        path = self._validate_file_path(file_path)

        try:
            handle = path.open("rb")
        except PermissionError as e:
            raise ExcelPermissionError(file_path=file_path, operation="read") from e
        except OSError as e:
            raise ReadError(file_path=file_path, operation="open", reason=str(e)) from e

        with handle:
            container = self.detect_container(handle, file_path)
            adapter = self.ooxml_adapter if container is ContainerFormat.XLSX else self.fallback_adapter
            reader = adapter.open(handle, file_path)
            logger.debug("Opened %s as %s", file_path, container.value)
            try:
                yield reader
            finally:
                reader.close()
                logger.debug("Closed %s", file_path)

    def sheet(self, reader: WorkbookReader, sheet_name: str | None = None) -> Sheet:
        """
        Decode a sheet of an open workbook.

        Args:
            reader: The open workbook.
            sheet_name: Exact (case-sensitive) sheet name. If None or empty,
                       the first sheet is used.

        Returns:
            The decoded Sheet.

        Raises:
            SheetNotFoundError: If no sheet has that name, or the workbook has no sheets.
        """
        available_sheets = reader.sheet_names

        if not sheet_name:
            if not available_sheets:
                raise SheetNotFoundError(
                    sheet_name="(first sheet)",
                    available_sheets=[],
                )
            target_sheet_name = available_sheets[0]
        elif sheet_name not in available_sheets:
            raise SheetNotFoundError(
                sheet_name=sheet_name,
                available_sheets=available_sheets,
            )
        else:
            target_sheet_name = sheet_name

        return reader.read_sheet(target_sheet_name)
