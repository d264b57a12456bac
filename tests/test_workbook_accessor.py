"""
Tests for the WorkbookAccessor.

Tests path validation, container detection and the release of readers.
"""

import shutil
import zipfile
from pathlib import Path

import pytest

from xlquery.adapters.openpyxl_adapter import OpenpyxlAdapter
from xlquery.adapters.workbook_accessor import ContainerFormat, WorkbookAccessor
from xlquery.exceptions.excel_exceptions import (
    FileNotFoundError as ExcelFileNotFoundError,
    InvalidFileFormatError,
    ReadError,
    SheetNotFoundError,
)
from xlquery.models.excel_models import Cell, Sheet


class RecordingReader:
    """Reader stand-in remembering whether it was closed."""

    def __init__(self, file_path: str) -> None:
        self.file_path = file_path
        self.closed = False

    @property
    def sheet_names(self) -> list[str]:
        return []

    def read_sheet(self, sheet_name: str) -> Sheet:
        raise AssertionError("not expected")

    def close(self) -> None:
        self.closed = True


class RecordingAdapter:
    """Adapter stand-in handing out RecordingReaders."""

    def __init__(self) -> None:
        self.readers: list[RecordingReader] = []

    def open(self, handle, file_path: str) -> RecordingReader:
        reader = RecordingReader(file_path)
        self.readers.append(reader)
        return reader


@pytest.fixture
def accessor() -> WorkbookAccessor:
    return WorkbookAccessor()


class TestContainerDetection:
    """Tests for signature-based format detection."""

    def test_detects_xlsx(self, accessor: WorkbookAccessor, sample_excel_file: Path) -> None:
        """Test that an xlsx file is recognised as OOXML."""
        with open(sample_excel_file, "rb") as handle:
            assert accessor.detect_container(handle, str(sample_excel_file)) is ContainerFormat.XLSX
            assert handle.tell() == 0

    def test_detects_ole2_as_xls(self, accessor: WorkbookAccessor, temp_dir: Path) -> None:
        """Test that the OLE2 signature means a legacy xls workbook."""
        file_path = temp_dir / "legacy.xls"
        file_path.write_bytes(b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1" + b"\x00" * 504)

        with open(file_path, "rb") as handle:
            assert accessor.detect_container(handle, str(file_path)) is ContainerFormat.XLS

    def test_detects_ods(self, accessor: WorkbookAccessor, temp_dir: Path) -> None:
        """Test that the ODS mimetype entry is recognised."""
        file_path = temp_dir / "sheet.ods"
        with zipfile.ZipFile(file_path, "w") as archive:
            archive.writestr("mimetype", "application/vnd.oasis.opendocument.spreadsheet")
            archive.writestr("content.xml", "<office:document-content/>")

        with open(file_path, "rb") as handle:
            assert accessor.detect_container(handle, str(file_path)) is ContainerFormat.ODS

    def test_extension_is_ignored(
        self,
        accessor: WorkbookAccessor,
        sample_excel_file: Path,
        temp_dir: Path,
    ) -> None:
        """Test that a workbook with a misleading extension still opens."""
        renamed = temp_dir / "report.bin"
        shutil.copy(sample_excel_file, renamed)

        with accessor.open(str(renamed)) as reader:
            assert reader.sheet_names == ["Sheet1", "Sheet2"]

    def test_text_file_is_rejected(self, accessor: WorkbookAccessor, temp_dir: Path) -> None:
        """Test that a text file named .xlsx is not a workbook."""
        file_path = temp_dir / "notes.xlsx"
        file_path.write_text("just some text")

        with pytest.raises(InvalidFileFormatError):
            with accessor.open(str(file_path)):
                pass

    def test_zip_without_workbook_is_rejected(self, accessor: WorkbookAccessor, temp_dir: Path) -> None:
        """Test that an arbitrary ZIP archive is not a workbook."""
        file_path = temp_dir / "archive.xlsx"
        with zipfile.ZipFile(file_path, "w") as archive:
            archive.writestr("readme.txt", "hello")

        with pytest.raises(InvalidFileFormatError) as exc_info:
            with accessor.open(str(file_path)):
                pass

        assert exc_info.value.error_code == "INVALID_FILE_FORMAT"


class TestOpen:
    """Tests for opening and releasing workbooks."""

    def test_missing_file(self, accessor: WorkbookAccessor) -> None:
        """Test that a missing path raises ExcelFileNotFoundError."""
        with pytest.raises(ExcelFileNotFoundError):
            with accessor.open("/nonexistent/file.xlsx"):
                pass

    def test_directory(self, accessor: WorkbookAccessor, temp_dir: Path) -> None:
        """Test that a directory path raises ReadError."""
        with pytest.raises(ReadError):
            with accessor.open(str(temp_dir)):
                pass

    def test_reader_closed_after_block(self, sample_excel_file: Path) -> None:
        """Test that the reader is closed when the block exits normally."""
        adapter = RecordingAdapter()
        accessor = WorkbookAccessor(ooxml_adapter=adapter)

        with accessor.open(str(sample_excel_file)) as reader:
            assert reader.closed is False

        assert adapter.readers[0].closed is True

    def test_reader_closed_on_error(self, sample_excel_file: Path) -> None:
        """Test that the reader is closed when the block raises."""
        adapter = RecordingAdapter()
        accessor = WorkbookAccessor(ooxml_adapter=adapter)

        with pytest.raises(SheetNotFoundError):
            with accessor.open(str(sample_excel_file)) as reader:
                accessor.sheet(reader, "Sheet1")

        assert adapter.readers[0].closed is True

    def test_uses_calamine_for_ods(self, ods_file_with_xlsx_name: Path) -> None:
        """Test that an OpenDocument file named .xlsx goes to the fallback adapter."""
        ooxml = RecordingAdapter()
        accessor = WorkbookAccessor(ooxml_adapter=ooxml)

        with accessor.open(str(ods_file_with_xlsx_name)) as reader:
            sheet = accessor.sheet(reader)

        assert ooxml.readers == []
        assert sheet.name == "People"
        assert sheet.row(2).cell(1) == Cell.numeric(4)

    def test_uses_openpyxl_for_xlsx(self, sample_excel_file: Path) -> None:
        """Test that OOXML containers go to the OOXML adapter."""
        ooxml = RecordingAdapter()
        fallback = RecordingAdapter()
        accessor = WorkbookAccessor(ooxml_adapter=ooxml, fallback_adapter=fallback)

        with accessor.open(str(sample_excel_file)):
            pass

        assert len(ooxml.readers) == 1
        assert fallback.readers == []


class TestSheetSelection:
    """Tests for picking a sheet of an open workbook."""

    def test_first_sheet_by_default(self, accessor: WorkbookAccessor, sample_excel_file: Path) -> None:
        """Test that no name selects the first sheet."""
        with accessor.open(str(sample_excel_file)) as reader:
            assert accessor.sheet(reader).name == "Sheet1"
            assert accessor.sheet(reader, "").name == "Sheet1"

    def test_exact_name(self, accessor: WorkbookAccessor, sample_excel_file: Path) -> None:
        """Test selecting a sheet by name."""
        with accessor.open(str(sample_excel_file)) as reader:
            assert accessor.sheet(reader, "Sheet2").name == "Sheet2"

    def test_unknown_name(self, accessor: WorkbookAccessor, sample_excel_file: Path) -> None:
        """Test that an unknown name lists the available sheets."""
        with accessor.open(str(sample_excel_file)) as reader:
            with pytest.raises(SheetNotFoundError) as exc_info:
                accessor.sheet(reader, "Missing")

        assert exc_info.value.details["available_sheets"] == ["Sheet1", "Sheet2"]

    def test_no_sheets(self, sample_excel_file: Path) -> None:
        """Test that a workbook without sheets has no first sheet."""
        accessor = WorkbookAccessor(ooxml_adapter=RecordingAdapter())

        with accessor.open(str(sample_excel_file)) as reader:
            with pytest.raises(SheetNotFoundError):
                accessor.sheet(reader)

    def test_default_adapters(self, accessor: WorkbookAccessor) -> None:
        """Test the default adapter wiring."""
        assert isinstance(accessor.ooxml_adapter, OpenpyxlAdapter)
