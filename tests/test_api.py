"""
Tests for the FastAPI REST API.

Tests the HTTP endpoints for Excel queries, tools and the upload chat.
"""

from collections.abc import Generator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from xlquery import main
from xlquery.exceptions.excel_exceptions import ChatBackendError
from xlquery.main import app
from xlquery.services.upload_service import UploadChatService
from xlquery.tools.registry import ToolRegistry

XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


class FakeChatBackend:
    """Chat backend answering with the prompt it received."""

    def __init__(self, error: Exception | None = None) -> None:
        self.error = error

    def complete(self, prompt: str, registry: ToolRegistry) -> str:
        if self.error is not None:
            raise self.error
        return f"echo: {prompt}"


@pytest.fixture
def client(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Generator[TestClient, None, None]:
    """Create a test client with the chat backend disabled."""
    for name in ("XLQUERY_API_KEY", "OPENAI_API_KEY"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)

    with TestClient(app) as c:
        yield c


@pytest.fixture
def chat_client(client: TestClient, temp_dir: Path) -> Generator[TestClient, None, None]:
    """Enable the upload chat endpoint with a fake backend."""
    main.upload_service = UploadChatService(
        registry=main.tool_registry,
        chat_backend=FakeChatBackend(),
        upload_dir=temp_dir / "uploads",
    )
    yield client
    main.upload_service = None


class TestHealthEndpoint:
    """Tests for the health check endpoint."""

    def test_health_check(self, client: TestClient) -> None:
        """Test the health check endpoint."""
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["chat_enabled"] is False
        assert "timestamp" in data


class TestToolEndpoints:
    """Tests for the tool endpoints."""

    def test_list_tools(self, client: TestClient) -> None:
        """Test listing the tool descriptors."""
        response = client.get("/tools")

        assert response.status_code == 200
        names = [tool["name"] for tool in response.json()]
        assert names[0] == "read_excel_sheet"
        assert len(names) == 5

    def test_invoke_tool(self, client: TestClient, sample_excel_file: Path) -> None:
        """Test invoking a tool by name."""
        response = client.post(
            "/tools/count_in_excel",
            json={"file_path": str(sample_excel_file), "keyword": "Wuxi"},
        )

        assert response.status_code == 200
        assert response.json() == {"tool": "count_in_excel", "result": 2}

    def test_invoke_tool_failure_is_sentinel(self, client: TestClient) -> None:
        """Test that tool failures are returned in-band."""
        response = client.post(
            "/tools/filter_excel_rows",
            json={"file_path": "/nonexistent/file.xlsx", "column": "a", "value": "b"},
        )

        assert response.status_code == 200
        assert response.json()["result"] == []

    def test_invoke_unknown_tool(self, client: TestClient) -> None:
        """Test that an unknown tool is a 404."""
        response = client.post("/tools/write_excel", json={})

        assert response.status_code == 404


class TestExcelEndpoints:
    """Tests for the direct query endpoints."""

    def test_metadata(self, client: TestClient, sample_excel_file: Path) -> None:
        """Test getting workbook metadata."""
        response = client.get("/excel/metadata", params={"file_path": str(sample_excel_file)})

        assert response.status_code == 200
        assert response.json()["sheets"][0] == {
            "name": "Sheet1",
            "rows": 5,
            "columns": ["Name", "Age", "City"],
        }

    def test_metadata_not_found(self, client: TestClient) -> None:
        """Test that a missing file is a 404 with an error body."""
        response = client.get("/excel/metadata", params={"file_path": "/nonexistent/file.xlsx"})

        assert response.status_code == 404
        data = response.json()
        assert data["success"] is False
        assert data["error_code"] == "FILE_NOT_FOUND"

    def test_sheet_json(self, client: TestClient, sample_excel_file: Path) -> None:
        """Test reading a sheet as row objects."""
        response = client.post(
            "/excel/sheet-json",
            json={"file_path": str(sample_excel_file), "sheet_name": "Sheet2"},
        )

        assert response.status_code == 200
        assert response.json() == [{"Product": "Widget", "Price": "10.5"}]

    def test_sheet_not_found(self, client: TestClient, sample_excel_file: Path) -> None:
        """Test that an unknown sheet is a 404."""
        response = client.post(
            "/excel/sheet-json",
            json={"file_path": str(sample_excel_file), "sheet_name": "Missing"},
        )

        assert response.status_code == 404
        assert response.json()["error_code"] == "SHEET_NOT_FOUND"
        assert response.json()["success"] is False
        assert response.json()["details"]["available_sheets"] == ["Sheet1", "Sheet2"]

    def test_count(self, client: TestClient, sample_excel_file: Path) -> None:
        """Test counting with a regular expression."""
        response = client.post(
            "/excel/count",
            json={"file_path": str(sample_excel_file), "keyword": "(?i)wuxi", "use_regex": True},
        )

        assert response.status_code == 200
        assert response.json() == {"count": 3}

    def test_count_invalid_pattern(self, client: TestClient, sample_excel_file: Path) -> None:
        """Test that a malformed pattern is a 400."""
        response = client.post(
            "/excel/count",
            json={"file_path": str(sample_excel_file), "keyword": "(", "use_regex": True},
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_PATTERN"

    def test_filter(self, client: TestClient, sample_excel_file: Path) -> None:
        """Test filtering rows."""
        response = client.post(
            "/excel/filter",
            json={"file_path": str(sample_excel_file), "column": "City", "value": "suzhou"},
        )

        assert response.status_code == 200
        assert response.json() == [{"Name": "Bob", "Age": 25.0, "City": "Suzhou"}]

    def test_filter_unknown_column(self, client: TestClient, sample_excel_file: Path) -> None:
        """Test that an unknown column is a 404."""
        response = client.post(
            "/excel/filter",
            json={"file_path": str(sample_excel_file), "column": "Country", "value": "China"},
        )

        assert response.status_code == 404
        assert response.json()["error_code"] == "COLUMN_NOT_FOUND"

    def test_column(self, client: TestClient, sample_excel_file: Path) -> None:
        """Test reading a column."""
        response = client.post(
            "/excel/column",
            json={"file_path": str(sample_excel_file), "column": "name"},
        )

        assert response.status_code == 200
        assert response.json() == ["Alice", "Bob", "Carol", "Dave"]

    def test_frequency(self, client: TestClient, sample_excel_file: Path) -> None:
        """Test column value frequencies."""
        response = client.post(
            "/excel/frequency",
            json={"file_path": str(sample_excel_file), "column": "City"},
        )

        assert response.status_code == 200
        assert response.json()[0] == {"value": "Wuxi", "count": 2}


class TestChatEndpoint:
    """Tests for the upload chat endpoint."""

    def test_chat_disabled_without_backend(self, client: TestClient, sample_excel_file: Path) -> None:
        """Test that the endpoint is unavailable without a configured backend."""
        response = client.post(
            "/api/mcp/chat/excel",
            files={"file": ("sample.xlsx", sample_excel_file.read_bytes(), XLSX_MIME)},
            data={"text": "Summarize"},
        )

        assert response.status_code == 503

    def test_chat_with_upload(self, chat_client: TestClient, sample_excel_file: Path, temp_dir: Path) -> None:
        """Test that the upload is stored and its path reaches the backend."""
        response = chat_client.post(
            "/api/mcp/chat/excel",
            files={"file": ("sample.xlsx", sample_excel_file.read_bytes(), XLSX_MIME)},
            data={"text": "Summarize"},
        )

        assert response.status_code == 200
        data = response.json()
        stored = (temp_dir / "uploads" / "sample.xlsx").absolute()
        assert data["success"] is True
        assert data["file_path"] == str(stored)
        assert data["content"] == f"echo: Summarize\nFile path: {stored}"
        assert stored.read_bytes() == sample_excel_file.read_bytes()

    def test_empty_upload(self, chat_client: TestClient) -> None:
        """Test that an empty upload is a 400."""
        response = chat_client.post(
            "/api/mcp/chat/excel",
            files={"file": ("empty.xlsx", b"", XLSX_MIME)},
            data={"text": "Summarize"},
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "EMPTY_UPLOAD"

    def test_backend_failure(self, chat_client: TestClient, temp_dir: Path) -> None:
        """Test that a backend failure is a 502."""
        main.upload_service = UploadChatService(
            registry=main.tool_registry,
            chat_backend=FakeChatBackend(error=ChatBackendError("model unavailable")),
            upload_dir=temp_dir / "uploads",
        )

        response = chat_client.post(
            "/api/mcp/chat/excel",
            files={"file": ("sample.xlsx", b"data", XLSX_MIME)},
            data={"text": "Summarize"},
        )

        assert response.status_code == 502
        assert response.json()["error_code"] == "CHAT_BACKEND_ERROR"
