"""
FastAPI application for the Excel query service.

This module provides the REST API endpoints. It exposes the query
operations directly (typed errors become HTTP errors), the tool registry
(failures come back as sentinel values, exactly as an agent sees them),
and the upload-and-chat endpoint that lets a chat model answer a
question about an uploaded workbook.

API Endpoints:
    - GET /health: Health check
    - GET /tools: List tool descriptors
    - POST /tools/{tool_name}: Invoke a tool
    - GET /excel/metadata: Workbook metadata
    - POST /excel/sheet-json: Sheet rows as JSON objects
    - POST /excel/count: Count keyword occurrences
    - POST /excel/filter: Filter rows by column value
    - POST /excel/column: Values of a column
    - POST /excel/frequency: Value frequencies of a column
    - POST /api/mcp/chat/excel: Upload a workbook and ask a question about it

Example:
    To run the server:
        uvicorn xlquery.main:app --reload

    Or programmatically:
        from xlquery.main import run_server
        run_server()
"""

import json
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Annotated, Any

import uvicorn
from fastapi import Body, FastAPI, File, Form, HTTPException, Query, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from xlquery import __version__
from xlquery.chat.openai_client import OpenAIChatClient
from xlquery.config import load_settings
from xlquery.exceptions.excel_exceptions import ExcelServiceError
from xlquery.logger import setup_logging
from xlquery.models.excel_models import (
    ChatResponse,
    ColumnQueryRequest,
    CountOccurrencesRequest,
    CountResponse,
    ExcelErrorResponse,
    FilterRowsRequest,
    SheetJsonRequest,
    ToolInvocationResponse,
    ValueFrequency,
    WorkbookMetadata,
)
from xlquery.models.tool_models import ToolDescriptor
from xlquery.services.excel_service import ExcelQueryService
from xlquery.services.upload_service import UploadChatService
from xlquery.tools.excel_tools import build_tool_registry
from xlquery.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

excel_service: ExcelQueryService | None = None
tool_registry: ToolRegistry | None = None
upload_service: UploadChatService | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Loads settings and wires the service, the tool registry and, when an
    API key is configured, the upload-and-chat service.

    Args:
        app: The FastAPI application instance.
    """
    global excel_service, tool_registry, upload_service
    settings = load_settings()
    setup_logging(settings.log_level)

    excel_service = ExcelQueryService()
    tool_registry = build_tool_registry(excel_service)
    if settings.chat_enabled:
        upload_service = UploadChatService(
            registry=tool_registry,
            chat_backend=OpenAIChatClient.from_settings(settings),
            upload_dir=settings.upload_dir,
        )
    else:
        logger.warning("No chat API key configured; /api/mcp/chat/excel is disabled")
    yield
    excel_service = None
    tool_registry = None
    upload_service = None


app = FastAPI(
    title="Excel Query Service",
    description="""
    Spreadsheet query engine exposing its queries as LLM-callable tools.

    ## Features

    - **Queries**: sheet dump, keyword counting, row filtering, column value frequency, metadata
    - **Tools**: the same queries as agent tools with in-band error values
    - **Chat**: upload a workbook and let a chat model answer questions with the tools
    - **Formats**: .xlsx/.xlsm via openpyxl, .xls/.xlsb/.ods via python-calamine
    """,
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

STATUS_CODE_MAP = {
    "FILE_NOT_FOUND": 404,
    "INVALID_FILE_FORMAT": 400,
    "SHEET_NOT_FOUND": 404,
    "COLUMN_NOT_FOUND": 404,
    "INVALID_PATTERN": 400,
    "EMPTY_UPLOAD": 400,
    "READ_ERROR": 500,
    "UPLOAD_ERROR": 500,
    "PERMISSION_DENIED": 403,
    "CHAT_BACKEND_ERROR": 502,
}


def get_service() -> ExcelQueryService:
    """
    Get the Excel query service instance.

    Raises:
        HTTPException: If the service is not initialized.
    """
    if excel_service is None:
        raise HTTPException(
            status_code=503,
            detail="Excel service is not initialized",
        )
    return excel_service


def get_registry() -> ToolRegistry:
    """
    Get the tool registry.

    Raises:
        HTTPException: If the registry is not initialized.
    """
    if tool_registry is None:
        raise HTTPException(
            status_code=503,
            detail="Tool registry is not initialized",
        )
    return tool_registry


def get_upload_service() -> UploadChatService:
    """
    Get the upload-and-chat service.

    Raises:
        HTTPException: If no chat backend is configured.
    """
    if upload_service is None:
        raise HTTPException(
            status_code=503,
            detail="Chat backend is not configured",
        )
    return upload_service


@app.exception_handler(ExcelServiceError)
async def handle_excel_error(request: Request, error: ExcelServiceError) -> JSONResponse:
    """
    Convert ExcelServiceError to appropriate HTTP response.

    Args:
        request: The failing request.
        error: The ExcelServiceError to convert.

    Returns:
        JSONResponse with appropriate status code and error details.
    """
    status_code = STATUS_CODE_MAP.get(error.error_code, 500)
    logger.warning("%s %s failed [%s]: %s", request.method, request.url.path, error.error_code, error.message)

    return JSONResponse(
        status_code=status_code,
        content=ExcelErrorResponse(success=False, **error.to_dict()).model_dump(),
    )


@app.get(
    "/health",
    tags=["System"],
    summary="Health check",
    response_model=dict,
)
async def health_check() -> dict[str, Any]:
    """
    Check the health status of the service.

    Returns:
        Dictionary containing status and timestamp.
    """
    return {
        "status": "healthy",
        "service": "Excel Query Service",
        "version": __version__,
        "chat_enabled": upload_service is not None,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.get(
    "/tools",
    tags=["Tools"],
    summary="List tools",
    response_model=list[ToolDescriptor],
)
async def list_tools() -> list[ToolDescriptor]:
    """Return the descriptors of every registered tool, in registry order."""
    return list(get_registry().descriptors())


@app.post(
    "/tools/{tool_name}",
    tags=["Tools"],
    summary="Invoke a tool",
    response_model=ToolInvocationResponse,
    responses={404: {"description": "Unknown tool"}},
)
async def invoke_tool(
    tool_name: str,
    arguments: Annotated[dict[str, Any] | None, Body(description="Tool arguments")] = None,
) -> ToolInvocationResponse:
    """
    Invoke a tool the way an agent would.

    Failures inside the tool come back as its sentinel value ("Error: ...",
    -1 or an empty list) with status 200.
    """
    registry = get_registry()
    if tool_name not in registry:
        raise HTTPException(
            status_code=404,
            detail={"error_code": "UNKNOWN_TOOL", "message": f"Unknown tool: {tool_name}"},
        )

    result = await run_in_threadpool(registry.invoke, tool_name, arguments or {})
    return ToolInvocationResponse(tool=tool_name, result=result)


@app.get(
    "/excel/metadata",
    tags=["Excel Queries"],
    summary="Get workbook metadata",
    response_model=WorkbookMetadata,
    responses={
        404: {"model": ExcelErrorResponse, "description": "File not found"},
        400: {"model": ExcelErrorResponse, "description": "Invalid file format"},
    },
)
async def get_workbook_metadata(
    file_path: Annotated[str, Query(description="Path to the Excel file")],
) -> WorkbookMetadata:
    """
    Get the sheet names, header columns and row counts of a workbook.

    Args:
        file_path: Path to the Excel file on the server.
    """
    service = get_service()
    metadata = await run_in_threadpool(service.workbook_metadata, file_path)
    return WorkbookMetadata.model_validate_json(metadata)


@app.post(
    "/excel/sheet-json",
    tags=["Excel Queries"],
    summary="Read sheet rows as objects",
    response_model=list[dict[str, str]],
    responses={
        404: {"model": ExcelErrorResponse, "description": "File or sheet not found"},
        400: {"model": ExcelErrorResponse, "description": "Invalid file format"},
    },
)
async def read_sheet_json(request: SheetJsonRequest) -> list[dict[str, str]]:
    """Return every data row after the header row as an object keyed by header name."""
    service = get_service()
    content = await run_in_threadpool(
        service.sheet_to_json, request.file_path, request.sheet_name, request.header_row
    )
    return json.loads(content)


@app.post(
    "/excel/count",
    tags=["Excel Queries"],
    summary="Count keyword occurrences",
    response_model=CountResponse,
    responses={
        404: {"model": ExcelErrorResponse, "description": "File or sheet not found"},
        400: {"model": ExcelErrorResponse, "description": "Invalid pattern or file format"},
    },
)
async def count_occurrences(request: CountOccurrencesRequest) -> CountResponse:
    """Count a substring (once per cell) or a regex (every match) across a sheet."""
    service = get_service()
    count = await run_in_threadpool(
        service.count_occurrences,
        request.file_path,
        request.sheet_name,
        request.keyword,
        request.use_regex,
    )
    return CountResponse(count=count)


@app.post(
    "/excel/filter",
    tags=["Excel Queries"],
    summary="Filter rows by column value",
    response_model=list[dict[str, Any]],
    responses={
        404: {"model": ExcelErrorResponse, "description": "File, sheet or column not found"},
        400: {"model": ExcelErrorResponse, "description": "Invalid file format"},
    },
)
async def filter_rows(request: FilterRowsRequest) -> list[dict[str, Any]]:
    """Return the rows whose column equals the value, ignoring case."""
    service = get_service()
    return await run_in_threadpool(
        service.filter_rows,
        request.file_path,
        request.sheet_name,
        request.column,
        request.value,
    )


@app.post(
    "/excel/column",
    tags=["Excel Queries"],
    summary="Read column values",
    response_model=list[Any],
    responses={
        404: {"model": ExcelErrorResponse, "description": "File, sheet or column not found"},
        400: {"model": ExcelErrorResponse, "description": "Invalid file format"},
    },
)
async def read_column(request: ColumnQueryRequest) -> list[Any]:
    """Return the values of a column below the header row."""
    service = get_service()
    return await run_in_threadpool(
        service.read_column_data, request.file_path, request.sheet_name, request.column
    )


@app.post(
    "/excel/frequency",
    tags=["Excel Queries"],
    summary="Count column value frequencies",
    response_model=list[ValueFrequency],
    responses={
        404: {"model": ExcelErrorResponse, "description": "File, sheet or column not found"},
        400: {"model": ExcelErrorResponse, "description": "Invalid file format"},
    },
)
async def column_value_frequency(request: ColumnQueryRequest) -> list[ValueFrequency]:
    """Return each distinct column value with its count, most frequent first."""
    service = get_service()
    return await run_in_threadpool(
        service.column_value_frequency, request.file_path, request.sheet_name, request.column
    )


@app.post(
    "/api/mcp/chat/excel",
    tags=["Chat"],
    summary="Upload a workbook and ask about it",
    response_model=ChatResponse,
    responses={
        400: {"model": ExcelErrorResponse, "description": "Empty upload"},
        500: {"model": ExcelErrorResponse, "description": "Upload could not be stored"},
        502: {"model": ExcelErrorResponse, "description": "Chat backend failure"},
        503: {"description": "Chat backend not configured"},
    },
)
async def chat_with_excel(
    file: Annotated[UploadFile, File(description="Excel file to upload")],
    text: Annotated[str, Form(description="Instruction or question about the file")],
) -> ChatResponse:
    """
    Store an uploaded workbook and answer an instruction about it.

    The stored file's path is appended to the instruction so the model
    can pass it to the Excel tools.
    """
    service = get_upload_service()
    content = await file.read()
    filename = file.filename or "upload.xlsx"

    file_path = service.upload_path(filename)
    answer = await run_in_threadpool(service.chat_with_upload, content, filename, text)

    return ChatResponse(success=True, file_path=str(file_path), content=answer)


def run_server(
    host: str | None = None,
    port: int | None = None,
    reload: bool = False,
) -> None:
    """
    Run the FastAPI server.

    Args:
        host: Host to bind to. Defaults to XLQUERY_HOST.
        port: Port to listen on. Defaults to XLQUERY_PORT.
        reload: Whether to enable auto-reload. Defaults to False.

    Example:
        from xlquery.main import run_server
        run_server(host="127.0.0.1", port=8080)
    """
    settings = load_settings()
    uvicorn.run(
        "xlquery.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


if __name__ == "__main__":
    run_server()
