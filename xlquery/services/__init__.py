"""
Service layer for Excel queries.

Contains the core logic for querying workbooks and for the
upload-and-chat boundary, decoupled from transport layers (HTTP/MCP).
"""

from xlquery.services.excel_service import ExcelQueryService
from xlquery.services.upload_service import UploadChatService

__all__ = [
    "ExcelQueryService",
    "UploadChatService",
]
