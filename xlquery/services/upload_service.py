"""
Upload-and-chat service.

Stores an uploaded workbook under a fixed directory, appends its path to
the user's instruction so the model can pass it to the Excel tools, and
returns the chat backend's answer.

Known limitation: uploads are written in place without locking. A query
racing an upload of the same filename may read a stale or partially
written file, and concurrent uploads of one filename overwrite each
other (last write wins).
"""

import logging
from pathlib import Path

from xlquery.chat.backend import ChatBackend
from xlquery.exceptions.excel_exceptions import EmptyUploadError, UploadError
from xlquery.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

FILE_PATH_LABEL = "File path:"


class UploadChatService:
    """
    Bridges an uploaded workbook and an instruction to a chat backend.

    Attributes:
        registry: Tools offered to the chat backend.
        chat_backend: Backend answering the instruction.
        upload_dir: Directory where uploads are stored.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        chat_backend: ChatBackend,
        upload_dir: str | Path,
    ) -> None:
        self.registry = registry
        self.chat_backend = chat_backend
        self.upload_dir = Path(upload_dir)

    def upload_path(self, filename: str) -> Path:
        """
        Return the storage path for an uploaded filename.

        Directory components of the client-supplied name are dropped.
        """
        name = Path(filename.replace("\\", "/")).name
        if not name or name in (".", ".."):
            raise UploadError(file_path=str(self.upload_dir / filename), reason="Invalid file name")
        return (self.upload_dir / name).absolute()

    def save_upload(self, content: bytes, filename: str) -> Path:
        """
        Persist uploaded bytes verbatim.

        Args:
            content: Uploaded file content.
            filename: Client-supplied file name.

        Returns:
            Absolute path of the stored file.

        Raises:
            EmptyUploadError: If content is empty.
            UploadError: If the file cannot be written.
        """
        if not content:
            raise EmptyUploadError(filename)

        target = self.upload_path(filename)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)
        except OSError as e:
            raise UploadError(file_path=str(target), reason=str(e)) from e

        logger.info("Stored upload %s (%d bytes)", target, len(content))
        return target

    def build_prompt(self, instruction: str, file_path: Path) -> str:
        """Append the stored file's path to the instruction."""
        return f"{instruction}\n{FILE_PATH_LABEL} {file_path}"

    def chat_with_upload(self, content: bytes, filename: str, instruction: str) -> str:
        """
        Store an upload and answer an instruction about it.

        Args:
            content: Uploaded file content.
            filename: Client-supplied file name.
            instruction: Free-text user instruction.

        Returns:
            The chat backend's text, verbatim.

        Raises:
            EmptyUploadError: If content is empty.
            UploadError: If the file cannot be written.
            ChatBackendError: If the chat backend fails.
        """
        file_path = self.save_upload(content, filename)
        prompt = self.build_prompt(instruction, file_path)
        return self.chat_backend.complete(prompt, self.registry)
