"""Transport-level file policy: upload size limits and forbidden file names"""
import os
from typing import BinaryIO, List, Optional

from starlette.requests import Request
from starlette.types import Message

from src.core.errors import UnsupportedOperationError


class FilePolicy:
    """Checks applied by the HTTP layer before calling file operations"""

    def __init__(self, max_upload_size: int, forbidden_extensions: List[str]):
        self.max_upload_size = max_upload_size
        self.forbidden_extensions = [ext.lower() for ext in forbidden_extensions]

    def is_forbidden(self, filename: str) -> bool:
        """
        Match on exact extension or on filename prefix

        ``.env.local`` is forbidden by prefix even though its extension is
        ``.local``.
        """
        ext = os.path.splitext(filename)[1].lower()
        for forbidden in self.forbidden_extensions:
            if ext == forbidden or filename.startswith(forbidden):
                return True
        return False

    def check_filename(self, filename: str) -> None:
        if self.is_forbidden(filename):
            raise UnsupportedOperationError(
                f"file '{filename}' is forbidden", {"filename": filename}
            )

    def check_declared_size(self, content_length: Optional[str]) -> None:
        """Reject on the declared Content-Length; absent or chunked bodies pass."""
        if not content_length:
            return
        try:
            declared = int(content_length)
        except ValueError:
            return
        self._check_size(declared)

    def check_file_size(self, size: int) -> None:
        self._check_size(size)

    def check_body_size(self, received: int) -> None:
        """Called while the body streams in; stops reading past the limit."""
        if received > self.max_upload_size:
            raise UnsupportedOperationError(
                f"request body exceeds maximum {self.max_upload_size} bytes",
                {"received": received, "max_upload_size": self.max_upload_size},
            )

    def _check_size(self, size: int) -> None:
        if size > self.max_upload_size:
            raise UnsupportedOperationError(
                f"file size {size} exceeds maximum {self.max_upload_size}",
                {"size": size, "max_upload_size": self.max_upload_size},
            )


def measure_stream(stream: BinaryIO) -> int:
    """Size of a seekable stream, leaving the position at the start."""
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(0)
    return size


def limit_request_body(request: Request, policy: FilePolicy) -> Request:
    """
    Wrap ``request`` so that reading its body fails once it passes the upload limit

    Chunked bodies carry no Content-Length, so this is the only check that
    runs before the multipart parser spools them to disk.
    """
    received = 0

    async def receive() -> Message:
        nonlocal received
        message = await request.receive()
        if message["type"] == "http.request":
            received += len(message.get("body", b""))
            policy.check_body_size(received)
        return message

    return Request(request.scope, receive)
