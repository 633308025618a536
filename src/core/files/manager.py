"""File management use cases: every path is sanitized before it reaches storage"""
import mimetypes
import os
import shutil
import stat
from typing import BinaryIO, List, Optional

from src.core.errors import (FileManagerError, FileNotFoundInStorageError,
                             PermissionDeniedError, StorageError,
                             UnsupportedOperationError)
from src.core.files.archiver import FolderArchiver
from src.core.files.file_types import (EXTENSION_ZIP, MIME_OCTET_STREAM,
                                       MIME_ZIP, PATH_CURRENT, FileData,
                                       FileStorage, ResponseSink)
from src.core.files.path_sanitizer import DEFAULT_VALID_NAME_REGEX, PathSanitizer
from src.infrastructure.logging import get_logger

logger = get_logger(__name__)

COPY_CHUNK_SIZE = 64 * 1024


def storage_error(operation: str, path: str, exc: Exception) -> FileManagerError:
    """Re-classify a storage-level exception into the domain taxonomy."""
    details = {"operation": operation, "path": path}
    if isinstance(exc, (FileNotFoundError, NotADirectoryError)):
        return FileNotFoundInStorageError(f"{operation} failed, '{path}' not found", details)
    if isinstance(exc, PermissionError):
        return PermissionDeniedError(f"{operation} failed for '{path}': permission denied", details)
    return StorageError(operation, path, str(exc))


def attachment_header(filename: str) -> str:
    return f'attachment; filename="{filename}"'


class FileManager:
    """File operations confined to the storage base directory"""

    def __init__(
        self,
        storage: FileStorage,
        max_name_length: int = 255,
        valid_name_regex: str = DEFAULT_VALID_NAME_REGEX,
        archiver: Optional[FolderArchiver] = None,
    ):
        self.storage = storage
        self.sanitizer = PathSanitizer(
            storage.get_absolute_path(""),
            max_name_length=max_name_length,
            valid_name=valid_name_regex,
        )
        self.archiver = archiver or FolderArchiver()

    def sanitize_path(self, path: str) -> str:
        return self.sanitizer.sanitize(path)

    def _reject_root(self, operation: str, sanitized: str) -> None:
        if sanitized == PATH_CURRENT:
            raise UnsupportedOperationError(
                f"{operation} is not allowed on the base directory",
                {"operation": operation, "path": sanitized},
            )

    def list(self, path: str) -> List[FileData]:
        """List a directory in storage order"""
        sanitized = self.sanitize_path(path)

        try:
            entries = self.storage.read_directory(sanitized)
        except Exception as e:
            raise storage_error("list", sanitized, e) from e

        return [FileData(name=entry.name, is_dir=entry.is_dir) for entry in entries]

    def upload_file(self, path: str, stream: BinaryIO) -> str:
        sanitized = self.sanitize_path(path)

        try:
            self.storage.write_file(sanitized, stream)
        except Exception as e:
            raise storage_error("upload", sanitized, e) from e

        return sanitized

    def delete(self, path: str) -> str:
        """Recursively delete; deleting a missing path succeeds"""
        sanitized = self.sanitize_path(path)
        self._reject_root("delete", sanitized)

        try:
            self.storage.remove(sanitized)
        except Exception as e:
            raise storage_error("delete", sanitized, e) from e

        return sanitized

    def rename(self, old_path: str, new_path: str) -> str:
        sanitized_old = self.sanitize_path(old_path)
        sanitized_new = self.sanitize_path(new_path)
        self._reject_root("rename", sanitized_old)
        self._reject_root("rename", sanitized_new)

        try:
            self.storage.move(sanitized_old, sanitized_new)
        except Exception as e:
            raise storage_error("rename", f"{sanitized_old} -> {sanitized_new}", e) from e

        return sanitized_new

    def create_folder(self, path: str) -> str:
        sanitized = self.sanitize_path(path)

        try:
            self.storage.create_directory(sanitized)
        except Exception as e:
            raise storage_error("create_folder", sanitized, e) from e

        return sanitized

    def serve_file(self, sink: ResponseSink, path: str) -> int:
        """
        Stream a single file into ``sink`` as an attachment

        Returns:
            Number of bytes written

        Raises:
            FileNotFoundInStorageError: If nothing exists at the path
        """
        sanitized = self.sanitize_path(path)
        full_path = self.storage.get_absolute_path(sanitized)

        try:
            file_stat = os.stat(full_path)
        except OSError as e:
            raise storage_error("serve_file", sanitized, e) from e

        if stat.S_ISDIR(file_stat.st_mode):
            raise FileNotFoundInStorageError(
                f"'{sanitized}' is a folder, not a file", {"path": sanitized}
            )

        mime_type, _ = mimetypes.guess_type(full_path)
        sink.set_header("Content-Type", mime_type or MIME_OCTET_STREAM)
        sink.set_header("Content-Disposition", attachment_header(os.path.basename(full_path)))
        if stat.S_ISREG(file_stat.st_mode):
            sink.set_header("Content-Length", str(file_stat.st_size))

        try:
            with open(full_path, "rb") as source:
                shutil.copyfileobj(source, sink, COPY_CHUNK_SIZE)
            sink.flush()
        except OSError as e:
            raise storage_error("serve_file", sanitized, e) from e

        return file_stat.st_size

    def serve_folder_as_zip(self, sink: ResponseSink, path: str) -> int:
        """
        Stream a folder as a zip archive into ``sink``

        Hidden files and directories are left out. A failure mid-walk leaves
        a truncated archive in the sink.

        Returns:
            Number of files archived
        """
        sanitized = self.sanitize_path(path)
        full_path = self.storage.get_absolute_path(sanitized)

        if not os.path.isdir(full_path):
            raise FileNotFoundInStorageError(
                f"could not stat folder '{sanitized}'", {"path": sanitized}
            )

        zip_name = os.path.basename(os.path.normpath(full_path)) + EXTENSION_ZIP
        sink.set_header("Content-Type", MIME_ZIP)
        sink.set_header("Content-Disposition", attachment_header(zip_name))

        try:
            count = self.archiver.write_archive(sink, full_path)
        except StorageError as e:
            raise StorageError(
                "serve_folder_as_zip", sanitized, f"failed to create zip: {e.message}"
            ) from e

        logger.info("folder_archived", path=sanitized, files=count)
        return count
