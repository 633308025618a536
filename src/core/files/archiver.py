"""Zip archive assembly for folder downloads"""
import os
import shutil
import zipfile
from typing import BinaryIO, Iterator, NoReturn

from src.core.errors import StorageError
from src.core.files.file_types import HIDDEN_FILE_PREFIX
from src.infrastructure.logging import get_logger

logger = get_logger(__name__)

COPY_CHUNK_SIZE = 64 * 1024


def _raise_walk_error(error: OSError) -> NoReturn:
    raise error


def is_hidden(name: str) -> bool:
    """Hidden entries are left out of archives"""
    return name.startswith(HIDDEN_FILE_PREFIX)


class FolderArchiver:
    """Streams the non-hidden files of a directory tree as a zip archive"""

    def __init__(self, compression: int = zipfile.ZIP_DEFLATED):
        self.compression = compression

    def write_archive(self, sink: BinaryIO, root: str) -> int:
        """
        Walk ``root`` depth-first and write every non-hidden file into ``sink``

        Args:
            sink: Write-only output; does not need to be seekable
            root: Absolute path of the folder being archived

        Returns:
            Number of files added

        Raises:
            StorageError: If walking, opening or copying fails. Bytes already
                written to the sink are not retracted.
        """
        count = 0
        zip_file = zipfile.ZipFile(sink, mode="w", compression=self.compression)
        try:
            for file_path in self.iter_files(root):
                self.add_file(zip_file, root, file_path)
                count += 1
        finally:
            try:
                zip_file.close()
            except (OSError, ValueError) as e:
                logger.error("zip_writer_close_failed", root=root, error=str(e))

        logger.debug("zip_archive_written", root=root, files=count)
        return count

    def iter_files(self, root: str) -> Iterator[str]:
        """Yield archived file paths in a stable order, pruning hidden directories."""
        try:
            for dirpath, dirnames, filenames in os.walk(root, onerror=_raise_walk_error):
                dirnames[:] = sorted(d for d in dirnames if not is_hidden(d))
                for filename in sorted(filenames):
                    if is_hidden(filename):
                        continue
                    yield os.path.join(dirpath, filename)
        except OSError as e:
            raise StorageError("walk", root, str(e)) from e

    def add_file(self, zip_file: zipfile.ZipFile, root: str, file_path: str) -> None:
        """Copy one file into the archive under its path relative to ``root``."""
        arcname = os.path.relpath(file_path, root).replace(os.sep, "/")

        try:
            entry = zipfile.ZipInfo.from_file(file_path, arcname)
        except OSError as e:
            raise StorageError("zip", arcname, f"failed to create zip entry: {e}") from e
        entry.compress_type = self.compression

        try:
            source = open(file_path, "rb")
        except OSError as e:
            raise StorageError("zip", arcname, f"failed to open file: {e}") from e

        try:
            with zip_file.open(entry, mode="w") as destination:
                shutil.copyfileobj(source, destination, COPY_CHUNK_SIZE)
        except (OSError, RuntimeError) as e:
            raise StorageError("zip", arcname, f"failed to copy file to zip: {e}") from e
        finally:
            try:
                source.close()
            except OSError as e:
                logger.warning("zip_source_close_failed", file=file_path, error=str(e))
