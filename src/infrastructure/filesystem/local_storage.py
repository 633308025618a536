"""Local disk storage module."""
import os
import shutil
from datetime import datetime
from pathlib import Path
from typing import BinaryIO, List

from src.core.files.file_types import EntryInfo
from src.infrastructure.logging import get_logger

logger = get_logger(__name__)

WRITE_CHUNK_SIZE = 64 * 1024


class LocalFileStorage:
    """Handles raw filesystem calls under a base directory only."""

    def __init__(self, base_path: Path, dir_permissions: int = 0o755):
        self.base_path = Path(base_path).resolve()
        self.dir_permissions = dir_permissions

    def get_absolute_path(self, rel_path: str) -> str:
        return os.path.join(str(self.base_path), rel_path)

    def read_directory(self, rel_path: str) -> List[EntryInfo]:
        """Read directory entries, skipping entries whose metadata lookup fails."""
        full_path = self.get_absolute_path(rel_path)

        entries = []
        with os.scandir(full_path) as it:
            for entry in it:
                try:
                    entry_stat = entry.stat()
                except OSError as e:
                    # e.g. broken symlinks
                    logger.warning(
                        "listing_entry_skipped",
                        name=entry.name,
                        directory=rel_path,
                        error=str(e),
                    )
                    continue

                entries.append(
                    EntryInfo(
                        name=entry.name,
                        is_dir=entry.is_dir(),
                        size=entry_stat.st_size,
                        modified=datetime.fromtimestamp(entry_stat.st_mtime),
                    )
                )

        return entries

    def write_file(self, rel_path: str, stream: BinaryIO) -> None:
        """Write stream to file, creating parent directories as needed."""
        full_path = self.get_absolute_path(rel_path)
        os.makedirs(os.path.dirname(full_path), mode=self.dir_permissions, exist_ok=True)

        out = open(full_path, "wb")
        try:
            shutil.copyfileobj(stream, out, WRITE_CHUNK_SIZE)
        finally:
            try:
                out.close()
            except OSError as e:
                logger.warning("file_close_failed", file=full_path, error=str(e))

    def remove(self, rel_path: str) -> None:
        """Remove a file or directory tree; a missing path is not an error."""
        full_path = self.get_absolute_path(rel_path)

        if os.path.isdir(full_path) and not os.path.islink(full_path):
            try:
                shutil.rmtree(full_path)
            except FileNotFoundError:
                pass
            return

        try:
            os.remove(full_path)
        except FileNotFoundError:
            pass

    def move(self, old_rel: str, new_rel: str) -> None:
        """Rename within the base directory; an empty destination is rejected."""
        if not new_rel:
            raise ValueError("destination path must not be empty")
        os.rename(self.get_absolute_path(old_rel), self.get_absolute_path(new_rel))

    def create_directory(self, rel_path: str) -> None:
        os.makedirs(self.get_absolute_path(rel_path), mode=self.dir_permissions, exist_ok=True)
