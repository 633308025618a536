"""File-browser type definitions and collaborator protocols"""
from dataclasses import dataclass
from datetime import datetime
from typing import BinaryIO, List, Optional, Protocol


PATH_EMPTY = ""
PATH_CURRENT = "."
HIDDEN_FILE_PREFIX = "."
EXTENSION_ZIP = ".zip"
MIME_OCTET_STREAM = "application/octet-stream"
MIME_ZIP = "application/zip"


@dataclass(frozen=True)
class FileData:
    """Listing view of a directory entry"""
    name: str
    is_dir: bool


@dataclass(frozen=True)
class EntryInfo:
    """Directory entry as returned by storage"""
    name: str
    is_dir: bool
    size: int = 0
    modified: Optional[datetime] = None


class FileStorage(Protocol):
    """Raw directory/file primitives, relative to a fixed base directory"""

    def read_directory(self, rel_path: str) -> List[EntryInfo]:
        ...

    def write_file(self, rel_path: str, stream: BinaryIO) -> None:
        ...

    def remove(self, rel_path: str) -> None:
        ...

    def move(self, old_rel: str, new_rel: str) -> None:
        ...

    def create_directory(self, rel_path: str) -> None:
        ...

    def get_absolute_path(self, rel_path: str) -> str:
        ...


class ResponseSink(Protocol):
    """Writable output with header-setting capability"""

    def set_header(self, name: str, value: str) -> None:
        ...

    def write(self, data: bytes) -> int:
        ...

    def flush(self) -> None:
        ...
