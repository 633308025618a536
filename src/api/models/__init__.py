"""API models package."""

from src.api.models.file_models import (
    BrowseResponse,
    ErrorResponse,
    FileEntry,
    PathResponse,
    RenameResponse,
)

__all__ = [
    "BrowseResponse",
    "ErrorResponse",
    "FileEntry",
    "PathResponse",
    "RenameResponse",
]
