"""Request/response models for file browser endpoints."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ErrorResponse(BaseModel):
    """Standard error response format."""
    code: str = Field(..., description="Error code")
    kind: Optional[str] = Field(None, description="Error classification")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error details")
    correlation_id: Optional[str] = Field(None, description="Request tracking ID")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "code": "FB-400",
                "kind": "path_traversal",
                "message": "Bad request",
                "correlation_id": "550e8400-e29b-41d4-a716-446655440000",
            }
        }
    )


class FileEntry(BaseModel):
    """Directory entry."""
    name: str = Field(..., description="Entry name")
    is_dir: bool = Field(..., description="Whether the entry is a folder")


class BrowseResponse(BaseModel):
    """Directory listing."""
    path: str = Field(..., description="Requested path")
    parent: str = Field(..., description="Parent path, empty for the root")
    files: List[FileEntry] = Field(default_factory=list, description="Entries in storage order")


class PathResponse(BaseModel):
    """Result of an operation on a single path."""
    path: str = Field(..., description="Normalized path that was affected")
    parent: str = Field("", description="Parent path to return to")


class RenameResponse(BaseModel):
    """Result of a rename."""
    old_path: str = Field(..., description="Original path")
    new_path: str = Field(..., description="New path")
    parent: str = Field("", description="Parent path to return to")
