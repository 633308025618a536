"""Base exception classes for the file browser"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Classification tag carried by every file browser error"""

    PATH_TRAVERSAL = "path_traversal"
    PATH_TOO_LONG = "path_too_long"
    INVALID_NAME = "invalid_name"
    FILE_NOT_FOUND = "file_not_found"
    PERMISSION_DENIED = "permission_denied"
    UNSUPPORTED_OPERATION = "unsupported_operation"
    UNKNOWN = "unknown"


class FileBrowserError(Exception):
    """Base exception for all file browser errors"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(FileBrowserError):
    """Raised when configuration is invalid"""
    pass


class FileManagerError(FileBrowserError):
    """Raised by file operations; matched on ``kind``, never on the message"""

    kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        kind: Optional[ErrorKind] = None,
    ):
        if kind is not None:
            self.kind = kind
        super().__init__(message, details)


class PathTraversalError(FileManagerError):
    """Path is absolute or resolves outside the base directory"""

    kind = ErrorKind.PATH_TRAVERSAL


class PathTooLongError(FileManagerError):
    """Normalized path exceeds the configured maximum length"""

    kind = ErrorKind.PATH_TOO_LONG


class InvalidNameError(FileManagerError):
    """Final path segment does not match the configured name pattern"""

    kind = ErrorKind.INVALID_NAME


class FileNotFoundInStorageError(FileManagerError):
    """Target does not exist"""

    kind = ErrorKind.FILE_NOT_FOUND


class PermissionDeniedError(FileManagerError):
    """Storage denied access"""

    kind = ErrorKind.PERMISSION_DENIED


class UnsupportedOperationError(FileManagerError):
    """Rejected by a caller-side policy (size limit, forbidden extension)"""

    kind = ErrorKind.UNSUPPORTED_OPERATION


class StorageError(FileManagerError):
    """Any other storage failure, wrapped with operation context"""

    def __init__(self, operation: str, path: str, reason: str):
        self.operation = operation
        self.path = path
        super().__init__(
            f"{operation} failed for '{path}': {reason}",
            {"operation": operation, "path": path},
        )


def is_kind(exc: Optional[BaseException], kind: ErrorKind) -> bool:
    """Check whether ``exc`` or anything it wraps carries ``kind``"""
    seen = set()
    while exc is not None and id(exc) not in seen:
        seen.add(id(exc))
        if isinstance(exc, FileManagerError) and exc.kind is kind:
            return True
        exc = exc.__cause__ or exc.__context__
    return False
