"""Path security validation module."""
import os
import re
from typing import Pattern, Union

from src.core.errors import InvalidNameError, PathTooLongError, PathTraversalError
from src.core.files.file_types import PATH_CURRENT, PATH_EMPTY


DEFAULT_VALID_NAME_REGEX = r'^[\w\-. ]+$'


class PathSanitizer:
    """Turns untrusted relative paths into normalized paths confined to a base directory."""

    def __init__(
        self,
        base_path: str,
        max_name_length: int = 255,
        valid_name: Union[str, Pattern[str]] = DEFAULT_VALID_NAME_REGEX,
    ):
        self.base_path = os.path.normpath(os.path.abspath(base_path))
        self.max_name_length = max_name_length
        self.valid_name = re.compile(valid_name) if isinstance(valid_name, str) else valid_name

    def sanitize(self, path: str) -> str:
        """
        Validate and normalize a path relative to the base directory

        Args:
            path: Untrusted relative path, ``""`` meaning the base directory

        Returns:
            Normalized relative path (``"."`` for the base directory)

        Raises:
            PathTraversalError: If the path is absolute or escapes the base
            PathTooLongError: If the normalized path is too long
            InvalidNameError: If the final segment fails the name pattern
        """
        clean = os.path.normpath(path)

        if os.path.isabs(clean):
            raise PathTraversalError(
                f"absolute paths are not allowed: '{path}'", {"path": path}
            )

        if not self.is_within_base(clean):
            raise PathTraversalError(
                f"path traversal detected: '{path}'", {"path": path}
            )

        if len(clean) > self.max_name_length:
            raise PathTooLongError(
                f"path '{path}' too long ({len(clean)} > {self.max_name_length})",
                {"path": path, "length": len(clean), "max_length": self.max_name_length},
            )

        base = os.path.basename(clean)
        if base not in (PATH_EMPTY, PATH_CURRENT) and not self.is_valid_name(base):
            raise InvalidNameError(
                f"base name '{base}' is invalid", {"path": path, "name": base}
            )

        return clean

    def is_within_base(self, clean: str) -> bool:
        """Check that a normalized relative path resolves under the base directory."""
        if "\x00" in clean:
            return False

        try:
            full_path = os.path.normpath(os.path.join(self.base_path, clean))
            rel = os.path.relpath(full_path, self.base_path)
        except ValueError:
            return False

        return rel != os.pardir and not rel.startswith(os.pardir + os.sep)

    def is_valid_name(self, name: str) -> bool:
        return self.valid_name.fullmatch(name) is not None
