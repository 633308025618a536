"""Common dependencies for API routes."""

from fastapi import Request

from src.api.upload_policy import FilePolicy
from src.core.config import Settings
from src.core.files import FileManager


def get_settings_dep(request: Request) -> Settings:
    """Get application settings."""
    return request.app.state.settings


def get_file_manager(request: Request) -> FileManager:
    """Get the file manager bound to the configured base directory."""
    return request.app.state.file_manager


def get_file_policy(request: Request) -> FilePolicy:
    """Get upload size and forbidden-name policy."""
    return request.app.state.file_policy
