"""API routes package."""

from src.api.routes import files, health

__all__ = ["files", "health"]
