"""Infrastructure layer for the file browser."""
