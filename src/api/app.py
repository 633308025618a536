"""FastAPI application setup and configuration."""

import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.api.exception_handlers import (file_manager_exception_handler,
                                        general_exception_handler,
                                        http_exception_handler,
                                        validation_exception_handler)
from src.api.routes import files, health
from src.api.upload_policy import FilePolicy
from src.core.config import Settings, get_settings
from src.core.errors import FileManagerError
from src.core.files import FileManager
from src.infrastructure.filesystem import LocalFileStorage
from src.infrastructure.logging import get_logger, setup_logging
from src.infrastructure.middleware.correlation import CorrelationIDMiddleware
from src.infrastructure.middleware.logging import LoggingMiddleware

logger = get_logger(__name__)


def build_file_manager(settings: Settings) -> FileManager:
    """Create the base directory and a file manager confined to it."""
    base_path = settings.storage.base_path
    os.makedirs(base_path, mode=settings.file.dir_permissions, exist_ok=True)

    storage = LocalFileStorage(base_path, dir_permissions=settings.file.dir_permissions)
    return FileManager(
        storage,
        max_name_length=settings.file.max_name_length,
        valid_name_regex=settings.file.valid_name_regex,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Application lifespan manager."""
    settings: Settings = app.state.settings
    setup_logging(settings)
    logger.info(
        "application_startup",
        app_name=settings.app_name,
        environment=settings.environment,
        storage_base_path=str(settings.storage.base_path),
    )

    yield

    logger.info("application_shutdown", app_name=settings.app_name)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure FastAPI application."""
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Browse, upload, rename, delete and download files under a base directory",
        version=settings.app_version,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.file_manager = build_file_manager(settings)
    app.state.file_policy = FilePolicy(
        max_upload_size=settings.server.max_upload_size,
        forbidden_extensions=settings.file.forbidden_extensions,
    )

    # Last added runs first
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(CorrelationIDMiddleware)

    app.add_exception_handler(FileManagerError, file_manager_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    app.include_router(health.router)
    app.include_router(files.router)

    return app
