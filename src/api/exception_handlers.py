from typing import Dict, Optional, Tuple

import structlog
from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.api.models.file_models import ErrorResponse
from src.core.config import MessageSettings
from src.core.errors import ErrorKind, FileManagerError
from src.infrastructure.middleware.correlation import get_correlation_id

logger = structlog.get_logger(__name__)

STATUS_BY_KIND: Dict[ErrorKind, int] = {
    ErrorKind.PATH_TRAVERSAL: status.HTTP_400_BAD_REQUEST,
    ErrorKind.PATH_TOO_LONG: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_NAME: status.HTTP_400_BAD_REQUEST,
    ErrorKind.FILE_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.PERMISSION_DENIED: status.HTTP_403_FORBIDDEN,
    ErrorKind.UNSUPPORTED_OPERATION: status.HTTP_403_FORBIDDEN,
    ErrorKind.UNKNOWN: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def error_code(status_code: int) -> str:
    return f"FB-{status_code}"


def _messages(request: Request) -> MessageSettings:
    settings = getattr(request.app.state, "settings", None)
    return settings.messages if settings is not None else MessageSettings()


# Message fields used when an operation fails for an unclassified reason
OPERATION_MESSAGES: Dict[str, str] = {
    "list": "cannot_list_directory",
    "delete": "cannot_delete",
    "serve_file": "cannot_serve",
    "serve_folder_as_zip": "cannot_serve",
}


def classify(exc: FileManagerError, messages: MessageSettings) -> Tuple[int, str]:
    """Map an error kind to a status code and the configured client message."""
    status_code = STATUS_BY_KIND.get(exc.kind, status.HTTP_500_INTERNAL_SERVER_ERROR)
    if status_code == status.HTTP_400_BAD_REQUEST:
        return status_code, messages.bad_request
    if status_code == status.HTTP_403_FORBIDDEN:
        return status_code, messages.forbidden_file
    if status_code == status.HTTP_404_NOT_FOUND:
        return status_code, messages.not_found

    field = OPERATION_MESSAGES.get(getattr(exc, "operation", None))
    if field is not None:
        return status_code, getattr(messages, field)
    return status_code, messages.internal_error


def _json_error(
    status_code: int, response: ErrorResponse, correlation_id: Optional[str]
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=response.model_dump(exclude_none=True),
        headers={"X-Correlation-ID": correlation_id} if correlation_id else {},
    )


async def file_manager_exception_handler(
    request: Request, exc: FileManagerError
) -> JSONResponse:
    correlation_id = get_correlation_id()
    status_code, message = classify(exc, _messages(request))

    log = logger.error if status_code >= 500 else logger.warning
    log(
        "file_operation_failed",
        kind=exc.kind.value,
        status_code=status_code,
        error=exc.message,
        details=exc.details,
        cause=repr(exc.__cause__) if exc.__cause__ else None,
        path=request.url.path,
    )

    return _json_error(
        status_code,
        ErrorResponse(
            code=error_code(status_code),
            kind=exc.kind.value,
            message=message,
            correlation_id=correlation_id,
        ),
        correlation_id,
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    correlation_id = get_correlation_id()

    errors = []
    for error in exc.errors():
        errors.append(
            {
                "field": ".".join(str(loc) for loc in error["loc"]),
                "message": error["msg"],
                "type": error["type"],
            }
        )

    logger.warning(
        "validation_error",
        errors=errors,
        path=request.url.path,
    )

    return _json_error(
        status.HTTP_400_BAD_REQUEST,
        ErrorResponse(
            code=error_code(status.HTTP_400_BAD_REQUEST),
            message="Request validation failed",
            details={"errors": errors},
            correlation_id=correlation_id,
        ),
        correlation_id,
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    correlation_id = get_correlation_id()

    logger.warning(
        "http_exception",
        status_code=exc.status_code,
        detail=exc.detail,
        path=request.url.path,
    )

    return _json_error(
        exc.status_code,
        ErrorResponse(
            code=error_code(exc.status_code),
            message=str(exc.detail),
            correlation_id=correlation_id,
        ),
        correlation_id,
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    correlation_id = get_correlation_id()

    logger.error(
        "unhandled_exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        exc_info=exc,
    )

    settings = getattr(request.app.state, "settings", None)
    details = None
    if settings is not None and not settings.is_production:
        details = {"error_type": type(exc).__name__}

    return _json_error(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        ErrorResponse(
            code=error_code(status.HTTP_500_INTERNAL_SERVER_ERROR),
            message=_messages(request).internal_error,
            details=details,
            correlation_id=correlation_id,
        ),
        correlation_id,
    )
