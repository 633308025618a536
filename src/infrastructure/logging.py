import logging
import sys
from typing import Any, List, Optional, TextIO

import structlog
from structlog.types import Processor

from src.core.config import Settings, get_settings
from src.infrastructure.logging_processors import (ServiceContextProcessor,
                                                   add_request_context,
                                                   format_exception_info,
                                                   set_log_severity)

# Loggers of the server stack that should share our handler
SERVER_LOGGERS = ("uvicorn", "uvicorn.access", "uvicorn.error")

# python-multipart logs every parsed part at DEBUG
QUIET_LOGGERS = ("multipart", "python_multipart")


def build_processors(settings: Settings) -> List[Processor]:
    """Processors shared by structlog events and foreign stdlib records"""
    return [
        structlog.contextvars.merge_contextvars,
        ServiceContextProcessor(settings.environment),
        add_request_context,
        structlog.processors.add_log_level,
        set_log_severity,
        format_exception_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]


def build_renderer(settings: Settings, stream: TextIO) -> Processor:
    if settings.log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(
        colors=stream.isatty(),
        exception_formatter=structlog.dev.rich_traceback,
    )


def setup_logging(settings: Optional[Settings] = None, stream: Optional[TextIO] = None) -> None:
    """Route structlog and stdlib logging through one handler, stdout by default"""
    settings = settings or get_settings()
    stream = stream or sys.stdout
    shared_processors = build_processors(settings)
    level = getattr(logging, settings.log_level)

    structlog.configure(
        processors=shared_processors + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            build_renderer(settings, stream),
        ],
    )

    handler = logging.StreamHandler(stream)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for logger_name in SERVER_LOGGERS:
        server_logger = logging.getLogger(logger_name)
        server_logger.handlers.clear()
        server_logger.addHandler(handler)
        server_logger.setLevel(level)
        server_logger.propagate = False

    for logger_name in QUIET_LOGGERS:
        logging.getLogger(logger_name).setLevel(max(level, logging.WARNING))


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


def unbind_context(*keys: str) -> None:
    structlog.contextvars.unbind_contextvars(*keys)
