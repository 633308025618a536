"""Custom structlog processors for enhanced logging"""

import socket
import sys
import traceback

from structlog.contextvars import get_contextvars
from structlog.types import EventDict, WrappedLogger

SERVICE_NAME = "filebrowser"

REQUEST_CONTEXT_KEYS = (
    "correlation_id",
    "request_method",
    "request_path",
    "client_ip",
)


class ServiceContextProcessor:
    """Add service-level context to logs"""

    def __init__(self, environment: str):
        self.environment = environment
        try:
            self.hostname = socket.gethostname()
        except OSError:
            self.hostname = None

    def __call__(
        self, logger: WrappedLogger, method_name: str, event_dict: EventDict
    ) -> EventDict:
        event_dict["service"] = SERVICE_NAME
        event_dict["environment"] = self.environment
        if self.hostname:
            event_dict["hostname"] = self.hostname
        return event_dict


def add_request_context(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add request-specific context from contextvars"""
    context = get_contextvars()

    for key in REQUEST_CONTEXT_KEYS:
        if key in context and key not in event_dict:
            event_dict[key] = context[key]

    return event_dict


def format_exception_info(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Format exception information for better readability"""
    exc_info = event_dict.pop("exc_info", None)
    if exc_info:
        if isinstance(exc_info, tuple):
            exc_type, exc_value, exc_tb = exc_info
        elif isinstance(exc_info, BaseException):
            exc_type, exc_value, exc_tb = type(exc_info), exc_info, exc_info.__traceback__
        else:
            exc_type, exc_value, exc_tb = sys.exc_info()

        if exc_type:
            event_dict["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc_value),
                "traceback": traceback.format_exception(exc_type, exc_value, exc_tb)
            }

    return event_dict


def set_log_severity(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Set proper severity field for log aggregation systems"""
    level_map = {
        "debug": "DEBUG",
        "info": "INFO",
        "warning": "WARNING",
        "error": "ERROR",
        "critical": "CRITICAL"
    }

    if "level" in event_dict:
        event_dict["severity"] = level_map.get(event_dict["level"], "INFO")

    return event_dict
