import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from src.infrastructure.logging import bind_context, get_logger, unbind_context

logger = get_logger(__name__)

REQUEST_CONTEXT_KEYS = ("request_method", "request_path", "client_ip")


class LoggingMiddleware(BaseHTTPMiddleware):
    """Request/response logging middleware"""

    def __init__(self, app):
        super().__init__(app)
        self.exclude_paths = {
            "/health",  # Don't log health checks
        }

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in self.exclude_paths:
            return await call_next(request)

        start_time = time.time()

        bind_context(
            request_method=request.method,
            request_path=request.url.path,
            client_ip=self._get_client_ip(request),
        )

        logger.info(
            "http_request_started",
            method=request.method,
            path=request.url.path,
            query_params=dict(request.query_params) if request.query_params else None,
            request_size=request.headers.get("content-length", 0),
        )

        try:
            response = await call_next(request)

            duration_ms = round((time.time() - start_time) * 1000, 2)
            logger.info(
                "http_request_completed",
                status_code=response.status_code,
                duration_ms=duration_ms,
                response_size=response.headers.get("content-length", 0),
            )

            response.headers["X-Response-Time"] = f"{duration_ms}ms"
            return response

        except Exception as e:
            logger.error(
                "http_request_failed",
                duration_ms=round((time.time() - start_time) * 1000, 2),
                error_type=type(e).__name__,
                error_message=str(e),
                exc_info=True,
            )
            raise

        finally:
            unbind_context(*REQUEST_CONTEXT_KEYS)

    def _get_client_ip(self, request: Request) -> str:
        """Extract real client IP from request"""
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip

        if request.client:
            return request.client.host

        return "unknown"
