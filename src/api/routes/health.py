"""Health check endpoint"""

import os
import time
from pathlib import Path
from typing import Any, Dict, Tuple

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from src.api.dependencies import get_settings_dep
from src.core.config import Settings
from src.infrastructure.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["health"])

_start_time = time.time()


def check_storage(base_path: Path) -> Tuple[bool, str]:
    """Check that the base directory exists and is writable"""
    if not base_path.is_dir():
        return False, "Storage base path does not exist"

    marker = base_path / f".health_check_{os.getpid()}"
    try:
        marker.touch()
        marker.unlink()
    except OSError as e:
        return False, f"Cannot write to storage: {e}"

    return True, "Storage is accessible"


@router.get("/health", summary="Health check")
def health(settings: Settings = Depends(get_settings_dep)) -> JSONResponse:
    healthy, message = check_storage(settings.storage.base_path)
    if not healthy:
        logger.warning("health_check_failed", reason=message)

    body: Dict[str, Any] = {
        "status": "healthy" if healthy else "unhealthy",
        "version": settings.app_version,
        "uptime_seconds": round(time.time() - _start_time, 2),
        "checks": {"storage": {"healthy": healthy, "message": message}},
    }
    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content=body,
    )
