"""Health check and client configuration endpoints."""

from __future__ import annotations

import json
import shutil
from pathlib import Path

from fastapi import APIRouter

router = APIRouter(prefix="/api/v1")

# Load build info once at import time.
_BUILD_INFO_PATH = Path(__file__).parent.parent / "build_info.json"
_BUILD_INFO: dict = {}
if _BUILD_INFO_PATH.exists():
    try:
        _BUILD_INFO = json.loads(_BUILD_INFO_PATH.read_text())
    except (json.JSONDecodeError, OSError):
        pass


@router.get("/health")
async def health() -> dict:
    """Basic health check."""
    from pawwalk.main import get_config

    config = get_config()

    result = {
        "status": "ok",
        "version": "0.1.0",
        "storage_backend": config.storage.backend,
    }
    if config.storage.backend == "file":
        storage_path = Path(config.storage.base_dir)
        try:
            disk = shutil.disk_usage(storage_path if storage_path.exists() else ".")
            result["disk_free_gb"] = round(disk.free / (1024 ** 3), 1)
            result["storage_writable"] = True
        except OSError:
            result["disk_free_gb"] = -1
            result["storage_writable"] = False

    result.update(_BUILD_INFO)
    return result


@router.get("/config")
async def get_client_config() -> dict:
    """Tracking parameters for clients.

    The app calls this on startup so thresholds can be tuned per deployment
    without shipping a new build.
    """
    from pawwalk.main import get_config

    config = get_config()
    tracking = config.tracking
    return {
        "min_distance_m": tracking.min_distance_m,
        "max_accuracy_m": tracking.max_accuracy_m,
        "fix_timeout_s": tracking.fix_timeout_s,
        "high_accuracy": tracking.high_accuracy,
        "speed_window": tracking.speed_window,
        "max_speed_gap_s": tracking.max_speed_gap_s,
        "goal_seconds": config.goal.goal_seconds,
    }
