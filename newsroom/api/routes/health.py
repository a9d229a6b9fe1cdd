"""Health check endpoints for the Newsroom learning API.

- /health - Service status and version
- /health/db - Database connection pool health
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter

from newsroom.config import APP_NAME, APP_VERSION
from newsroom.observability.telemetry import snapshot_counters

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check() -> dict[str, Any]:
    """Service status, version and in-process learning counters."""
    counters = snapshot_counters()
    return {
        "status": "healthy",
        "service": APP_NAME,
        "version": APP_VERSION,
        "timestamp": datetime.now(UTC).isoformat(),
        "learning": {name: value for name, value in counters.items() if name.startswith("learning.")},
    }


@router.get("/health/db")
async def database_health() -> dict[str, Any]:
    """
    Connection pool health. Reports degraded above 80% pool usage.
    """
    from newsroom.infrastructure.database import get_pool_stats

    stats = get_pool_stats()
    usage_percent = stats["usage_percent"]

    return {
        "status": "degraded" if usage_percent > 80 else "healthy",
        "pool": stats,
        "warning": "Pool usage high" if usage_percent > 80 else None,
    }
