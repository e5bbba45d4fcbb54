"""Health check endpoints for the FeedQ API.

- /health - Service status and version
- /health/db - Database connection pool health
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter

from feedq.config import APP_VERSION
from feedq.infrastructure.database import get_pool_stats
from feedq.observability.telemetry import get_counter

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check() -> dict[str, Any]:
    return {
        "status": "healthy",
        "service": "FeedQ API",
        "version": APP_VERSION,
        "timestamp": datetime.now(UTC).isoformat(),
        "activities": {
            "sent": get_counter("activity.sent"),
            "read": get_counter("activity.read"),
        },
    }


@router.get("/health/db")
async def database_health() -> dict[str, Any]:
    """
    Database health check endpoint.

    Reports "degraded" when pool usage exceeds 80%.
    """
    stats = get_pool_stats()
    usage_percent = stats["usage_percent"]

    return {
        "status": "degraded" if usage_percent > 80 else "healthy",
        "pool": stats,
        "warning": "Pool usage high" if usage_percent > 80 else None,
    }
