"""Data Service — health-check endpoints with store readiness probe."""

from __future__ import annotations

from fastapi import Request

from data_service.core.config import settings
from data_service.core.dependencies import get_store
from shared.health import create_health_router


async def check_store(request: Request) -> bool:
    """Return True if the store answers a ping."""
    return await get_store(request).ping()


router = create_health_router(
    settings.service_name,
    readiness_checks={"store": check_store},
    timeout=settings.readiness_timeout_seconds,
)
