"""Reusable health-check router.

Provides ``/health`` (basic status), ``/health/live`` (liveness) and
``/health/ready`` (readiness) endpoints. The readiness probe runs every named
dependency check on each request, each bounded by ``timeout`` seconds; nothing
is cached between requests.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any

import structlog
from fastapi import APIRouter, Request, Response, status

HealthCheck = Callable[[Request], Awaitable[bool]]

logger = structlog.get_logger()


def create_health_router(
    service_name: str,
    readiness_checks: dict[str, HealthCheck] | None = None,
    *,
    timeout: float = 2.0,
) -> APIRouter:
    """Build a health router with optional readiness probes.

    Args:
        service_name: Reported by the basic ``/health`` endpoint.
        readiness_checks: Mapping of dependency name to an async callable that
            receives the current request and returns True if the dependency
            is reachable.
        timeout: Upper bound in seconds for each readiness check.

    Returns:
        A FastAPI ``APIRouter`` with ``/health``, ``/health/live`` and
        ``/health/ready``.
    """
    router = APIRouter(prefix="/health", tags=["health"])
    checks = readiness_checks or {}

    @router.get("", summary="Basic health status")
    async def health() -> dict[str, str]:
        return {
            "status": "healthy",
            "service": service_name,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @router.get("/live", summary="Liveness probe")
    async def liveness() -> dict[str, str]:
        return {"status": "alive"}

    @router.get("/ready", summary="Readiness probe")
    async def readiness(request: Request, response: Response) -> dict[str, Any]:
        dependencies: dict[str, str] = {}
        all_ok = True

        for name, check in checks.items():
            try:
                ok = await asyncio.wait_for(check(request), timeout=timeout)
            except Exception as exc:
                logger.warning(
                    "readiness_check_failed",
                    dependency=name,
                    error_type=type(exc).__name__,
                )
                ok = False
            dependencies[name] = "up" if ok else "down"
            all_ok = all_ok and ok

        if not all_ok:
            response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

        return {
            "status": "ready" if all_ok else "not ready",
            "dependencies": dependencies,
        }

    return router
