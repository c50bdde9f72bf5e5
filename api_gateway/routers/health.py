"""API Gateway — health-check endpoints.

Readiness follows the data service: the gateway is only ready while the data
service answers its basic ``/health`` probe.
"""

from __future__ import annotations

from fastapi import Request

from api_gateway.core.config import settings
from api_gateway.core.dependencies import get_forwarder
from shared.health import create_health_router


async def check_data_service(request: Request) -> bool:
    return await get_forwarder(request).probe(
        "/health", timeout=settings.readiness_timeout_seconds
    )


router = create_health_router(
    settings.service_name,
    readiness_checks={"data_service": check_data_service},
    timeout=settings.readiness_timeout_seconds,
)
