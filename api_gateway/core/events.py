"""API Gateway — application lifespan (startup / shutdown hooks)."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
import structlog
from fastapi import FastAPI

from api_gateway.core.config import settings
from api_gateway.services.forwarder import Forwarder, ForwardingPolicy
from shared.lifecycle import LifecycleCoordinator

log = structlog.get_logger()


def build_policy() -> ForwardingPolicy:
    return ForwardingPolicy(
        timeout=settings.forward_timeout_seconds,
        max_retries=settings.forward_max_retries,
        backoff=settings.forward_backoff_seconds,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage startup and shutdown resources."""
    coordinator: LifecycleCoordinator = app.state.lifecycle
    log.info("api_gateway starting up", data_service_url=settings.data_service_url)

    async with coordinator.dependencies() as resources:
        policy = build_policy()
        http_client = httpx.AsyncClient(
            base_url=settings.data_service_url,
            timeout=policy.timeout,
        )
        resources.add("http_client", http_client.aclose)
        app.state.forwarder = Forwarder(http_client, policy)

        coordinator.mark_serving()
        yield

        log.info("api_gateway shutting down")
