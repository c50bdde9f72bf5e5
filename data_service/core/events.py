"""Data Service — application lifespan (startup / shutdown hooks).

uvicorn runs the startup half before binding its socket, so the collection is
seeded before any connection is accepted. The shutdown half runs after the
listener has drained and releases the store connection.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from data_service.core.config import settings
from data_service.services.repository import RecordRepository
from data_service.services.store import StoreClient
from shared.errors import StoreUnavailableError
from shared.lifecycle import LifecycleCoordinator, LifecycleState

log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage startup and shutdown resources."""
    coordinator: LifecycleCoordinator = app.state.lifecycle
    log.info(
        "data_service starting up",
        store=f"{settings.redis_host}:{settings.redis_port}",
    )

    async with coordinator.dependencies() as resources:
        store = StoreClient.from_settings(settings)
        resources.add("store", store.close)
        repository = RecordRepository(store, key=settings.records_key)

        app.state.store = store
        app.state.repository = repository

        # Degraded start: keep serving /health/live even without the store
        try:
            await store.connect(
                should_stop=lambda: coordinator.state is not LifecycleState.STARTING
            )
            await repository.ensure_seeded()
        except StoreUnavailableError as exc:
            log.warning("records_seed_failed", error_type=exc.error_type)

        coordinator.mark_serving()
        yield

        log.info("data_service shutting down")
