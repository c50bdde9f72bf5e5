"""API Gateway — FastAPI application factory.

Central entry-point for client requests. Proxies record calls to the data
service and reports readiness based on the data service's health.
"""

from __future__ import annotations

import asyncio
import sys

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api_gateway.core.config import settings
from api_gateway.core.events import lifespan
from api_gateway.routers import health
from api_gateway.routers.records import router as records_router

from shared.errors import add_error_handlers
from shared.lifecycle import LifecycleCoordinator, serve
from shared.logging import setup_logging
from shared.metrics import MetricsMiddleware, create_metrics_router
from shared.middleware import RequestContextMiddleware


def create_app(coordinator: LifecycleCoordinator | None = None) -> FastAPI:
    setup_logging(settings)

    application = FastAPI(
        title="Record Relay API Gateway",
        version="0.1.0",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )
    application.state.lifecycle = coordinator or LifecycleCoordinator(
        settings.service_name,
        shutdown_timeout=settings.shutdown_timeout_seconds,
    )

    add_error_handlers(application)

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.add_middleware(MetricsMiddleware, service_name=settings.service_name)
    application.add_middleware(RequestContextMiddleware)

    # Routers
    application.include_router(health.router)
    application.include_router(records_router)
    application.include_router(create_metrics_router())

    return application


app = create_app()


def run() -> None:
    sys.exit(
        asyncio.run(
            serve(
                app,
                host=settings.service_host,
                port=settings.service_port,
                log_level=settings.log_level,
            )
        )
    )


if __name__ == "__main__":
    run()
