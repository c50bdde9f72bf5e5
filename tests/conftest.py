"""
Test Configuration and Fixtures

Shared fixtures for the data service and gateway suites. Redis is replaced by
an in-memory double exposing the ``redis.asyncio`` calls the store client
uses; HTTP goes through ``httpx.ASGITransport`` so no sockets are opened.
"""

import asyncio
import os
from typing import Any

import httpx
import pytest
import pytest_asyncio
from redis.exceptions import ConnectionError as RedisConnectionError

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from api_gateway.main import create_app as create_gateway_app  # noqa: E402
from api_gateway.services.forwarder import Forwarder, ForwardingPolicy  # noqa: E402
from data_service.main import create_app as create_data_app  # noqa: E402
from data_service.services.repository import RecordRepository  # noqa: E402
from data_service.services.store import StoreClient  # noqa: E402
from shared.lifecycle import LifecycleCoordinator  # noqa: E402

DATA_SERVICE_BASE_URL = "http://data-service"


class FakeRedis:
    """In-memory stand-in for ``redis.asyncio.Redis``."""

    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.fail_with: Exception | None = None
        self.delay: float = 0.0
        self.closed = False

    async def _check(self) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_with is not None:
            raise self.fail_with

    def go_down(self) -> None:
        self.fail_with = RedisConnectionError("connection refused by 10.0.0.7:6379")

    async def ping(self) -> bool:
        await self._check()
        return True

    async def get(self, key: str) -> str | None:
        await self._check()
        return self.data.get(key)

    async def set(self, key: str, value: str) -> bool:
        await self._check()
        self.data[key] = value
        return True

    async def exists(self, key: str) -> int:
        await self._check()
        return int(key in self.data)

    async def aclose(self) -> None:
        self.closed = True


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated)")
    config.addinivalue_line("markers", "api: API endpoint tests")


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def store(fake_redis) -> StoreClient:
    return StoreClient(fake_redis, connect_retries=2, connect_delay=0)


@pytest.fixture
def repository(store) -> RecordRepository:
    return RecordRepository(store, key="users")


@pytest.fixture
def coordinator() -> LifecycleCoordinator:
    return LifecycleCoordinator("test", shutdown_timeout=5.0, exit_func=lambda code: None)


@pytest.fixture
def data_app(store, repository, coordinator):
    """Data service app with its lifespan-owned state filled in directly."""
    app = create_data_app(coordinator)
    app.state.store = store
    app.state.repository = repository
    return app


@pytest_asyncio.fixture
async def data_client(data_app):
    transport = httpx.ASGITransport(app=data_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


def make_gateway_app(transport: httpx.AsyncBaseTransport, **policy: Any):
    """Gateway app whose forwarder sends through ``transport``."""
    app = create_gateway_app(
        LifecycleCoordinator("gateway-test", shutdown_timeout=5.0, exit_func=lambda code: None)
    )
    upstream = httpx.AsyncClient(transport=transport, base_url=DATA_SERVICE_BASE_URL)
    app.state.forwarder = Forwarder(upstream, ForwardingPolicy(**{"timeout": 1.0, **policy}))
    return app


@pytest_asyncio.fixture
async def gateway_client(data_app):
    """Gateway wired to the in-process data service."""
    app = make_gateway_app(httpx.ASGITransport(app=data_app))
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://gateway") as client:
        yield client
    await app.state.forwarder._client.aclose()
