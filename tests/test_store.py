"""Store client error translation and connectivity reporting."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, patch

import pytest
from redis.exceptions import TimeoutError as RedisTimeoutError

from data_service.core.config import DataServiceSettings
from data_service.services.store import StoreClient
from shared.errors import StoreUnavailableError

pytestmark = pytest.mark.unit


async def test_status_tracks_last_operation(store, fake_redis):
    assert store.status == "down"

    await store.ping()
    assert store.status == "up"

    fake_redis.go_down()
    with pytest.raises(StoreUnavailableError):
        await store.get("users")
    assert store.status == "down"


async def test_error_type_is_classified_without_leaking_text(store, fake_redis):
    fake_redis.fail_with = RedisTimeoutError("Timeout reading from 10.0.0.7:6379")

    with pytest.raises(StoreUnavailableError) as excinfo:
        await store.set("users", "[]")

    assert excinfo.value.error_type == "TimeoutError"
    assert "10.0.0.7" not in excinfo.value.message


async def test_exists_returns_bool(store, fake_redis):
    assert await store.exists("users") is False
    fake_redis.data["users"] = "[]"
    assert await store.exists("users") is True


async def test_connect_retries_then_raises(store, fake_redis):
    fake_redis.go_down()
    with patch("data_service.services.store.asyncio.sleep", new=AsyncMock()) as sleep:
        with pytest.raises(StoreUnavailableError):
            await store.connect()
    sleep.assert_awaited_once()


async def test_connect_succeeds_after_transient_failure(store, fake_redis):
    fake_redis.go_down()

    async def recover(_delay):
        fake_redis.fail_with = None

    with patch("data_service.services.store.asyncio.sleep", new=recover):
        await store.connect()
    assert store.status == "up"


async def test_close_releases_client(store, fake_redis):
    await store.ping()
    await store.close()
    assert fake_redis.closed is True
    assert store.status == "down"


async def test_asyncio_timeout_is_translated(store, fake_redis):
    fake_redis.fail_with = asyncio.TimeoutError()
    with pytest.raises(StoreUnavailableError):
        await store.ping()


def test_from_settings_uses_configured_target():
    settings = DataServiceSettings(
        redis_host="cache.internal",
        redis_port=6380,
        redis_password="s3cret",
        redis_socket_timeout=1.5,
    )
    with patch("data_service.services.store.redis.Redis") as redis_cls:
        StoreClient.from_settings(settings)

    redis_cls.assert_called_once_with(
        host="cache.internal",
        port=6380,
        password="s3cret",
        db=0,
        socket_connect_timeout=1.5,
        socket_timeout=1.5,
        decode_responses=True,
    )


async def test_connect_stops_retrying_once_told_to(fake_redis):
    store = StoreClient(fake_redis, connect_retries=5, connect_delay=10)
    fake_redis.go_down()

    with patch("data_service.services.store.asyncio.sleep", new=AsyncMock()) as sleep:
        with pytest.raises(StoreUnavailableError):
            await store.connect(should_stop=lambda: True)

    sleep.assert_not_awaited()
