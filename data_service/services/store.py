"""Data Service — Redis store client.

Every Redis or timeout error is turned into ``StoreUnavailableError`` so the
routers only ever see the service's own error taxonomy.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable

import redis.asyncio as redis
import structlog
from redis.exceptions import RedisError

from data_service.core.config import DataServiceSettings
from shared.errors import StoreUnavailableError

logger = structlog.get_logger()


class StoreClient:
    """Async key-value store client reporting connectivity as up/down."""

    def __init__(
        self,
        client: redis.Redis,
        *,
        connect_retries: int = 3,
        connect_delay: float = 1.0,
    ) -> None:
        self._client = client
        self._connect_retries = connect_retries
        self._connect_delay = connect_delay
        self._up = False

    @classmethod
    def from_settings(cls, settings: DataServiceSettings) -> StoreClient:
        client = redis.Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            password=settings.redis_password,
            db=settings.redis_db,
            socket_connect_timeout=settings.redis_socket_timeout,
            socket_timeout=settings.redis_socket_timeout,
            decode_responses=True,
        )
        return cls(
            client,
            connect_retries=settings.redis_connect_retries,
            connect_delay=settings.redis_connect_delay,
        )

    @property
    def status(self) -> str:
        return "up" if self._up else "down"

    async def connect(self, should_stop: Callable[[], bool] | None = None) -> None:
        """Ping until the store answers, giving up after the configured attempts.

        ``should_stop`` is checked before every retry; once it returns True the
        last failure is raised without waiting out the remaining attempts.
        """
        for attempt in range(1, self._connect_retries + 1):
            try:
                await self.ping()
            except StoreUnavailableError as exc:
                logger.warning(
                    "store_connect_retry",
                    attempt=attempt,
                    retries=self._connect_retries,
                    delay_seconds=self._connect_delay,
                    error_type=exc.error_type,
                )
                if attempt == self._connect_retries:
                    raise
                if should_stop is not None and should_stop():
                    logger.warning("store_connect_abandoned", attempt=attempt)
                    raise
                await asyncio.sleep(self._connect_delay)
            else:
                logger.info("store_connected")
                return

    async def ping(self) -> bool:
        return bool(await self._call("ping", self._client.ping()))

    async def get(self, key: str) -> str | None:
        return await self._call("get", self._client.get(key))

    async def set(self, key: str, value: str) -> None:
        await self._call("set", self._client.set(key, value))

    async def exists(self, key: str) -> bool:
        return bool(await self._call("exists", self._client.exists(key)))

    async def close(self) -> None:
        self._up = False
        await self._client.aclose()
        logger.info("store_disconnected")

    async def _call(self, operation: str, awaitable):
        try:
            result = await awaitable
        except (RedisError, asyncio.TimeoutError, OSError) as exc:
            self._up = False
            logger.error(
                "store_operation_failed",
                operation=operation,
                error_type=type(exc).__name__,
            )
            raise StoreUnavailableError(error_type=type(exc).__name__) from exc
        self._up = True
        return result
