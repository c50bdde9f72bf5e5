"""API Gateway — forwarding client for the data service.

Successful upstream responses and recognised client errors are handed back
verbatim. Anything else (connection failure, timeout, 5xx, unexpected status)
becomes ``UpstreamUnreachableError`` with a generic message; the network
error text is only logged.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from shared.errors import UpstreamUnreachableError

logger = structlog.get_logger()

PASSTHROUGH_STATUSES = frozenset({400, 404, 409})


@dataclass(frozen=True)
class ForwardingPolicy:
    """Per-call bounds for requests sent downstream."""

    timeout: float = 10.0
    max_retries: int = 0
    backoff: float = 0.5
    retry_methods: frozenset[str] = frozenset({"GET"})


class Forwarder:
    """Sends requests to one downstream base URL under a ``ForwardingPolicy``."""

    def __init__(self, client: httpx.AsyncClient, policy: ForwardingPolicy) -> None:
        self._client = client
        self.policy = policy

    async def forward(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Forward a request and return the upstream response to pass back."""
        response = await self._send(method, path, **kwargs)

        if response.is_success or response.status_code in PASSTHROUGH_STATUSES:
            return response

        logger.error(
            "forward_failed",
            method=method,
            path=path,
            upstream_status=response.status_code,
            error_type="UnexpectedStatus",
        )
        raise UpstreamUnreachableError(error_type="UnexpectedStatus")

    async def probe(self, path: str, timeout: float) -> bool:
        """Return True if ``path`` answers 2xx within ``timeout`` seconds."""
        try:
            response = await self._client.get(path, timeout=timeout)
        except httpx.HTTPError as exc:
            logger.warning("upstream_probe_failed", path=path, error_type=type(exc).__name__)
            return False
        return response.is_success

    async def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        attempts = 1
        if method.upper() in self.policy.retry_methods:
            attempts += max(0, self.policy.max_retries)

        for attempt in range(1, attempts + 1):
            try:
                return await self._client.request(
                    method, path, timeout=self.policy.timeout, **kwargs
                )
            except httpx.HTTPError as exc:
                error_type = type(exc).__name__
                if attempt < attempts and isinstance(exc, httpx.TransportError):
                    delay = self.policy.backoff * attempt
                    logger.warning(
                        "forward_retry",
                        method=method,
                        path=path,
                        attempt=attempt,
                        delay_seconds=delay,
                        error_type=error_type,
                    )
                    await asyncio.sleep(delay)
                    continue
                logger.error(
                    "forward_failed",
                    method=method,
                    path=path,
                    error_type=error_type,
                )
                raise UpstreamUnreachableError(error_type=error_type) from exc
