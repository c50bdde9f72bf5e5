"""Request tracing: per-request IDs bound into the structlog context.

``X-Request-ID`` identifies one hop; ``X-Correlation-ID`` follows a call
across services. Both are echoed on the response, and the gateway sends them
on to the data service via :func:`tracing_headers`.
"""

from __future__ import annotations

import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

CORRELATION_HEADER = "X-Correlation-ID"
REQUEST_HEADER = "X-Request-ID"

_MAX_ID_LENGTH = 128


def _inbound_id(request: Request, header: str) -> str | None:
    value = request.headers.get(header, "").strip()
    if not value or len(value) > _MAX_ID_LENGTH:
        return None
    return value


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = _inbound_id(request, REQUEST_HEADER) or uuid.uuid4().hex
        # A call entering the system starts its own trace
        correlation_id = _inbound_id(request, CORRELATION_HEADER) or request_id

        request.state.request_id = request_id
        request.state.correlation_id = correlation_id

        with structlog.contextvars.bound_contextvars(
            request_id=request_id,
            correlation_id=correlation_id,
            method=request.method,
            path=request.url.path,
        ):
            response = await call_next(request)

        response.headers[REQUEST_HEADER] = request_id
        response.headers[CORRELATION_HEADER] = correlation_id
        return response


def tracing_headers(request: Request) -> dict[str, str]:
    """Headers to send downstream so both services log the same IDs."""
    headers: dict[str, str] = {}
    request_id = getattr(request.state, "request_id", None)
    correlation_id = getattr(request.state, "correlation_id", None)
    if request_id:
        headers[REQUEST_HEADER] = request_id
    if correlation_id:
        headers[CORRELATION_HEADER] = correlation_id
    return headers
