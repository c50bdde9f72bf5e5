"""API Gateway — Record proxy routes (forwards to data_service)."""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx
import structlog
from fastapi import APIRouter, Depends, Request, Response

from api_gateway.core.dependencies import get_forwarder
from api_gateway.services.forwarder import Forwarder
from shared.middleware import tracing_headers

router = APIRouter(prefix="/api/records", tags=["Records (Gateway)"])
logger = structlog.get_logger()


def _record_path(record_id: str) -> str:
    # Dots are escaped too so "." and ".." are not collapsed by URL normalisation
    return "/records/" + quote(record_id, safe="").replace(".", "%2E")


def _relay(upstream: httpx.Response) -> Response:
    """Hand the upstream status and body back unchanged."""
    return Response(
        content=upstream.content,
        status_code=upstream.status_code,
        media_type=upstream.headers.get("content-type"),
    )


async def _proxy(
    request: Request,
    forwarder: Forwarder,
    method: str,
    path: str,
    **kwargs: Any,
) -> Response:
    headers = tracing_headers(request)
    content_type = request.headers.get("content-type")
    if content_type:
        headers["Content-Type"] = content_type

    upstream = await forwarder.forward(method, path, headers=headers, **kwargs)
    return _relay(upstream)


@router.get("")
async def list_records(
    request: Request,
    forwarder: Forwarder = Depends(get_forwarder),
) -> Response:
    """List records — proxied to data_service."""
    return await _proxy(
        request, forwarder, "GET", "/records", params=list(request.query_params.multi_items())
    )


@router.get("/{record_id}")
async def get_record(
    record_id: str,
    request: Request,
    forwarder: Forwarder = Depends(get_forwarder),
) -> Response:
    return await _proxy(request, forwarder, "GET", _record_path(record_id))


@router.post("")
async def create_record(
    request: Request,
    forwarder: Forwarder = Depends(get_forwarder),
) -> Response:
    """Create record — body is forwarded as received."""
    body = await request.body()
    logger.info("gateway_create_record")
    return await _proxy(request, forwarder, "POST", "/records", content=body)


@router.delete("/{record_id}")
async def delete_record(
    record_id: str,
    request: Request,
    forwarder: Forwarder = Depends(get_forwarder),
) -> Response:
    return await _proxy(request, forwarder, "DELETE", _record_path(record_id))
