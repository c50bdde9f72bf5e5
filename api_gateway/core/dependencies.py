"""API Gateway — request-scoped access to the forwarding client."""

from __future__ import annotations

from fastapi import Request

from api_gateway.services.forwarder import Forwarder


def get_forwarder(request: Request) -> Forwarder:
    return request.app.state.forwarder
