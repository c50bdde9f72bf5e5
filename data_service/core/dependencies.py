"""Data Service — request-scoped access to the clients built in the lifespan."""

from __future__ import annotations

from fastapi import Request

from data_service.services.repository import RecordRepository
from data_service.services.store import StoreClient


def get_store(request: Request) -> StoreClient:
    return request.app.state.store


def get_repository(request: Request) -> RecordRepository:
    return request.app.state.repository
