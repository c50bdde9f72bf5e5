"""Pydantic schemas for the Record API."""

from __future__ import annotations

import enum
from datetime import datetime

from pydantic import BaseModel, Field


class Role(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"


# ── Stored / Response Schemas ─────────────────


class Record(BaseModel):
    """A single record as stored in the collection blob."""

    id: str
    name: str
    email: str
    role: Role = Role.USER
    created_at: datetime


class RecordListResponse(BaseModel):
    data: list[Record]
    total: int


# ── Request Schemas ───────────────────────────


class RecordCreate(BaseModel):
    """Payload for creating a record; presence of name/email is checked by the repository."""

    name: str | None = Field(default=None, examples=["Ann"])
    email: str | None = Field(default=None, examples=["ann@x.io"])
    role: Role | None = None
