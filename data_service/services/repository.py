"""Record repository — the whole collection lives as one JSON blob under one key.

Every mutation reads the entire collection, changes it in memory and writes
it back. Two concurrent writers can therefore lose one update (the last blob
written wins); callers get no isolation between concurrent create/delete.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

import structlog
from pydantic import TypeAdapter

from data_service.schemas.record import Record, Role
from data_service.services.store import StoreClient
from shared.errors import ConflictError, NotFoundError, ValidationError

logger = structlog.get_logger()

_collection = TypeAdapter(list[Record])

SEED_RECORDS: tuple[tuple[str, str, Role], ...] = (
    ("John Doe", "john@example.com", Role.ADMIN),
    ("Jane Smith", "jane@example.com", Role.USER),
    ("Bob Wilson", "bob@example.com", Role.USER),
)


def _seed_id(email: str) -> str:
    return str(uuid.uuid5(uuid.NAMESPACE_URL, f"mailto:{email}"))


class RecordRepository:
    """List/get/create/delete over a single versioned record collection."""

    def __init__(self, store: StoreClient, key: str = "users") -> None:
        self._store = store
        self._key = key

    async def ensure_seeded(self) -> bool:
        """Write the sample records if the collection key is absent.

        Returns True when the seed was written, False when the key already
        existed and nothing changed.
        """
        if await self._store.exists(self._key):
            logger.info("records_seed_skipped", key=self._key)
            return False

        now = datetime.now(timezone.utc)
        records = [
            Record(id=_seed_id(email), name=name, email=email, role=role, created_at=now)
            for name, email, role in SEED_RECORDS
        ]
        await self._save(records)
        logger.info("records_seeded", key=self._key, count=len(records))
        return True

    async def list(self) -> list[Record]:
        raw = await self._store.get(self._key)
        if not raw:
            return []
        return _collection.validate_json(raw)

    async def get_by_id(self, record_id: str) -> Record:
        for record in await self.list():
            if record.id == record_id:
                return record
        raise NotFoundError("Record not found")

    async def create(
        self,
        name: str | None,
        email: str | None,
        role: Role | str | None = None,
    ) -> Record:
        if not name or not name.strip() or not email or not email.strip():
            raise ValidationError("Name and email are required")
        try:
            role = Role(role) if role else Role.USER
        except ValueError:
            raise ValidationError(f"Unknown role: {role}") from None

        records = await self.list()
        if any(r.email == email for r in records):
            raise ConflictError("Email already exists")

        record = Record(
            id=str(uuid.uuid4()),
            name=name,
            email=email,
            role=role,
            created_at=datetime.now(timezone.utc),
        )
        records.append(record)
        await self._save(records)

        logger.info("record_created", record_id=record.id)
        return record

    async def delete_by_id(self, record_id: str) -> None:
        records = await self.list()
        remaining = [r for r in records if r.id != record_id]
        if len(remaining) == len(records):
            raise NotFoundError("Record not found")

        await self._save(remaining)
        logger.info("record_deleted", record_id=record_id)

    async def _save(self, records: list[Record]) -> None:
        await self._store.set(self._key, _collection.dump_json(records).decode())
