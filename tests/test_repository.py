"""Record repository behaviour over the whole-collection blob."""

from __future__ import annotations

import json

import pytest

from data_service.schemas.record import Role
from data_service.services.repository import SEED_RECORDS
from shared.errors import ConflictError, NotFoundError, StoreUnavailableError, ValidationError

pytestmark = [pytest.mark.unit, pytest.mark.asyncio]


class TestSeeding:
    async def test_seeds_when_key_absent(self, repository, fake_redis):
        assert await repository.ensure_seeded() is True

        records = await repository.list()
        assert [r.email for r in records] == [email for _, email, _ in SEED_RECORDS]
        assert "users" in fake_redis.data

    async def test_seeding_twice_equals_seeding_once(self, repository, fake_redis):
        await repository.ensure_seeded()
        after_first = fake_redis.data["users"]

        assert await repository.ensure_seeded() is False
        assert fake_redis.data["users"] == after_first
        assert len(await repository.list()) == len(SEED_RECORDS)

    async def test_existing_collection_is_not_overwritten(self, repository, fake_redis):
        fake_redis.data["users"] = "[]"

        assert await repository.ensure_seeded() is False
        assert fake_redis.data["users"] == "[]"

    async def test_seed_ids_are_deterministic(self, repository, fake_redis):
        await repository.ensure_seeded()
        first_ids = [r.id for r in await repository.list()]

        fake_redis.data.clear()
        await repository.ensure_seeded()
        assert [r.id for r in await repository.list()] == first_ids


class TestQueries:
    async def test_list_on_empty_store_is_empty(self, repository):
        assert await repository.list() == []

    async def test_get_unknown_id_raises_not_found(self, repository):
        with pytest.raises(NotFoundError):
            await repository.get_by_id("missing")


class TestCreate:
    async def test_create_then_get_round_trips_fields(self, repository):
        created = await repository.create("Ann", "ann@x.io")

        fetched = await repository.get_by_id(created.id)
        assert fetched.name == "Ann"
        assert fetched.email == "ann@x.io"
        assert fetched.role is Role.USER
        assert fetched.created_at == created.created_at

    async def test_identifiers_are_unique(self, repository):
        await repository.ensure_seeded()
        for i in range(5):
            await repository.create(f"User {i}", f"user{i}@x.io")

        ids = [r.id for r in await repository.list()]
        assert len(ids) == len(set(ids)) == len(SEED_RECORDS) + 5

    async def test_explicit_role_is_kept(self, repository):
        created = await repository.create("Root", "root@x.io", "admin")
        assert created.role is Role.ADMIN

    @pytest.mark.parametrize("prior", [0, 1, 7])
    async def test_duplicate_email_conflicts(self, repository, prior):
        for i in range(prior):
            await repository.create(f"User {i}", f"user{i}@x.io")
        await repository.create("Ann", "ann@x.io")

        with pytest.raises(ConflictError):
            await repository.create("Another Ann", "ann@x.io")
        assert len(await repository.list()) == prior + 1

    @pytest.mark.parametrize(
        "name,email",
        [(None, "a@x.io"), ("Ann", None), ("", "a@x.io"), ("Ann", "   ")],
    )
    async def test_missing_fields_rejected(self, repository, fake_redis, name, email):
        with pytest.raises(ValidationError):
            await repository.create(name, email)
        assert "users" not in fake_redis.data

    async def test_unknown_role_rejected(self, repository):
        with pytest.raises(ValidationError):
            await repository.create("Ann", "ann@x.io", "superuser")

    async def test_persists_whole_collection(self, repository, fake_redis):
        await repository.create("Ann", "ann@x.io")
        await repository.create("Ben", "ben@x.io")

        stored = json.loads(fake_redis.data["users"])
        assert [r["email"] for r in stored] == ["ann@x.io", "ben@x.io"]


class TestDelete:
    async def test_delete_removes_record(self, repository):
        created = await repository.create("Ann", "ann@x.io")

        await repository.delete_by_id(created.id)

        with pytest.raises(NotFoundError):
            await repository.get_by_id(created.id)

    async def test_delete_unknown_leaves_collection_unchanged(self, repository, fake_redis):
        await repository.ensure_seeded()
        before = fake_redis.data["users"]

        with pytest.raises(NotFoundError):
            await repository.delete_by_id("missing")
        assert fake_redis.data["users"] == before


class TestStoreFailures:
    async def test_list_surfaces_store_unavailable(self, repository, fake_redis):
        fake_redis.go_down()
        with pytest.raises(StoreUnavailableError):
            await repository.list()

    async def test_seed_surfaces_store_unavailable(self, repository, fake_redis):
        fake_redis.go_down()
        with pytest.raises(StoreUnavailableError):
            await repository.ensure_seeded()
