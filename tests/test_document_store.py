"""Tests for the document store."""

from __future__ import annotations

import pytest

from models.account import User
from models.submission import Submission
from services import document_store
from services.document_store import (
    InMemoryDocumentStore,
    RedisDocumentStore,
    get_document_store,
)


class TestInMemoryDocumentStore:
    async def test_save_and_get(self, store):
        await store.save(User(id="u1", name="Alice"))
        user = await store.get(User, "u1")
        assert user.name == "Alice"
        assert await store.get(User, "missing") is None

    async def test_reads_are_copies(self, store):
        await store.save(User(id="u1", name="Alice"))
        user = await store.get(User, "u1")
        user.name = "Mallory"
        assert (await store.get(User, "u1")).name == "Alice"

    async def test_collections_isolated(self, store):
        await store.save(User(id="x", name="Alice"))
        assert await store.get(Submission, "x") is None

    async def test_find_with_predicate(self, store):
        await store.save(User(id="u1", name="Alice"))
        await store.save(User(id="u2", name="Bob"))
        assert len(await store.find(User)) == 2
        found = await store.find(User, lambda u: u.name.startswith("B"))
        assert [u.id for u in found] == ["u2"]

    async def test_delete(self, store):
        await store.save(User(id="u1"))
        await store.delete(User, "u1")
        await store.delete(User, "u1")
        assert await store.get(User, "u1") is None
        assert store.size == 0

    async def test_update_creates_and_mutates(self, store):
        def rename(user):
            if user is None:
                return User(id="u1", name="new")
            user.name = user.name + "!"
            return user

        await store.update(User, "u1", rename)
        updated = await store.update(User, "u1", rename)
        assert updated.name == "new!"
        assert (await store.get(User, "u1")).name == "new!"

    async def test_update_returning_none_writes_nothing(self, store):
        assert await store.update(User, "u1", lambda current: None) is None
        assert store.size == 0

    async def test_update_error_writes_nothing(self, store):
        await store.save(User(id="u1", name="Alice"))

        def explode(user):
            user.name = "half-done"
            raise ValueError("boom")

        with pytest.raises(ValueError):
            await store.update(User, "u1", explode)
        assert (await store.get(User, "u1")).name == "Alice"


class TestRedisDocumentStore:
    def test_key_layout(self):
        assert RedisDocumentStore._key(Submission, "abc") == "submissions:abc"
        assert RedisDocumentStore._key(User, "u1") == "users:u1"


class TestSingleton:
    def test_defaults_to_memory(self, monkeypatch):
        from config.settings import Settings

        monkeypatch.setattr(document_store, "_store", None)
        monkeypatch.setattr(
            "config.settings.get_settings", lambda: Settings(document_store_type="memory")
        )
        store = get_document_store()
        assert isinstance(store, InMemoryDocumentStore)
        assert get_document_store() is store
