"""Document store: primary-key access to submission-core documents.

Provides an abstract interface with an in-memory implementation (default,
used by tests) and a Redis implementation for multi-worker deployments.

Documents are pydantic models declaring a ``collection`` class attribute and
an ``id`` field.  They are stored as camelCase JSON, so every read returns a
fresh object and callers never share mutable state through the store.

``update`` is the only read-modify-write primitive: the mutator sees the
current document (or ``None``) and returns the document to persist.  It is
atomic per document, which is what the result ledger relies on to upsert
mark entries without lost updates.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable, TypeVar

from pydantic import BaseModel

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class StoreConflictError(Exception):
    """An atomic update kept losing the optimistic-lock race."""

    def __init__(self, key: str, attempts: int) -> None:
        self.key = key
        self.attempts = attempts
        super().__init__(f"Update of '{key}' conflicted {attempts} times")


class DocumentStore(ABC):
    """Abstract async document store keyed by (collection, id)."""

    @abstractmethod
    async def get(self, model: type[M], doc_id: str) -> M | None: ...

    @abstractmethod
    async def save(self, doc: BaseModel) -> None: ...

    @abstractmethod
    async def delete(self, model: type[BaseModel], doc_id: str) -> None: ...

    @abstractmethod
    async def find(
        self, model: type[M], predicate: Callable[[M], bool] | None = None
    ) -> list[M]:
        """Return every document of ``model`` matching ``predicate``."""

    @abstractmethod
    async def update(
        self, model: type[M], doc_id: str, mutate: Callable[[M | None], M | None]
    ) -> M | None:
        """Atomically apply ``mutate`` to one document and persist its result.

        Returning ``None`` from ``mutate`` leaves the store untouched.
        Exceptions raised by ``mutate`` propagate and nothing is written.
        """

    async def close(self) -> None:
        """Release connections held by the store (no-op by default)."""


def _encode(doc: BaseModel) -> str:
    return doc.model_dump_json(by_alias=True)


# ── In-Memory Implementation ─────────────────────────────────


class InMemoryDocumentStore(DocumentStore):
    """Process-local store; suitable for tests and single-worker runs."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._collections: dict[str, dict[str, str]] = {}

    def _bucket(self, model: type[BaseModel]) -> dict[str, str]:
        return self._collections.setdefault(model.collection, {})

    async def get(self, model: type[M], doc_id: str) -> M | None:
        with self._lock:
            raw = self._bucket(model).get(doc_id)
        return model.model_validate_json(raw) if raw is not None else None

    async def save(self, doc: BaseModel) -> None:
        with self._lock:
            self._bucket(type(doc))[doc.id] = _encode(doc)

    async def delete(self, model: type[BaseModel], doc_id: str) -> None:
        with self._lock:
            self._bucket(model).pop(doc_id, None)

    async def find(
        self, model: type[M], predicate: Callable[[M], bool] | None = None
    ) -> list[M]:
        with self._lock:
            raws = list(self._bucket(model).values())
        docs = [model.model_validate_json(raw) for raw in raws]
        if predicate is None:
            return docs
        return [d for d in docs if predicate(d)]

    async def update(
        self, model: type[M], doc_id: str, mutate: Callable[[M | None], M | None]
    ) -> M | None:
        with self._lock:
            bucket = self._bucket(model)
            raw = bucket.get(doc_id)
            current = model.model_validate_json(raw) if raw is not None else None
            updated = mutate(current)
            if updated is not None:
                bucket[doc_id] = _encode(updated)
            return updated

    @property
    def size(self) -> int:
        """Number of documents across all collections."""
        with self._lock:
            return sum(len(b) for b in self._collections.values())


# ── Redis Implementation ─────────────────────────────────────


class RedisDocumentStore(DocumentStore):
    """Redis-backed store; documents live under ``{collection}:{id}`` keys.

    ``update`` uses WATCH/MULTI so concurrent writers to the same document
    retry instead of overwriting each other.
    """

    def __init__(self, redis_url: str, max_retries: int = 10):
        import redis.asyncio as aioredis

        self._redis = aioredis.from_url(
            redis_url,
            decode_responses=True,
            socket_connect_timeout=10,
            socket_timeout=10,
        )
        self._max_retries = max_retries

    @staticmethod
    def _key(model: type[BaseModel], doc_id: str) -> str:
        return f"{model.collection}:{doc_id}"

    async def get(self, model: type[M], doc_id: str) -> M | None:
        raw = await self._redis.get(self._key(model, doc_id))
        return model.model_validate_json(raw) if raw is not None else None

    async def save(self, doc: BaseModel) -> None:
        await self._redis.set(self._key(type(doc), doc.id), _encode(doc))

    async def delete(self, model: type[BaseModel], doc_id: str) -> None:
        await self._redis.delete(self._key(model, doc_id))

    async def find(
        self, model: type[M], predicate: Callable[[M], bool] | None = None
    ) -> list[M]:
        keys = [key async for key in self._redis.scan_iter(match=f"{model.collection}:*")]
        if not keys:
            return []
        raws = await self._redis.mget(keys)
        docs = [model.model_validate_json(raw) for raw in raws if raw is not None]
        if predicate is None:
            return docs
        return [d for d in docs if predicate(d)]

    async def update(
        self, model: type[M], doc_id: str, mutate: Callable[[M | None], M | None]
    ) -> M | None:
        from redis.exceptions import WatchError

        key = self._key(model, doc_id)
        async with self._redis.pipeline(transaction=True) as pipe:
            for attempt in range(1, self._max_retries + 1):
                try:
                    await pipe.watch(key)
                    raw = await pipe.get(key)
                    current = model.model_validate_json(raw) if raw is not None else None
                    updated = mutate(current)
                    if updated is None:
                        await pipe.unwatch()
                        return None
                    pipe.multi()
                    pipe.set(key, _encode(updated))
                    await pipe.execute()
                    return updated
                except WatchError:
                    logger.debug("Write conflict on %s (attempt %d)", key, attempt)
                    continue
        raise StoreConflictError(key, self._max_retries)

    async def close(self) -> None:
        """Close the Redis connection pool."""
        await self._redis.aclose()

    async def ping(self) -> bool:
        """Check Redis connectivity."""
        try:
            return await self._redis.ping()
        except Exception:
            return False


# ── Module-level Singleton ───────────────────────────────────

_store: DocumentStore | None = None


def get_document_store() -> DocumentStore:
    """Get the singleton document store instance."""
    global _store
    if _store is None:
        from config.settings import get_settings

        settings = get_settings()
        if settings.document_store_type == "redis" and settings.redis_url:
            _store = RedisDocumentStore(
                redis_url=settings.redis_url,
                max_retries=settings.store_update_retries,
            )
            logger.info("Initialized RedisDocumentStore")
        else:
            _store = InMemoryDocumentStore()
            logger.info("Initialized InMemoryDocumentStore")
    return _store
