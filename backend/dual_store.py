# dual_store.py - Primary store with local-cache fallback
"""
Every content read and write goes through :class:`DualStore`:

* writes try the primary store when the breaker allows it, mirror a
  successful write into the local cache (mirror failures are only logged),
  and on any primary failure redo the write against the cache with a fresh
  local id and local timestamps;
* single reads return the primary copy when there is one and fall back to the
  cache copy otherwise;
* list reads union both stores by id, the primary copy winning.

Reads never raise because of a store failure. Writes raise ``NotFoundError``
when the target is in neither store and ``StoreUnavailableError`` when the
cache rejects a fallback write. Deletes of documents the primary store may
hold raise ``StoreUnavailableError`` while it is unreachable.
"""
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from availability import CircuitBreaker
from document_store import Collection, DocumentStore
from errors import NotFoundError, StoreUnavailableError
from telemetry import get_tracer
from timestamps import MonotonicClock

logger = logging.getLogger("vice-city.store")
tracer = get_tracer("vice-city.store")

Document = Dict[str, Any]
Builder = Callable[[str, datetime], Document]
Mutator = Callable[[Document, datetime], Document]


class DualStore:
    def __init__(
        self,
        primary: DocumentStore,
        cache: DocumentStore,
        breaker: CircuitBreaker,
        clock: Optional[MonotonicClock] = None,
    ):
        self.primary = primary
        self.cache = cache
        self.breaker = breaker
        self.clock = clock or MonotonicClock()

    # ── Primary / cache helpers ─────────────────────────────

    async def _primary(self, collection: Collection, operation: str, call: Callable[[], Awaitable[Any]]) -> Tuple[bool, Any]:
        try:
            result = await call()
        except Exception as e:
            self.breaker.record_failure(e)
            logger.warning(f"{collection.name}: {operation} failed on {self.primary.name}, using {self.cache.name}: {e}")
            return False, None
        self.breaker.record_success()
        return True, result

    async def _mirror(self, collection: Collection, doc_id: str, document: Document) -> None:
        try:
            await self.cache.put(collection, doc_id, document)
        except Exception as e:
            logger.warning(f"{collection.name}: mirror of {doc_id} to {self.cache.name} failed: {e}")

    async def _cache_write(self, collection: Collection, doc_id: str, document: Document) -> None:
        try:
            await self.cache.put(collection, doc_id, document)
        except Exception as e:
            raise StoreUnavailableError(
                f"{collection.name}: write of {doc_id} failed on both stores ({e})"
            ) from e

    async def _cache_get(self, collection: Collection, doc_id: str) -> Optional[Document]:
        try:
            return await self.cache.get(collection, doc_id)
        except Exception as e:
            logger.warning(f"{collection.name}: {self.cache.name} read of {doc_id} failed: {e}")
            return None

    # ── Reads ───────────────────────────────────────────────

    async def get(self, collection: Collection, doc_id: str) -> Optional[Document]:
        if self.breaker.allow_primary():
            ok, document = await self._primary(collection, "get", lambda: self.primary.get(collection, doc_id))
            if ok and document is not None:
                return document
        return await self._cache_get(collection, doc_id)

    async def list(self, collection: Collection) -> List[Document]:
        """Union of both stores by id; the primary copy wins."""
        primary_docs: List[Document] = []
        if self.breaker.allow_primary():
            ok, result = await self._primary(collection, "list", lambda: self.primary.list(collection))
            if ok:
                primary_docs = result
        try:
            cached_docs = await self.cache.list(collection)
        except Exception as e:
            logger.warning(f"{collection.name}: {self.cache.name} list failed: {e}")
            cached_docs = []

        merged: Dict[str, Document] = {doc["id"]: doc for doc in cached_docs if doc.get("id")}
        merged.update({doc["id"]: doc for doc in primary_docs if doc.get("id")})
        return list(merged.values())

    # ── Writes ──────────────────────────────────────────────

    async def insert(self, collection: Collection, build: Builder) -> Document:
        """Create a document; ``build(doc_id, now)`` returns its fields."""
        with tracer.start_as_current_span(f"{collection.name}.insert") as span:
            if self.breaker.allow_primary():
                ok, doc_id = await self._primary(collection, "allocate id", lambda: self.primary.new_id(collection))
                if ok:
                    document = build(doc_id, self.clock.now())
                    ok, _ = await self._primary(
                        collection, "insert", lambda: self.primary.put(collection, doc_id, document)
                    )
                    if ok:
                        await self._mirror(collection, doc_id, document)
                        span.set_attribute("store.path", "primary")
                        return document

            span.set_attribute("store.path", "fallback")
            doc_id = await self.cache.new_id(collection)
            document = build(doc_id, self.clock.now())
            await self._cache_write(collection, doc_id, document)
            logger.info(f"{collection.name}: created {doc_id} in {self.cache.name}")
            return document

    async def modify(self, collection: Collection, doc_id: str, mutate: Mutator) -> Document:
        """Replace a document with ``mutate(existing, now)``."""
        with tracer.start_as_current_span(f"{collection.name}.modify") as span:
            primary_copy: Optional[Document] = None
            checked = self.cache.name
            if self.breaker.allow_primary():
                ok, primary_copy = await self._primary(collection, "get", lambda: self.primary.get(collection, doc_id))
                if ok:
                    checked = f"{self.primary.name} and {self.cache.name}"
                if ok and primary_copy is not None:
                    document = mutate(primary_copy, self.clock.now())
                    ok, _ = await self._primary(
                        collection, "update", lambda: self.primary.put(collection, doc_id, document)
                    )
                    if ok:
                        await self._mirror(collection, doc_id, document)
                        span.set_attribute("store.path", "primary")
                        return document

            span.set_attribute("store.path", "fallback")
            # the primary copy read above is fresher than the cache mirror
            existing = primary_copy if primary_copy is not None else await self._cache_get(collection, doc_id)
            if existing is None:
                raise NotFoundError(doc_id, collection.name, store=checked)
            document = mutate(existing, self.clock.now())
            await self._cache_write(collection, doc_id, document)
            return document

    async def remove(self, collection: Collection, doc_id: str) -> bool:
        """Delete from both stores. Returns False if neither held the document.

        Raises ``StoreUnavailableError`` without touching the cache when the
        primary store cannot be reached and may still hold the document.
        """
        with tracer.start_as_current_span(f"{collection.name}.remove"):
            removed = False
            primary_ok = False
            if self.breaker.allow_primary():
                primary_ok, result = await self._primary(
                    collection, "delete", lambda: self.primary.delete(collection, doc_id)
                )
                removed = bool(result)
            if not primary_ok and not self.cache.is_local_id(doc_id):
                raise StoreUnavailableError(
                    f"{collection.name}: cannot delete {doc_id} while {self.primary.name} is unavailable"
                )
            try:
                removed = await self.cache.delete(collection, doc_id) or removed
            except Exception as e:
                if not primary_ok:
                    raise StoreUnavailableError(
                        f"{collection.name}: delete of {doc_id} failed on both stores ({e})"
                    ) from e
                logger.warning(f"{collection.name}: {self.cache.name} delete of {doc_id} failed: {e}")
            return removed
