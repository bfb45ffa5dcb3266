# document_store.py - Document store interface and the primary (SQL-backed) store
"""
Both persistence backends implement :class:`DocumentStore`. Documents are
plain dicts with camelCase keys; each backend converts timestamps to its own
wire representation on write and back to ``datetime`` on read, so callers
never see raw timestamp shapes.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from sqlalchemy import select, delete as sa_delete
from sqlalchemy.ext.asyncio import async_sessionmaker

from database import get_db_context
from models import ContentDocument, new_document_id
from timestamps import to_datetime, to_iso

logger = logging.getLogger("vice-city.store")


@dataclass(frozen=True)
class Collection:
    """A named document collection and its local-cache key."""

    name: str
    cache_key: str
    timestamp_fields: Tuple[str, ...] = ("createdAt", "updatedAt")


WIKI_PAGES = Collection("wiki-pages", "local_wiki_pages")
WIKI_REVISIONS = Collection("wiki-revisions", "local_wiki_revisions", ("timestamp",))
NEWS_ARTICLES = Collection("news-articles", "local_news_articles")
NEWS_REVISIONS = Collection("news-revisions", "local_news_revisions", ("timestamp",))
USERS = Collection("users", "local_users", ("createdAt", "lastLogin"))

COLLECTIONS = {c.name: c for c in (WIKI_PAGES, WIKI_REVISIONS, NEWS_ARTICLES, NEWS_REVISIONS, USERS)}


def encode_document(value: Any, encode_timestamp: Callable[[datetime], Any]) -> Any:
    """Recursively convert a document into JSON-compatible values."""
    if isinstance(value, datetime):
        return encode_timestamp(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: encode_document(v, encode_timestamp) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [encode_document(v, encode_timestamp) for v in value]
    return value


def decode_document(collection: Collection, data: Dict[str, Any]) -> Dict[str, Any]:
    document = dict(data)
    for field in collection.timestamp_fields:
        if field in document:
            document[field] = to_datetime(document[field])
    return document


class DocumentStore(ABC):
    """Common interface of the primary store and the local cache."""

    name = "store"

    def is_local_id(self, doc_id: str) -> bool:
        """True if ``doc_id`` was allocated by this store and exists nowhere else."""
        return False

    @abstractmethod
    async def new_id(self, collection: Collection) -> str:
        ...

    @abstractmethod
    async def get(self, collection: Collection, doc_id: str) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    async def put(self, collection: Collection, doc_id: str, document: Dict[str, Any]) -> None:
        """Insert or replace a document."""

    @abstractmethod
    async def delete(self, collection: Collection, doc_id: str) -> bool:
        """Remove a document. Returns False if it did not exist."""

    @abstractmethod
    async def list(self, collection: Collection, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        ...


# ============================================================
# PRIMARY STORE
# ============================================================

class SqlDocumentStore(DocumentStore):
    """Primary document database: one JSON row per (collection, id)."""

    name = "primary store"

    def __init__(self, session_factory: async_sessionmaker):
        self._session_factory = session_factory

    async def new_id(self, collection: Collection) -> str:
        return new_document_id()

    async def get(self, collection: Collection, doc_id: str) -> Optional[Dict[str, Any]]:
        async with self._session_factory() as session:
            row = await session.get(ContentDocument, (collection.name, doc_id))
            return self._decode(collection, row) if row is not None else None

    async def put(self, collection: Collection, doc_id: str, document: Dict[str, Any]) -> None:
        data = encode_document({**document, "id": doc_id}, to_iso)
        async with get_db_context(self._session_factory) as session:
            row = await session.get(ContentDocument, (collection.name, doc_id))
            if row is None:
                session.add(ContentDocument(collection=collection.name, id=doc_id, data=data))
            else:
                row.data = data

    async def delete(self, collection: Collection, doc_id: str) -> bool:
        async with get_db_context(self._session_factory) as session:
            result = await session.execute(
                sa_delete(ContentDocument).where(
                    ContentDocument.collection == collection.name,
                    ContentDocument.id == doc_id,
                )
            )
            return result.rowcount > 0

    async def list(self, collection: Collection, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        stmt = (
            select(ContentDocument)
            .where(ContentDocument.collection == collection.name)
            .order_by(ContentDocument.updated_at.desc())
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        async with self._session_factory() as session:
            rows = (await session.execute(stmt)).scalars().all()
        return [self._decode(collection, row) for row in rows]

    @staticmethod
    def _decode(collection: Collection, row: ContentDocument) -> Dict[str, Any]:
        return decode_document(collection, {**(row.data or {}), "id": row.id})
