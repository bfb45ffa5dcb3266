# local_cache.py - Local cache store (fallback persistence)
"""
The local cache keeps one JSON array per collection under a fixed key
(``local_wiki_pages``, ``local_wiki_revisions``, ``local_news_articles``) plus
the editor drafts under ``gta6-wiki-drafts``. Timestamps are stored as
``{"seconds": n}`` objects.

The key/value storages are small ``MutableMapping`` implementations of
string keys to string values; pick one with :func:`create_storage`.
"""
import json
import logging
import os
import sqlite3
import uuid
from collections.abc import MutableMapping
from typing import Any, Dict, List, Optional

from document_store import Collection, DocumentStore, decode_document, encode_document
from timestamps import to_seconds_object, utcnow, to_datetime

logger = logging.getLogger("vice-city.cache")

DRAFTS_KEY = "gta6-wiki-drafts"
LOCAL_ID_PREFIX = "local-"


def generate_local_id() -> str:
    """Random id for documents created while the primary store is unavailable."""
    return LOCAL_ID_PREFIX + uuid.uuid4().hex[:20]


# ============================================================
# KEY/VALUE STORAGES
# ============================================================

class MemoryStorage(MutableMapping):
    def __init__(self):
        self._data: Dict[str, str] = {}

    def __getitem__(self, key):
        return self._data[key]

    def __setitem__(self, key, value):
        self._data[key] = value

    def __delitem__(self, key):
        del self._data[key]

    def __iter__(self):
        return iter(list(self._data))

    def __len__(self):
        return len(self._data)


class FileStorage(MutableMapping):
    """One ``<key>.json`` file per key inside a directory."""

    def __init__(self, path: str):
        self.path = path
        os.makedirs(path, exist_ok=True)

    def _mkpath(self, key):
        if os.sep in key or key.startswith("."):
            raise KeyError(key)
        return os.path.join(self.path, key + ".json")

    def __getitem__(self, key):
        try:
            with open(self._mkpath(key), "r", encoding="utf-8") as f:
                return f.read()
        except FileNotFoundError:
            raise KeyError(key)

    def __setitem__(self, key, value):
        target = self._mkpath(key)
        tmp = target + ".tmp"
        with open(tmp, "w", encoding="utf-8") as f:
            f.write(value)
        os.replace(tmp, target)

    def __delitem__(self, key):
        try:
            os.remove(self._mkpath(key))
        except FileNotFoundError:
            raise KeyError(key)

    def __iter__(self):
        for name in sorted(os.listdir(self.path)):
            if name.endswith(".json"):
                yield name[:-5]

    def __len__(self):
        return sum(1 for _ in self)


class SqliteStorage(MutableMapping):
    """Embedded sqlite key/value table."""

    def __init__(self, db_name: str, table_name: str = "local_storage"):
        self.db_name = db_name
        self.table_name = table_name
        self.conn = sqlite3.connect(db_name)
        with self.conn:
            self.conn.execute(
                "create table if not exists %s (key text primary key, value text)" % table_name
            )

    def __getitem__(self, key):
        row = self.conn.execute(
            "select value from %s where key=?" % self.table_name, (key,)
        ).fetchone()
        if row is None:
            raise KeyError(key)
        return row[0]

    def __setitem__(self, key, value):
        with self.conn:
            self.conn.execute(
                "insert or replace into %s values (?, ?)" % self.table_name, (key, value)
            )

    def __delitem__(self, key):
        with self.conn:
            cur = self.conn.execute("delete from %s where key=?" % self.table_name, (key,))
        if cur.rowcount == 0:
            raise KeyError(key)

    def __iter__(self):
        for row in self.conn.execute("select key from %s order by key" % self.table_name):
            yield row[0]

    def __len__(self):
        return self.conn.execute("select count(*) from %s" % self.table_name).fetchone()[0]

    def close(self):
        self.conn.close()


def create_storage(backend: str, path: str) -> MutableMapping:
    if backend == "memory":
        return MemoryStorage()
    if backend == "file":
        return FileStorage(path)
    if backend == "sqlite":
        if os.path.dirname(path):
            os.makedirs(os.path.dirname(path), exist_ok=True)
        return SqliteStorage(path if path.endswith(".db") else path + ".db")
    raise ValueError(f"Unknown local cache backend: {backend}")


# ============================================================
# CACHE DOCUMENT STORE
# ============================================================

def _read_array(storage: MutableMapping, key: str) -> List[Dict[str, Any]]:
    raw = storage.get(key)
    if not raw:
        return []
    try:
        items = json.loads(raw)
    except ValueError:
        logger.warning(f"Discarding unreadable local cache entry {key}")
        return []
    if not isinstance(items, list):
        logger.warning(f"Local cache entry {key} is not an array; ignoring it")
        return []
    return [item for item in items if isinstance(item, dict)]


def _write_array(storage: MutableMapping, key: str, items: List[Dict[str, Any]]) -> None:
    storage[key] = json.dumps(encode_document(items, to_seconds_object))


class LocalCacheStore(DocumentStore):
    """Collections serialised as JSON arrays in a key/value storage.

    Every method reads, modifies and writes the array without awaiting in
    between, so one coroutine's update is never interleaved with another's.
    """

    name = "local cache"

    def __init__(self, storage: MutableMapping):
        self.storage = storage

    async def new_id(self, collection: Collection) -> str:
        return generate_local_id()

    def is_local_id(self, doc_id: str) -> bool:
        return doc_id.startswith(LOCAL_ID_PREFIX)

    async def get(self, collection: Collection, doc_id: str) -> Optional[Dict[str, Any]]:
        for item in _read_array(self.storage, collection.cache_key):
            if item.get("id") == doc_id:
                return decode_document(collection, item)
        return None

    async def put(self, collection: Collection, doc_id: str, document: Dict[str, Any]) -> None:
        items = _read_array(self.storage, collection.cache_key)
        document = {**document, "id": doc_id}
        for index, item in enumerate(items):
            if item.get("id") == doc_id:
                items[index] = document
                break
        else:
            items.append(document)
        _write_array(self.storage, collection.cache_key, items)

    async def delete(self, collection: Collection, doc_id: str) -> bool:
        items = _read_array(self.storage, collection.cache_key)
        kept = [item for item in items if item.get("id") != doc_id]
        if len(kept) == len(items):
            return False
        _write_array(self.storage, collection.cache_key, kept)
        return True

    async def list(self, collection: Collection, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        items = _read_array(self.storage, collection.cache_key)
        if limit is not None:
            items = items[:limit]
        return [decode_document(collection, item) for item in items]

    def stats(self) -> Dict[str, int]:
        return {key: len(_read_array(self.storage, key)) for key in self.storage}


# ============================================================
# DRAFTS
# ============================================================

class DraftStore:
    """Unsaved editor drafts, one entry per draft id ("new" for unsaved pages)."""

    def __init__(self, storage: MutableMapping, key: str = DRAFTS_KEY):
        self.storage = storage
        self.key = key

    def save(self, draft_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        drafts = [d for d in _read_array(self.storage, self.key) if d.get("draftId") != draft_id]
        draft = {**fields, "draftId": draft_id, "lastSaved": utcnow()}
        drafts.append(draft)
        _write_array(self.storage, self.key, drafts)
        return draft

    def get(self, draft_id: str) -> Optional[Dict[str, Any]]:
        for draft in _read_array(self.storage, self.key):
            if draft.get("draftId") == draft_id:
                return {**draft, "lastSaved": to_datetime(draft.get("lastSaved"))}
        return None

    def clear(self, draft_id: str) -> bool:
        drafts = _read_array(self.storage, self.key)
        kept = [d for d in drafts if d.get("draftId") != draft_id]
        if len(kept) == len(drafts):
            return False
        _write_array(self.storage, self.key, kept)
        return True

    def list(self) -> List[Dict[str, Any]]:
        drafts = [
            {**d, "lastSaved": to_datetime(d.get("lastSaved"))}
            for d in _read_array(self.storage, self.key)
        ]
        return sorted(drafts, key=lambda d: d["lastSaved"] or utcnow(), reverse=True)
