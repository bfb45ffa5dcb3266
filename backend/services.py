# services.py - Wiring of stores, availability policy and repositories
from collections.abc import MutableMapping
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import async_sessionmaker

import config
from availability import CircuitBreaker, ConnectivityProbe
from database import async_session_maker
from document_store import COLLECTIONS, NEWS_REVISIONS, DocumentStore, SqlDocumentStore
from dual_store import DualStore
from local_cache import DraftStore, LocalCacheStore, create_storage
from repository import NewsArticleRepository, WikiPageRepository
from timestamps import MonotonicClock
from version_history import RevisionLedger


class ContentServices:
    """Everything the HTTP layer needs, built from one pair of stores."""

    def __init__(
        self,
        primary: DocumentStore,
        cache: LocalCacheStore,
        breaker: Optional[CircuitBreaker] = None,
        clock: Optional[MonotonicClock] = None,
        news_revisions: bool = False,
        connectivity_collection: str = "news-articles",
    ):
        self.primary = primary
        self.cache = cache
        self.breaker = breaker or CircuitBreaker(reset_timeout=config.BREAKER_RESET_SECONDS)
        self.store = DualStore(primary, cache, self.breaker, clock)

        self.wiki_ledger = RevisionLedger(self.store)
        self.wiki = WikiPageRepository(self.store, ledger=self.wiki_ledger)
        self.news = NewsArticleRepository(
            self.store,
            ledger=RevisionLedger(self.store, NEWS_REVISIONS) if news_revisions else None,
        )
        self.drafts = DraftStore(cache.storage)
        self.probe = ConnectivityProbe(primary, self.breaker, COLLECTIONS[connectivity_collection])

    def status(self) -> Dict[str, Any]:
        return {
            "mode": "primary" if self.breaker.available else "fallback",
            "breaker": self.breaker.snapshot(),
            "primary_store": self.primary.name,
            "local_cache": self.cache.stats(),
            "news_revisions": self.news.revisioned,
        }


def build_services(
    session_factory: async_sessionmaker = async_session_maker,
    storage: Optional[MutableMapping] = None,
    breaker: Optional[CircuitBreaker] = None,
) -> ContentServices:
    return ContentServices(
        primary=SqlDocumentStore(session_factory),
        cache=LocalCacheStore(storage if storage is not None else create_storage(config.LOCAL_CACHE_BACKEND, config.LOCAL_CACHE_PATH)),
        breaker=breaker,
        news_revisions=config.NEWS_REVISIONS_ENABLED,
        connectivity_collection=config.CONNECTIVITY_COLLECTION,
    )


# Global singleton
_services: Optional[ContentServices] = None


def get_content_services() -> ContentServices:
    """Get or create the process-wide service container (FastAPI Depends)"""
    global _services
    if _services is None:
        _services = build_services()
    return _services


def set_content_services(services: Optional[ContentServices]) -> None:
    global _services
    _services = services
