# repository.py - Content repositories for wiki pages and news articles
"""
One generic repository, instantiated per content type. All persistence goes
through a :class:`~dual_store.DualStore`; revisioning is optional and enabled
by passing a :class:`~version_history.RevisionLedger`.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Generic, List, Mapping, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from content import AuditedDocument, EditorIdentity, NewsArticle, WikiPage, WikiRevision, news_slug, wiki_slug
from document_store import Collection, NEWS_ARTICLES, WIKI_PAGES
from dual_store import DualStore
from errors import InvalidTransitionError, NotFoundError, SlugConflictError
from models import ContentStatus
from version_history import RevisionLedger

logger = logging.getLogger("vice-city.repository")

T = TypeVar("T", bound=AuditedDocument)

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)

# Set by the repository, never by callers
PROTECTED_FIELDS = ("id", "createdAt", "createdBy", "updatedAt", "lastUpdatedBy")

Changes = Union[Mapping[str, Any], BaseModel]


class ContentRepository(Generic[T]):
    model: Type[T]
    collection: Collection
    slugify: Callable[[str], str]
    create_note = "Initial creation"
    update_note = "Updated"
    archive_note = "Archived"

    def __init__(self, store: DualStore, ledger: Optional[RevisionLedger] = None):
        self.store = store
        self.ledger = ledger

    @property
    def revisioned(self) -> bool:
        return self.ledger is not None

    # ── Helpers ─────────────────────────────────────────────

    def _normalise(self, changes: Changes) -> Dict[str, Any]:
        """Camel-case keys; accepts a pydantic model or a snake/camel dict."""
        if isinstance(changes, BaseModel):
            changes = changes.model_dump(exclude_unset=True)
        aliases = {name: info.alias or name for name, info in self.model.model_fields.items()}
        fields = {aliases.get(key, key): value for key, value in changes.items()}
        for key in PROTECTED_FIELDS:
            fields.pop(key, None)
        return fields

    def _parse(self, document: Dict[str, Any]) -> Optional[T]:
        try:
            return self.model.model_validate(document)
        except ValidationError as e:
            logger.warning(f"{self.collection.name}: skipping malformed document {document.get('id')}: {e.error_count()} error(s)")
            return None

    async def _all(self) -> List[T]:
        return [e for e in map(self._parse, await self.store.list(self.collection)) if e is not None]

    @staticmethod
    def _slug_taken(entities: List[T], slug: str, exclude_id: Optional[str] = None) -> bool:
        return any(
            e.slug == slug and e.status != ContentStatus.ARCHIVED and e.id != exclude_id
            for e in entities
        )

    def _unique_slug(self, entities: List[T], base: str) -> str:
        slug, n = base, 0
        while self._slug_taken(entities, slug):
            n += 1
            slug = f"{base}-{n}"
        return slug

    async def _record(self, entity: T, editor: EditorIdentity, note: str) -> None:
        if self.ledger is not None:
            await self.ledger.record(entity, editor, note)

    # ── Writes ──────────────────────────────────────────────

    async def create(self, data: Changes, editor: EditorIdentity) -> str:
        """Create an entity and return its id. Status defaults to published."""
        fields = self._normalise(data)
        fields.setdefault("status", ContentStatus.PUBLISHED)
        draft = self.model.model_validate(fields)

        entities = await self._all()
        if draft.slug:
            if self._slug_taken(entities, draft.slug):
                raise SlugConflictError(draft.slug, self.collection.name)
            slug = draft.slug
        else:
            slug = self._unique_slug(entities, self.slugify(draft.title) or self.collection.name)

        def build(doc_id: str, now: datetime) -> Dict[str, Any]:
            return draft.model_copy(update={
                "id": doc_id,
                "slug": slug,
                "created_at": now,
                "updated_at": now,
                "created_by": editor,
                "last_updated_by": editor,
            }).to_document()

        entity = self.model.model_validate(await self.store.insert(self.collection, build))
        await self._record(entity, editor, self.create_note)
        logger.info(f"{self.collection.name}: created {entity.id} ({entity.slug}) by {editor.uid}")
        return entity.id

    async def update(
        self,
        entity_id: str,
        changes: Changes,
        editor: EditorIdentity,
        change_note: Optional[str] = None,
    ) -> T:
        """Merge ``changes`` onto the stored entity and return the result."""
        fields = self._normalise(changes)
        entities = await self._all()
        current = next((e for e in entities if e.id == entity_id), None)
        slug = fields.get("slug") or (current.slug if current is not None else None)
        status = fields.get("status", current.status if current is not None else None)
        # a page leaving the archive must not bring back a reused slug
        if slug and status != ContentStatus.ARCHIVED and self._slug_taken(entities, slug, exclude_id=entity_id):
            raise SlugConflictError(slug, self.collection.name)

        def mutate(existing: Dict[str, Any], now: datetime) -> Dict[str, Any]:
            merged = {
                **existing,
                **fields,
                "updatedAt": now,
                "lastUpdatedBy": editor.to_document(),
            }
            return self.model.model_validate(merged).to_document()

        entity = self.model.model_validate(await self.store.modify(self.collection, entity_id, mutate))
        await self._record(entity, editor, change_note or self.update_note)
        return entity

    async def soft_delete(self, entity_id: str, editor: EditorIdentity) -> T:
        """Archive an entity. Archiving an archived entity is a no-op update."""
        return await self.update(
            entity_id, {"status": ContentStatus.ARCHIVED}, editor, self.archive_note
        )

    async def unarchive(
        self,
        entity_id: str,
        editor: EditorIdentity,
        target_status: Union[ContentStatus, str] = ContentStatus.PUBLISHED,
    ) -> T:
        try:
            target = ContentStatus(target_status)
        except ValueError:
            raise InvalidTransitionError(f"Unknown status '{target_status}'")
        if target == ContentStatus.ARCHIVED:
            raise InvalidTransitionError("Unarchive target must be published or draft")

        entities = await self._all()
        current = next((e for e in entities if e.id == entity_id), None)
        if current is None:
            raise NotFoundError(entity_id, self.collection.name)
        if self._slug_taken(entities, current.slug, exclude_id=entity_id):
            raise SlugConflictError(current.slug, self.collection.name)

        return await self.update(
            entity_id, {"status": target}, editor, f"Restored as {target.value}"
        )

    async def permanently_delete(self, entity_id: str) -> None:
        """Remove from both stores. Leaves no revision behind."""
        if not await self.store.remove(self.collection, entity_id):
            raise NotFoundError(entity_id, self.collection.name)
        logger.info(f"{self.collection.name}: permanently deleted {entity_id}")

    # ── Reads ───────────────────────────────────────────────

    async def get_by_id(self, entity_id: str) -> Optional[T]:
        document = await self.store.get(self.collection, entity_id)
        return self._parse(document) if document is not None else None

    async def get_by_slug(self, slug: str) -> Optional[T]:
        """Published entity with this slug, or None."""
        for entity in await self.list_all():
            if entity.slug == slug and entity.status == ContentStatus.PUBLISHED:
                return entity
        return None

    async def list_all(self, include_archived: bool = False) -> List[T]:
        entities = [
            e for e in await self._all()
            if include_archived or e.status != ContentStatus.ARCHIVED
        ]
        entities.sort(key=lambda e: e.updated_at or _OLDEST, reverse=True)
        return entities

    async def list_by_category(self, category: str) -> List[T]:
        return [
            e for e in await self.list_all()
            if e.category == category and e.status == ContentStatus.PUBLISHED
        ]

    async def search(self, term: str) -> List[T]:
        """Case-insensitive substring search over the type's search fields."""
        needle = term.strip().lower()
        if not needle:
            return []

        def matches(entity: T) -> bool:
            for name in entity.search_fields:
                value = getattr(entity, name, None)
                if isinstance(value, list):
                    value = " ".join(str(v) for v in value)
                if value and needle in str(value).lower():
                    return True
            return False

        return [e for e in await self.list_all() if matches(e)]

    # ── Revisions ───────────────────────────────────────────

    def _require_ledger(self) -> RevisionLedger:
        if self.ledger is None:
            raise InvalidTransitionError(f"Revisions are not kept for {self.collection.name}")
        return self.ledger

    async def revisions(self, entity_id: str) -> List[WikiRevision]:
        return await self._require_ledger().list_for_page(entity_id)

    async def restore_revision(self, entity_id: str, revision_id: str, editor: EditorIdentity) -> T:
        """Copy a revision's content fields back onto the entity."""
        ledger = self._require_ledger()
        revision = await ledger.get_by_id(revision_id)
        if revision is None or revision.page_id != entity_id:
            raise NotFoundError(revision_id, ledger.collection.name)
        return await self.update(
            entity_id,
            self.model.fields_from_revision(revision),
            editor,
            f"Restored revision {revision_id}",
        )


class WikiPageRepository(ContentRepository[WikiPage]):
    model = WikiPage
    collection = WIKI_PAGES
    slugify = staticmethod(wiki_slug)
    update_note = "Updated page"
    archive_note = "Page archived"


class NewsArticleRepository(ContentRepository[NewsArticle]):
    model = NewsArticle
    collection = NEWS_ARTICLES
    slugify = staticmethod(news_slug)
    update_note = "Updated article"
    archive_note = "Article archived"
