"""
Vice City - Revision Ledger
Append-only history of page snapshots with diff support
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import difflib
import logging

from pydantic import ValidationError

from content import AuditedDocument, EditorIdentity, WikiRevision
from document_store import Collection, WIKI_REVISIONS
from dual_store import DualStore
from errors import NotFoundError

logger = logging.getLogger("vice-city.revisions")

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)

SNAPSHOT_FIELDS = ("title", "description", "category", "subcategory", "content")


@dataclass
class RevisionDiff:
    """Line diff of two revisions' content plus the snapshot fields that changed"""
    old_revision_id: str
    new_revision_id: str
    diff: str
    lines_added: int
    lines_removed: int
    changed_fields: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "old_revision_id": self.old_revision_id,
            "new_revision_id": self.new_revision_id,
            "diff": self.diff,
            "statistics": {
                "lines_added": self.lines_added,
                "lines_removed": self.lines_removed,
                "total_changes": self.lines_added + self.lines_removed,
            },
            "changed_fields": self.changed_fields,
        }


class RevisionLedger:
    """
    Stores one immutable revision per content mutation.

    Revisions go through the same primary-with-fallback path as the pages
    themselves, so history keeps growing while the primary store is down.
    """

    def __init__(self, store: DualStore, collection: Collection = WIKI_REVISIONS):
        self.store = store
        self.collection = collection

    async def record(
        self,
        snapshot: AuditedDocument,
        editor: EditorIdentity,
        change_note: Optional[str] = None,
    ) -> str:
        """Append a revision for ``snapshot`` and return its id"""
        fields = snapshot.revision_fields()

        def build(doc_id: str, now: datetime) -> Dict[str, Any]:
            return WikiRevision(
                id=doc_id,
                page_id=snapshot.id,
                timestamp=now,
                user=editor,
                change_description=change_note,
                **fields,
            ).to_document()

        document = await self.store.insert(self.collection, build)
        logger.debug(f"Recorded revision {document['id']} for {snapshot.id}")
        return document["id"]

    def _parse(self, document: Dict[str, Any]) -> Optional[WikiRevision]:
        try:
            return WikiRevision.model_validate(document)
        except ValidationError as e:
            logger.warning(f"Skipping malformed revision {document.get('id')}: {e.error_count()} error(s)")
            return None

    async def list_for_page(self, page_id: str) -> List[WikiRevision]:
        """All revisions of a page, newest first"""
        revisions = [
            revision
            for revision in map(self._parse, await self.store.list(self.collection))
            if revision is not None and revision.page_id == page_id
        ]
        revisions.sort(key=lambda r: r.timestamp or _OLDEST, reverse=True)
        return revisions

    async def get_by_id(self, revision_id: str) -> Optional[WikiRevision]:
        document = await self.store.get(self.collection, revision_id)
        return self._parse(document) if document is not None else None

    async def compare(self, old_revision_id: str, new_revision_id: str) -> RevisionDiff:
        """Diff two revisions of the same or different pages"""
        old = await self.get_by_id(old_revision_id)
        if old is None:
            raise NotFoundError(old_revision_id, self.collection.name)
        new = await self.get_by_id(new_revision_id)
        if new is None:
            raise NotFoundError(new_revision_id, self.collection.name)

        diff = list(difflib.unified_diff(
            old.content.splitlines(keepends=True),
            new.content.splitlines(keepends=True),
            fromfile=f"revision_{old.id}",
            tofile=f"revision_{new.id}",
        ))
        lines_added = sum(1 for line in diff if line.startswith('+') and not line.startswith('+++'))
        lines_removed = sum(1 for line in diff if line.startswith('-') and not line.startswith('---'))

        return RevisionDiff(
            old_revision_id=old.id,
            new_revision_id=new.id,
            diff="".join(diff),
            lines_added=lines_added,
            lines_removed=lines_removed,
            changed_fields=[f for f in SNAPSHOT_FIELDS if getattr(old, f) != getattr(new, f)],
        )
