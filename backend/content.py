# content.py - Content entities for wiki pages, revisions and news articles
# Field names are camelCase in both stores; Python code uses snake_case.

import re
from datetime import datetime
from enum import Enum as PyEnum
from typing import ClassVar, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from models import ContentStatus
from timestamps import to_datetime

UNKNOWN_EDITOR = "Unknown User"


class DocumentModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True)


class EditorIdentity(DocumentModel):
    uid: str
    display_name: str = UNKNOWN_EDITOR

    @field_validator("display_name", mode="before")
    @classmethod
    def default_display_name(cls, v):
        return v or UNKNOWN_EDITOR


class DetailType(str, PyEnum):
    TEXT = "text"
    BADGE = "badge"
    LINK = "link"


class WikiPageDetail(DocumentModel):
    label: str
    value: str
    type: DetailType = DetailType.TEXT
    badge_color: Optional[str] = None
    link_href: Optional[str] = None


class AuditedDocument(DocumentModel):
    """Fields shared by every top-level content type."""

    id: str = ""
    slug: str = ""
    title: str
    content: str = ""
    category: str = ""
    image_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    created_by: Optional[EditorIdentity] = None
    last_updated_by: Optional[EditorIdentity] = None
    status: ContentStatus = ContentStatus.PUBLISHED
    featured: bool = False

    search_fields: ClassVar[Tuple[str, ...]] = ("title", "content")

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def normalise_timestamp(cls, v):
        return to_datetime(v)


class WikiPage(AuditedDocument):
    description: str = ""
    subcategory: Optional[str] = None
    gallery_images: List[str] = Field(default_factory=list)
    related_pages: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    details: List[WikiPageDetail] = Field(default_factory=list)

    search_fields: ClassVar[Tuple[str, ...]] = ("title", "description", "tags", "content")

    def revision_fields(self) -> dict:
        return {
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "subcategory": self.subcategory,
            "content": self.content,
        }

    @staticmethod
    def fields_from_revision(revision: "WikiRevision") -> dict:
        return {
            "title": revision.title,
            "description": revision.description,
            "category": revision.category,
            "subcategory": revision.subcategory,
            "content": revision.content,
        }


class NewsArticle(AuditedDocument):
    excerpt: str = ""
    author: str = ""

    search_fields: ClassVar[Tuple[str, ...]] = ("title", "excerpt", "author", "content")

    # news snapshots reuse the revision shape; the excerpt is stored as description
    def revision_fields(self) -> dict:
        return {
            "title": self.title,
            "description": self.excerpt,
            "category": self.category,
            "content": self.content,
        }

    @staticmethod
    def fields_from_revision(revision: "WikiRevision") -> dict:
        return {
            "title": revision.title,
            "excerpt": revision.description,
            "category": revision.category,
            "content": revision.content,
        }


class WikiRevision(DocumentModel):
    """Immutable snapshot of a page's content fields."""

    id: str = ""
    page_id: str
    title: str
    description: str = ""
    category: str = ""
    subcategory: Optional[str] = None
    content: str = ""
    timestamp: Optional[datetime] = None
    user: EditorIdentity
    change_description: Optional[str] = None

    @field_validator("timestamp", mode="before")
    @classmethod
    def normalise_timestamp(cls, v):
        return to_datetime(v)


# ============================================================
# SLUGS
# ============================================================

def wiki_slug(title: str) -> str:
    slug = title.lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-{2,}", "-", slug)
    return slug[:200]


def news_slug(title: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", title.lower()).strip("-")[:200]
