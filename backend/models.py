# models.py - Database models for the Vice City content service
# The primary store is a document database: every wiki page, revision and
# news article is one JSON document keyed by (collection, id).

import uuid
from datetime import datetime, timezone
from enum import Enum as PyEnum
from sqlalchemy import Column, String, DateTime, JSON, Index
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utcnow():
    return datetime.now(timezone.utc)


def new_document_id():
    """Store-assigned document id (20 hex chars, like a document-db auto id)."""
    return uuid.uuid4().hex[:20]


# ============================================================
# ENUMS
# ============================================================

class ContentStatus(str, PyEnum):
    PUBLISHED = "published"
    DRAFT = "draft"
    ARCHIVED = "archived"


class EditorRole(str, PyEnum):
    ADMIN = "admin"
    EDITOR = "editor"
    READER = "reader"


# ============================================================
# CONTENT DOCUMENTS
# ============================================================

class ContentDocument(Base):
    __tablename__ = "content_documents"

    collection = Column(String, primary_key=True)
    id = Column(String, primary_key=True, default=new_document_id)
    data = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("idx_content_documents_collection_updated", "collection", "updated_at"),
    )
