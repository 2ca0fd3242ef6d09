"""Mirror models for ResourceMeta and Resources."""

from sqlalchemy import Column, Index, String, Text, JSON
from ..database import Base


class MirrorResourceMeta(Base):
    """Copy of the primary ResourceMeta table."""

    __tablename__ = "resource_meta"
    __table_args__ = (
        Index("ix_resource_meta_document_id", "document_id"),
        Index("ix_resource_meta_hash", "hash"),
    )

    record_fields = {
        "id": "id",
        "hash": "hash",
        "document_id": "documentId",
        "name": "name",
        "file_type": "fileType",
        "notes": "notes",
        "summary": "summary",
        "tags": "tags",
        "date_added": "dateAdded",
        "last_opened": "lastOpened",
        "updated_at": "updatedAt",
    }

    id = Column(String(64), primary_key=True)
    hash = Column(String(64), nullable=False)
    document_id = Column(String(64), nullable=True)
    name = Column(String(500), nullable=False)
    file_type = Column(String(50), default="Other")
    notes = Column(Text, default="")
    summary = Column(Text, default="")
    tags = Column(JSON, nullable=False, default=list)
    date_added = Column(String(40), nullable=False)
    last_opened = Column(String(40), nullable=False)
    updated_at = Column(String(40), nullable=True)


class MirrorResource(Base):
    """Copy of the primary Resources table (content-addressed by hash)."""

    __tablename__ = "resources"

    record_fields = {
        "id": "id",
        "markdown": "markdown",
        "url": "url",
    }

    id = Column(String(64), primary_key=True)  # MD5 of the blob
    markdown = Column(Text, nullable=False)
    url = Column(Text, nullable=False)
