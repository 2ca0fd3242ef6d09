"""Mirror model for Documents."""

from sqlalchemy import Column, Index, String, Text, Integer, JSON
from ..database import Base


class MirrorDocument(Base):
    """Copy of the primary Documents table.

    The folder tree stays embedded as JSON, exactly as stored in the
    primary; there is no separate folder table.
    """

    __tablename__ = "documents"
    __table_args__ = (
        Index("ix_documents_owner_id", "owner_id"),
    )

    # Column name -> camelCase record key.
    record_fields = {
        "id": "id",
        "owner_id": "ownerID",
        "name": "name",
        "text": "text",
        "folders": "folders",
        "date_added": "dateAdded",
        "last_opened": "lastOpened",
        "tags": "tags",
        "version": "version",
        "updated_at": "updatedAt",
    }

    id = Column(String(64), primary_key=True)
    owner_id = Column(String(255), nullable=False)
    name = Column(String(500), nullable=False)
    text = Column(Text, default="")
    folders = Column(JSON, nullable=False, default=dict)
    date_added = Column(String(40), nullable=False)
    last_opened = Column(String(40), nullable=False)
    tags = Column(JSON, nullable=False, default=list)
    version = Column(Integer, default=1, nullable=False)
    updated_at = Column(String(40), nullable=True)
