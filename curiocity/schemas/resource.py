"""Resource schemas."""

from pydantic import Field
from typing import Optional, List

from .base import CamelModel


class ResourceCompressed(CamelModel):
    """Projection of a ResourceMeta embedded in a folder for listing.

    Must be rewritten whenever the canonical row's name or lastOpened change.
    """
    id: str
    name: str
    file_type: str = "Other"
    date_added: str = ""
    last_opened: str = ""


class ResourceMeta(CamelModel):
    """Canonical per-document record of one uploaded resource."""
    id: str
    hash: str
    document_id: Optional[str] = None
    name: str
    file_type: str = "Other"
    notes: str = ""
    summary: str = ""
    tags: List[str] = []
    date_added: str = ""
    last_opened: str = ""
    updated_at: Optional[str] = None

    def compressed(self) -> ResourceCompressed:
        return ResourceCompressed(
            id=self.id,
            name=self.name,
            file_type=self.file_type,
            date_added=self.date_added,
            last_opened=self.last_opened,
        )


class Resource(CamelModel):
    """Content-addressed row: ``id`` is the MD5 of the blob. Never updated."""
    id: str
    markdown: str
    url: str


class ResourceMetaUpdate(CamelModel):
    """Partial update of a ResourceMeta row.

    A field that is omitted or null keeps its stored value. A field that is
    sent, even as an empty string or empty list, replaces it.
    """
    name: Optional[str] = Field(None, min_length=1)
    notes: Optional[str] = None
    summary: Optional[str] = None
    tags: Optional[List[str]] = None


class ResourceRename(CamelModel):
    """Schema for renaming a resource."""
    name: str = Field(..., min_length=1)


class ResourceMove(CamelModel):
    """Schema for moving a resource between folders of one document."""
    document_id: str = Field(..., min_length=1)
    resource_id: str = Field(..., min_length=1)
    source_folder_name: str = Field(..., min_length=1)
    target_folder_name: str = Field(..., min_length=1)


class ResourceTouch(CamelModel):
    """Folder holding the opened resource; omitted means search every folder."""
    folder_name: Optional[str] = None


class NotesUpdate(CamelModel):
    id: str = Field(..., min_length=1)
    notes: str


class NotesDelete(CamelModel):
    id: str = Field(..., min_length=1)


class NotesResponse(CamelModel):
    notes: str


class ResourceBase64Upload(CamelModel):
    """Upload carried in a JSON body instead of multipart form data."""
    document_id: str = Field(..., min_length=1)
    folder_name: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    content_type: str = "application/octet-stream"
    file_type: Optional[str] = None
    data: str = Field(..., description="Base64-encoded file bytes")


class ResourceExistsResponse(CamelModel):
    exists: bool
