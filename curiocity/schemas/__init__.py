"""Pydantic schemas for stored records and API payloads."""

from .document import Document, Folder, PendingDelete, DEFAULT_FOLDER
from .resource import Resource, ResourceMeta, ResourceCompressed
from .storage import StorageResult

__all__ = [
    "Document", "Folder", "PendingDelete", "DEFAULT_FOLDER",
    "Resource", "ResourceMeta", "ResourceCompressed",
    "StorageResult",
]
