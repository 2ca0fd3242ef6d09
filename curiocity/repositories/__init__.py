"""Data access repositories."""

from .base import BaseRepository
from .document_repository import DocumentRepository
from .resource_repository import ResourceMetaRepository, ResourceRepository

__all__ = [
    "BaseRepository",
    "DocumentRepository",
    "ResourceMetaRepository",
    "ResourceRepository",
]
