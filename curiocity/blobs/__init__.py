"""Blob storage for uploaded files."""

from .backends import BlobBackend, InMemoryBlobBackend, R2BlobBackend, S3BlobBackend
from .store import BlobStore

__all__ = ["BlobBackend", "InMemoryBlobBackend", "R2BlobBackend", "S3BlobBackend", "BlobStore"]
