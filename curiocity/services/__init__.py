"""Business logic services."""

from .document_service import DocumentService
from .resource_service import ResourceService, UploadResult

__all__ = ["DocumentService", "ResourceService", "UploadResult"]
