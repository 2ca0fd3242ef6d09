"""Blob storage schemas."""

from pydantic import Field
from typing import Literal, Optional

from .base import CamelModel
from .document import Document
from .resource import ResourceMeta


class StorageResult(CamelModel):
    """Outcome of a write fanned out to the blob backends.

    ``s3Success``/``r2Success`` are null when that backend is not configured.
    One successful backend is enough for the request to succeed.
    """
    url: str
    s3_success: Optional[bool] = None
    r2_success: Optional[bool] = None


class PresignRequest(CamelModel):
    key: str = Field(..., min_length=1)
    operation: Literal["get", "put"] = "get"
    expires_in: Optional[int] = Field(None, ge=1, le=7 * 24 * 3600)


class UploadResponse(CamelModel):
    """Result of uploading a resource into a document folder.

    ``storage`` is null when the bytes were already stored under the same hash.
    """
    resource_meta: ResourceMeta
    document: Document
    storage: Optional[StorageResult] = None
