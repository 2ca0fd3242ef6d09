"""Direct blob storage endpoints (raw upload and presigned URLs)."""

import logging

from fastapi import APIRouter, Depends, File, Form, UploadFile

from ..core.clients import Clients, get_clients
from ..schemas.storage import PresignRequest, StorageResult
from ..services.content_utils import blob_key, content_hash

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/storage", tags=["storage"])


@router.post("/upload", response_model=StorageResult)
def upload_blob(
    file: UploadFile = File(...),
    document_id: str = Form(..., alias="documentId"),
    folder_name: str = Form(..., alias="folderName"),
    clients: Clients = Depends(get_clients),
):
    """Store bytes in every blob backend without creating any rows.

    The object is keyed by content hash like resource uploads; one
    successful backend is enough and the per-backend flags say which.
    """
    data = file.file.read()
    key = blob_key(content_hash(data))
    logger.info(
        "Raw blob upload",
        extra={"document_id": document_id, "folder": folder_name, "key": key, "bytes": len(data)},
    )
    return clients.blobs.put(key, data, file.content_type or "application/octet-stream")


@router.post("/presign", response_model=StorageResult)
def presign(body: PresignRequest, clients: Clients = Depends(get_clients)):
    """Time-limited URL for a client to GET or PUT an object directly."""
    return clients.blobs.presign(body.key, body.operation, body.expires_in)
