"""Resource API endpoints.

Fixed paths (``/move``, ``/notes``, ``/check``...) are declared before
``/{resource_id}`` so they are not captured as ids.
"""

import base64
import binascii

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from typing import Optional

from ..core.clients import Clients, get_clients
from ..exceptions import ValidationError
from ..schemas.document import MessageResponse
from ..schemas.resource import (
    NotesDelete,
    NotesResponse,
    NotesUpdate,
    Resource,
    ResourceBase64Upload,
    ResourceExistsResponse,
    ResourceMeta,
    ResourceMetaUpdate,
    ResourceMove,
    ResourceRename,
    ResourceTouch,
)
from ..schemas.storage import UploadResponse
from ..services import ResourceService, UploadResult

router = APIRouter(prefix="/resources", tags=["resources"])


def get_resource_service(clients: Clients = Depends(get_clients)) -> ResourceService:
    return ResourceService(
        clients.primary,
        clients.blobs,
        mirror=clients.mirror,
        extractor=clients.extractor,
        markdown_max_bytes=clients.markdown_max_bytes,
    )


def _upload_response(result: UploadResult) -> UploadResponse:
    return UploadResponse(
        resource_meta=result.resource_meta,
        document=result.document,
        storage=result.storage,
    )


# --- Upload ---

@router.post("", response_model=UploadResponse, status_code=201)
def upload_resource(
    file: UploadFile = File(...),
    document_id: str = Form(..., alias="documentId"),
    folder_name: str = Form(..., alias="folderName"),
    file_type: Optional[str] = Form(None, alias="fileType"),
    service: ResourceService = Depends(get_resource_service),
):
    """Upload a file into a document folder (multipart form)."""
    data = file.file.read()
    result = service.upload_resource(
        data,
        filename=file.filename or "",
        content_type=file.content_type or "application/octet-stream",
        folder_name=folder_name,
        document_id=document_id,
        file_type=file_type,
    )
    return _upload_response(result)


@router.post("/base64", response_model=UploadResponse, status_code=201)
def upload_resource_base64(
    body: ResourceBase64Upload,
    service: ResourceService = Depends(get_resource_service),
):
    """Upload a file carried as base64 in a JSON body."""
    try:
        data = base64.b64decode(body.data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValidationError(f"data is not valid base64: {e}", field="data") from e
    result = service.upload_resource(
        data,
        filename=body.name,
        content_type=body.content_type,
        folder_name=body.folder_name,
        document_id=body.document_id,
        file_type=body.file_type,
    )
    return _upload_response(result)


@router.get("/check", response_model=ResourceExistsResponse)
def check_resource(
    hash_: str = Query(..., alias="hash", min_length=1),
    service: ResourceService = Depends(get_resource_service),
):
    """Whether content with this MD5 is already stored."""
    return {"exists": service.resource_exists(hash_)}


@router.get("/content/{resource_hash}", response_model=Resource)
def get_resource_content(resource_hash: str, service: ResourceService = Depends(get_resource_service)):
    return service.get_resource(resource_hash)


# --- Move ---

@router.put("/move", response_model=MessageResponse)
def move_resource(body: ResourceMove, service: ResourceService = Depends(get_resource_service)):
    service.move_resource(
        body.resource_id,
        body.source_folder_name,
        body.target_folder_name,
        body.document_id,
    )
    return {"msg": "success"}


# --- Notes ---

@router.get("/notes", response_model=NotesResponse)
def get_notes(
    resource_id: str = Query(..., alias="id", min_length=1),
    service: ResourceService = Depends(get_resource_service),
):
    return {"notes": service.get_notes(resource_id)}


@router.put("/notes", response_model=NotesResponse)
def set_notes(body: NotesUpdate, service: ResourceService = Depends(get_resource_service)):
    return {"notes": service.set_notes(body.id, body.notes)}


@router.delete("/notes", response_model=NotesResponse)
def clear_notes(body: NotesDelete, service: ResourceService = Depends(get_resource_service)):
    return {"notes": service.clear_notes(body.id)}


# --- Single resource ---

@router.get("/{resource_id}", response_model=ResourceMeta)
def get_resource_meta(resource_id: str, service: ResourceService = Depends(get_resource_service)):
    return service.get_resource_meta(resource_id)


@router.put("/{resource_id}", response_model=ResourceMeta)
def update_resource_meta(
    resource_id: str,
    update: ResourceMetaUpdate,
    service: ResourceService = Depends(get_resource_service),
):
    """Partial update: omitted or null fields keep their value."""
    return service.update_resource_meta(resource_id, update)


@router.put("/{resource_id}/name", response_model=ResourceMeta)
def rename_resource(
    resource_id: str,
    body: ResourceRename,
    service: ResourceService = Depends(get_resource_service),
):
    return service.rename_resource(resource_id, body.name)


@router.post("/{resource_id}/last-opened", response_model=MessageResponse)
def touch_resource(
    resource_id: str,
    body: Optional[ResourceTouch] = None,
    service: ResourceService = Depends(get_resource_service),
):
    """Mark a resource opened; send ``folderName`` to check which folder holds it."""
    service.touch_last_opened(resource_id, body.folder_name if body else None)
    return {"msg": "success"}


@router.delete("/{resource_id}", response_model=MessageResponse)
def delete_resource(resource_id: str, service: ResourceService = Depends(get_resource_service)):
    """Detach a resource from its document and delete its metadata."""
    service.delete_resource(resource_id)
    return {"msg": "success"}
