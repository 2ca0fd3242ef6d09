"""Document API endpoints.

Endpoints are thin. DocumentService handles the folder tree, tags,
versioning and mirror replication.
"""

from fastapi import APIRouter, Depends, Query
from typing import List, Optional

from ..core.clients import Clients, get_clients
from ..schemas.document import (
    Document,
    DocumentCreate,
    DocumentDelete,
    DocumentPatch,
    FolderCreate,
    FolderRename,
    MessageResponse,
    TagCreate,
)
from ..services import DocumentService

router = APIRouter(prefix="/documents", tags=["documents"])


def get_document_service(clients: Clients = Depends(get_clients)) -> DocumentService:
    return DocumentService(clients.primary, clients.mirror)


@router.get("", response_model=List[Document])
def list_documents(
    owner_id: Optional[str] = Query(None, alias="ownerID"),
    order_by: Optional[str] = Query(None, alias="orderBy"),
    service: DocumentService = Depends(get_document_service),
):
    """List an owner's documents, optionally most recently opened first."""
    return service.list_documents(owner_id or "", order_by)


@router.post("", response_model=Document, status_code=201)
def create_document(
    document: DocumentCreate,
    service: DocumentService = Depends(get_document_service),
):
    """Create a document with an empty General folder."""
    return service.create_document(document)


@router.put("", response_model=Document)
def update_document(
    patch: DocumentPatch,
    service: DocumentService = Depends(get_document_service),
):
    """Update whitelisted fields of a document.

    Send ``version`` to have the update rejected (409) if someone else
    saved the document since you loaded it.
    """
    return service.update_document(patch)


@router.delete("", response_model=MessageResponse)
def delete_document(
    body: DocumentDelete,
    service: DocumentService = Depends(get_document_service),
):
    """Delete a document and the resource metadata in its folders."""
    service.delete_document(body.id)
    return {"msg": "success"}


@router.get("/{doc_id}", response_model=Document)
def get_document(
    doc_id: str,
    update_last_opened: bool = Query(False, alias="updateLastOpened"),
    service: DocumentService = Depends(get_document_service),
):
    return service.get_document(doc_id, update_last_opened=update_last_opened)


@router.post("/{doc_id}/last-opened", response_model=MessageResponse)
def touch_document(doc_id: str, service: DocumentService = Depends(get_document_service)):
    service.touch_last_opened(doc_id)
    return {"msg": "success"}


# --- Folders ---

@router.post("/{doc_id}/folders", response_model=Document)
def add_folder(
    doc_id: str,
    body: FolderCreate,
    service: DocumentService = Depends(get_document_service),
):
    return service.add_folder(doc_id, body.folder_name)


@router.put("/{doc_id}/folders", response_model=Document)
def rename_folder(
    doc_id: str,
    body: FolderRename,
    service: DocumentService = Depends(get_document_service),
):
    return service.rename_folder(doc_id, body.old_name, body.new_name)


@router.delete("/{doc_id}/folders/{folder_name}", response_model=Document)
def delete_folder(
    doc_id: str,
    folder_name: str,
    service: DocumentService = Depends(get_document_service),
):
    """Delete a folder together with the resource metadata it holds."""
    return service.delete_folder(doc_id, folder_name)


# --- Tags ---

@router.post("/{doc_id}/tags", response_model=Document)
def add_tag(
    doc_id: str,
    body: TagCreate,
    service: DocumentService = Depends(get_document_service),
):
    return service.add_tag(doc_id, body.tag)


@router.delete("/{doc_id}/tags/{tag}", response_model=Document)
def delete_tag(
    doc_id: str,
    tag: str,
    service: DocumentService = Depends(get_document_service),
):
    return service.delete_tag(doc_id, tag)
