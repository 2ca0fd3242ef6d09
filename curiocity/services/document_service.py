"""Document service, the deep module for document lifecycle.

Owns Documents and the folder tree embedded in them: CRUD, folders, tags
and last-opened touches. Every folder or tag change is a read of the whole
document, an in-memory edit, and a versioned write of the whole document
back, so a concurrent writer gets a 409 instead of silently losing the
other request's change.
"""

import logging
import uuid
from typing import List, Optional

from ..exceptions import (
    CuriocityException,
    FolderConflictError,
    FolderNotFoundError,
    TagConflictError,
    TagNotFoundError,
    ValidationError,
    VersionConflictError,
)
from ..repositories import DocumentRepository
from ..schemas.document import (
    DEFAULT_FOLDER,
    Document,
    DocumentCreate,
    DocumentPatch,
    Folder,
    PendingDelete,
)
from ..stores.base import Table
from ..stores.mirror import SecondaryMirror
from ..stores.primary import PrimaryStore
from . import analytics
from .content_utils import later_of, now_iso
from .replication import ReplicationCoordinator

logger = logging.getLogger(__name__)


class DocumentService:
    """Deep module for document operations."""

    def __init__(self, primary: PrimaryStore, mirror: Optional[SecondaryMirror] = None):
        self.doc_repo = DocumentRepository(primary)
        self.replication = ReplicationCoordinator(primary, mirror)

    # ------------------------------------------------------------------
    # Persistence helpers
    # ------------------------------------------------------------------

    def save(self, document: Document, previous: Document) -> Document:
        """Write ``document`` over ``previous``, bumping the version.

        The write only succeeds if the stored version is still the one
        ``previous`` was read at.
        """
        updated = document.model_copy(update={
            "version": previous.version + 1,
            "updated_at": now_iso(),
        })
        self.replication.write(
            updated.to_item(),
            previous.to_item(),
            Table.DOCUMENTS,
            expected_version=previous.version,
        )
        return updated

    def _with_folders(self, document: Document, folders: dict) -> Document:
        return document.model_copy(update={"folders": folders})

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def create_document(self, data: DocumentCreate) -> Document:
        """Create a document holding a single empty ``General`` folder."""
        now = now_iso()
        document = Document(
            id=str(uuid.uuid4()),
            owner_id=data.owner_id,
            name=data.name,
            text=data.text,
            folders={DEFAULT_FOLDER: Folder(name=DEFAULT_FOLDER, resources=[])},
            date_added=data.date_added or now,
            last_opened=now,
            tags=[],
            version=1,
        )
        try:
            self.replication.create(document.to_item(), Table.DOCUMENTS)
        except CuriocityException as e:
            analytics.capture(data.owner_id, "Document Creation Failed", {"error": e.message})
            raise

        analytics.capture(data.owner_id, "Document Created", {"document_id": document.id})
        logger.info(f"Created document {document.id}", extra={"owner_id": data.owner_id})
        return document

    def get_document(self, doc_id: str, update_last_opened: bool = False) -> Document:
        document = self.doc_repo.get_by_id(doc_id)
        if update_last_opened:
            document = self._touch(document)
        return document

    def list_documents(self, owner_id: str, order_by: Optional[str] = None) -> List[Document]:
        """Owner's documents; ``order_by="lastOpened"`` puts the most recent first."""
        if not owner_id:
            raise ValidationError("ownerID is required", field="ownerID")
        documents = self.doc_repo.list_by_owner(owner_id)
        if order_by == "lastOpened":
            # Stable two-pass sort: most recent first, never-opened last.
            documents.sort(key=lambda d: d.last_opened, reverse=True)
            documents.sort(key=lambda d: not d.last_opened)
        elif order_by:
            raise ValidationError(f"Unsupported orderBy: {order_by}", field="orderBy")
        return documents

    def update_document(self, patch: DocumentPatch) -> Document:
        """Apply a whitelisted patch.

        With the mirror enabled, a mirror failure restores the document as
        it was before this call.
        """
        existing = self.doc_repo.get_by_id(patch.id)
        if patch.version is not None and patch.version != existing.version:
            analytics.capture(existing.owner_id, "Document Update Failed", {"document_id": patch.id, "error": "version conflict"})
            raise VersionConflictError(
                patch.id,
                f"Document is at version {existing.version}, update was made against version {patch.version}",
            )

        merged = existing.to_item()
        merged.update(patch.changes())
        candidate = Document.model_validate(merged)

        try:
            updated = self.save(candidate, existing)
        except CuriocityException as e:
            analytics.capture(existing.owner_id, "Document Update Failed", {"document_id": patch.id, "error": e.message})
            raise

        analytics.capture(updated.owner_id, "Document Update Successful", {"document_id": updated.id})
        return updated

    def delete_document(self, doc_id: str) -> None:
        """Delete a document and every ResourceMeta its folders reference.

        A pending delete marker listing the resource ids is written first,
        which hides the document from reads; if the process dies partway
        through, ``resume_pending_deletes`` finishes the job on startup.
        Resource rows and blobs are shared by hash and are left alone.
        """
        existing = self.doc_repo.get_by_id(doc_id)
        marked = existing.model_copy(update={
            "pending_delete": PendingDelete(started_at=now_iso(), resource_ids=existing.resource_ids()),
            "version": existing.version + 1,
        })
        try:
            self.replication.put_primary(marked.to_item(), Table.DOCUMENTS, expected_version=existing.version)
            self.replication.delete(doc_id, Table.DOCUMENTS)
        except CuriocityException as e:
            analytics.capture(existing.owner_id, "Document Delete Failed", {"document_id": doc_id, "error": e.message})
            raise

        analytics.capture(existing.owner_id, "Document Deleted", {"document_id": doc_id})
        logger.info(f"Deleted document {doc_id}", extra={"resources": len(marked.pending_delete.resource_ids)})

    def resume_pending_deletes(self) -> int:
        """Finish cascade deletes interrupted by a crash. Returns how many."""
        pending = self.doc_repo.list_pending_deletes()
        for document in pending:
            logger.warning(
                "Resuming interrupted delete",
                extra={"document_id": document.id, "started_at": document.pending_delete.started_at},
            )
            self.replication.delete(document.id, Table.DOCUMENTS)
        return len(pending)

    # ------------------------------------------------------------------
    # Folders
    # ------------------------------------------------------------------

    def add_folder(self, doc_id: str, folder_name: str) -> Document:
        folder_name = _require_name(folder_name, "folderName")
        document = self.doc_repo.get_by_id(doc_id)
        if folder_name in document.folders:
            raise FolderConflictError(doc_id, folder_name)

        folders = dict(document.folders)
        folders[folder_name] = Folder(name=folder_name, resources=[])
        return self.save(self._with_folders(document, folders), document)

    def rename_folder(self, doc_id: str, old_name: str, new_name: str) -> Document:
        """Re-key a folder, keeping its position and its resource list."""
        old_name = _require_name(old_name, "oldName")
        new_name = _require_name(new_name, "newName")
        document = self.doc_repo.get_by_id(doc_id)
        if old_name not in document.folders:
            raise FolderNotFoundError(doc_id, old_name, status_code=400)
        if new_name in document.folders:
            raise FolderConflictError(doc_id, new_name)

        folders = {}
        for key, folder in document.folders.items():
            if key == old_name:
                folders[new_name] = Folder(name=new_name, resources=folder.resources)
            else:
                folders[key] = folder
        return self.save(self._with_folders(document, folders), document)

    def delete_folder(self, doc_id: str, folder_name: str) -> Document:
        """Delete a folder and the ResourceMeta rows of everything in it.

        Rows are deleted one by one before the document is saved; if one
        fails, the rows already deleted stay deleted and the folder stays.
        """
        document = self.doc_repo.get_by_id(doc_id)
        if folder_name not in document.folders:
            raise FolderNotFoundError(doc_id, folder_name, status_code=400)

        for resource in document.folders[folder_name].resources:
            try:
                self.replication.delete(resource.id, Table.RESOURCE_META)
            except CuriocityException:
                logger.error(
                    "Folder delete stopped partway",
                    extra={"table": Table.RESOURCE_META.value, "id": resource.id, "document_id": doc_id, "folder": folder_name},
                )
                raise

        folders = {k: v for k, v in document.folders.items() if k != folder_name}
        return self.save(self._with_folders(document, folders), document)

    # ------------------------------------------------------------------
    # Tags
    # ------------------------------------------------------------------

    def add_tag(self, doc_id: str, tag: str) -> Document:
        tag = _require_name(tag, "tag")
        document = self.doc_repo.get_by_id(doc_id)
        if tag in document.tags:
            raise TagConflictError(doc_id, tag)

        updated = self.save(document.model_copy(update={"tags": [*document.tags, tag]}), document)
        analytics.capture(document.owner_id, "Tags Updated", {"document_id": doc_id, "added": tag})
        return updated

    def delete_tag(self, doc_id: str, tag: str) -> Document:
        document = self.doc_repo.get_by_id(doc_id)
        if tag not in document.tags:
            raise TagNotFoundError(doc_id, tag)

        remaining = [t for t in document.tags if t != tag]
        updated = self.save(document.model_copy(update={"tags": remaining}), document)
        analytics.capture(document.owner_id, "Tags Updated", {"document_id": doc_id, "removed": tag})
        return updated

    # ------------------------------------------------------------------
    # Last opened
    # ------------------------------------------------------------------

    def touch_last_opened(self, doc_id: str) -> Document:
        return self._touch(self.doc_repo.get_by_id(doc_id))

    def _touch(self, document: Document) -> Document:
        """Set lastOpened to now; never moves it backwards."""
        timestamp = later_of(now_iso(), document.last_opened)
        touched = document.model_copy(update={"last_opened": timestamp})
        self.replication.touch(document.id, {"lastOpened": timestamp}, touched.to_item(), Table.DOCUMENTS)
        analytics.capture(document.owner_id, "Document Last Opened", {"document_id": document.id})
        return touched


def _require_name(value: Optional[str], field: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError(f"{field} is required", field=field)
    return value
