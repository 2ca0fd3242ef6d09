"""Resource service: uploads and the ResourceMeta lifecycle.

A Resource row is keyed by the MD5 of the uploaded bytes and shared by
every upload of the same content. Each upload still gets its own
ResourceMeta row and its own entry in the target folder. The folder entry
(ResourceCompressed) duplicates name/fileType/dates of the ResourceMeta
row, so renames and touches write both.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Optional

from ..blobs import BlobStore
from ..exceptions import (
    FolderNotFoundError,
    ResourceNotFoundError,
    ValidationError,
)
from ..repositories import DocumentRepository, ResourceMetaRepository, ResourceRepository
from ..schemas.document import Document, Folder
from ..schemas.resource import Resource, ResourceMeta, ResourceMetaUpdate
from ..schemas.storage import StorageResult
from ..stores.base import Table
from ..stores.mirror import SecondaryMirror
from ..stores.primary import PrimaryStore
from .content_utils import (
    NO_TEXT_MARKDOWN,
    PARSING_DISABLED_MARKDOWN,
    UNPARSEABLE_CONTENT_TYPES,
    blob_key,
    content_hash,
    infer_file_type,
    later_of,
    now_iso,
    truncate_markdown,
)
from .document_service import DocumentService
from .extraction import TextExtractor

logger = logging.getLogger(__name__)


@dataclass
class UploadResult:
    resource_meta: ResourceMeta
    document: Document
    storage: Optional[StorageResult]


class ResourceService:
    """Deep module for resource operations."""

    def __init__(
        self,
        primary: PrimaryStore,
        blobs: BlobStore,
        mirror: Optional[SecondaryMirror] = None,
        extractor: Optional[TextExtractor] = None,
        markdown_max_bytes: int = 350 * 1024,
    ):
        self.blobs = blobs
        self.extractor = extractor
        self.markdown_max_bytes = markdown_max_bytes
        self.documents = DocumentService(primary, mirror)
        self.doc_repo = DocumentRepository(primary)
        self.meta_repo = ResourceMetaRepository(primary)
        self.resource_repo = ResourceRepository(primary)
        self.replication = self.documents.replication

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_resource_meta(self, resource_id: str) -> ResourceMeta:
        return self.meta_repo.get_by_id(resource_id)

    def get_resource(self, hash_: str) -> Resource:
        return self.resource_repo.get_by_id(hash_)

    def resource_exists(self, hash_: str) -> bool:
        return self.resource_repo.exists(hash_)

    # ------------------------------------------------------------------
    # Upload
    # ------------------------------------------------------------------

    def upload_resource(
        self,
        data: bytes,
        filename: str,
        content_type: str,
        folder_name: str,
        document_id: str,
        file_type: Optional[str] = None,
    ) -> UploadResult:
        """Store a file in a document folder.

        New content is extracted to text, then pushed to the blob store,
        then recorded as a Resource row; content already stored under the
        same hash skips all three. Either way a fresh ResourceMeta row is
        written and appended to the folder, which is created if missing.
        """
        if not filename:
            raise ValidationError("File name is required", field="name")
        if not folder_name:
            raise ValidationError("folderName is required", field="folderName")
        if not document_id:
            raise ValidationError("documentId is required", field="documentId")
        if not data:
            raise ValidationError("File is empty", field="file")

        document = self.doc_repo.get_by_id(document_id)
        hash_ = content_hash(data)

        storage = None
        if not self.resource_repo.exists(hash_):
            markdown = self._markdown_for(data, filename, content_type)
            storage = self.blobs.put(blob_key(hash_), data, content_type)
            resource = Resource(
                id=hash_,
                markdown=truncate_markdown(markdown, self.markdown_max_bytes),
                url=storage.url,
            )
            self.replication.create(resource.to_item(), Table.RESOURCES)
            logger.info("Stored new resource content", extra={"hash": hash_, "bytes": len(data)})
        else:
            logger.info("Resource content already stored", extra={"hash": hash_})

        now = now_iso()
        meta = ResourceMeta(
            id=str(uuid.uuid4()),
            hash=hash_,
            document_id=document_id,
            name=filename,
            file_type=file_type or infer_file_type(filename),
            notes="",
            summary="",
            tags=[],
            date_added=now,
            last_opened=now,
        )
        self.replication.create(meta.to_item(), Table.RESOURCE_META)

        folders = dict(document.folders)
        target = folders.get(folder_name) or Folder(name=folder_name, resources=[])
        folders[folder_name] = Folder(name=folder_name, resources=[*target.resources, meta.compressed()])
        updated = self.documents.save(document.model_copy(update={"folders": folders}), document)

        return UploadResult(resource_meta=meta, document=updated, storage=storage)

    def _markdown_for(self, data: bytes, filename: str, content_type: str) -> str:
        if self.extractor is None:
            return PARSING_DISABLED_MARKDOWN
        if content_type in UNPARSEABLE_CONTENT_TYPES:
            return NO_TEXT_MARKDOWN
        return self.extractor.extract(data, filename, content_type)

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    def update_resource_meta(self, resource_id: str, update: ResourceMetaUpdate) -> ResourceMeta:
        """Partial update; see ResourceMetaUpdate for set/omit rules.

        A name change is also written to the folder entry.
        """
        existing = self.meta_repo.get_by_id(resource_id)
        changes = update.model_dump(exclude_unset=True, exclude_none=True)
        if not changes:
            return existing

        updated = existing.model_copy(update={**changes, "updated_at": now_iso()})
        self.replication.write(updated.to_item(), existing.to_item(), Table.RESOURCE_META)

        if updated.name != existing.name:
            self._sync_projection(updated, name=updated.name)
        return updated

    def rename_resource(self, resource_id: str, new_name: str) -> ResourceMeta:
        new_name = (new_name or "").strip()
        if not new_name:
            raise ValidationError("name is required", field="name")
        return self.update_resource_meta(resource_id, ResourceMetaUpdate(name=new_name))

    def _sync_projection(self, meta: ResourceMeta, **fields) -> None:
        """Copy ``fields`` onto every folder entry for ``meta``.

        The canonical row is already written, so a missing entry is only
        logged.
        """
        document = self.doc_repo.get_by_id_optional(meta.document_id) if meta.document_id else None
        if document is None:
            logger.warning("Resource has no owning document", extra={"resource_id": meta.id})
            return

        found = False
        folders = {}
        for key, folder in document.folders.items():
            resources = []
            for entry in folder.resources:
                if entry.id == meta.id:
                    entry = entry.model_copy(update=fields)
                    found = True
                resources.append(entry)
            folders[key] = Folder(name=key, resources=resources)

        if not found:
            logger.warning(
                "Resource not found in any folder",
                extra={"resource_id": meta.id, "document_id": document.id},
            )
            return
        self.documents.save(document.model_copy(update={"folders": folders}), document)

    def move_resource(self, resource_id: str, source_folder: str, target_folder: str, document_id: str) -> Document:
        document = self.doc_repo.get_by_id(document_id)
        if source_folder not in document.folders:
            raise FolderNotFoundError(document_id, source_folder)
        if target_folder not in document.folders:
            raise FolderNotFoundError(document_id, target_folder)

        source = document.folders[source_folder]
        index = next((i for i, r in enumerate(source.resources) if r.id == resource_id), None)
        if index is None:
            raise ResourceNotFoundError(resource_id, f"Resource {resource_id} is not in folder {source_folder}")

        moving = source.resources[index]
        folders = dict(document.folders)
        folders[source_folder] = Folder(
            name=source_folder,
            resources=source.resources[:index] + source.resources[index + 1:],
        )
        target = folders[target_folder]
        folders[target_folder] = Folder(name=target_folder, resources=[*target.resources, moving])
        return self.documents.save(document.model_copy(update={"folders": folders}), document)

    # ------------------------------------------------------------------
    # Notes
    # ------------------------------------------------------------------

    def get_notes(self, resource_id: str) -> str:
        return self.meta_repo.get_by_id(resource_id).notes

    def set_notes(self, resource_id: str, notes: str) -> str:
        return self.update_resource_meta(resource_id, ResourceMetaUpdate(notes=notes)).notes

    def clear_notes(self, resource_id: str) -> str:
        return self.set_notes(resource_id, "")

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    def delete_resource(self, resource_id: str) -> None:
        """Detach from every folder, save the document, then delete the row.

        If the process dies between the two writes the ResourceMeta row is
        orphaned, never the folder entry. The Resource row and blob are
        shared by hash and stay.
        """
        meta = self.meta_repo.get_by_id(resource_id)
        document = self.doc_repo.get_by_id_optional(meta.document_id) if meta.document_id else None
        if document is None:
            raise ResourceNotFoundError(resource_id, f"Owning document of resource {resource_id} not found")

        removed = 0
        folders = {}
        for key, folder in document.folders.items():
            kept = [r for r in folder.resources if r.id != resource_id]
            removed += len(folder.resources) - len(kept)
            folders[key] = Folder(name=key, resources=kept)
        if removed == 0:
            raise ResourceNotFoundError(resource_id, f"Resource {resource_id} is not in any folder")

        self.documents.save(document.model_copy(update={"folders": folders}), document)
        self.replication.delete(resource_id, Table.RESOURCE_META)

    # ------------------------------------------------------------------
    # Last opened
    # ------------------------------------------------------------------

    def touch_last_opened(self, resource_id: str, folder_name: Optional[str] = None) -> ResourceMeta:
        """Set lastOpened on the row and on its folder entry (two writes).

        With ``folder_name``, the entry must be in that folder; without it,
        every folder is searched.
        """
        meta = self.meta_repo.get_by_id(resource_id)
        document = self.doc_repo.get_by_id_optional(meta.document_id) if meta.document_id else None
        if document is None:
            raise ResourceNotFoundError(resource_id, f"Owning document of resource {resource_id} not found")
        if folder_name is not None:
            if folder_name not in document.folders:
                raise FolderNotFoundError(document.id, folder_name)
            candidates = [folder_name]
        else:
            candidates = list(document.folders)
        if not any(r.id == resource_id for key in candidates for r in document.folders[key].resources):
            raise ResourceNotFoundError(resource_id, f"Resource {resource_id} is not in the given folder")

        timestamp = later_of(now_iso(), meta.last_opened)
        touched = meta.model_copy(update={"last_opened": timestamp})
        self.replication.touch(resource_id, {"lastOpened": timestamp}, touched.to_item(), Table.RESOURCE_META)

        folders = dict(document.folders)
        for key in candidates:
            folder = folders[key]
            folders[key] = Folder(
                name=key,
                resources=[
                    r.model_copy(update={"last_opened": timestamp}) if r.id == resource_id else r
                    for r in folder.resources
                ],
            )
        self.documents.save(document.model_copy(update={"folders": folders}), document)
        return touched
