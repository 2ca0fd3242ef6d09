"""Repository for Document rows."""

from typing import List, Optional

from ..exceptions import DocumentNotFoundError
from ..schemas.document import Document
from ..stores.base import Table
from .base import BaseRepository


class DocumentRepository(BaseRepository[Document]):
    """Documents, excluding those with a delete in progress."""

    table = Table.DOCUMENTS
    model_class = Document
    not_found_error = DocumentNotFoundError

    def get_by_id_optional(self, entity_id: str) -> Optional[Document]:
        document = super().get_by_id_optional(entity_id)
        if document is None or document.pending_delete is not None:
            return None
        return document

    def list_by_owner(self, owner_id: str) -> List[Document]:
        items = self.store.scan(self.table, filters={"ownerID": owner_id})
        documents = [Document.model_validate(item) for item in items]
        return [d for d in documents if d.pending_delete is None]

    def list_pending_deletes(self) -> List[Document]:
        """Documents whose cascade delete was interrupted."""
        items = self.store.scan(self.table, require_attributes=("pendingDelete",))
        return [Document.model_validate(item) for item in items]
