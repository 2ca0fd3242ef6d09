"""Primary store: table routing and the document cascade delete."""

import logging
from typing import Any, Dict, Iterable, List, Optional

from ..exceptions import DocumentNotFoundError, StorageError
from .base import KeyValueBackend, Table, TableNames

logger = logging.getLogger(__name__)


def referenced_resource_ids(document: Dict[str, Any]) -> List[str]:
    """ResourceMeta ids a document's cascade must delete.

    Every resource in every folder, plus any ids recorded in a pending
    delete marker, deduplicated in first-seen order.
    """
    ids: List[str] = []
    for folder in (document.get("folders") or {}).values():
        for resource in folder.get("resources") or []:
            ids.append(resource["id"])
    pending = document.get("pendingDelete") or {}
    ids.extend(pending.get("resourceIds") or [])
    return list(dict.fromkeys(ids))


class PrimaryStore:
    """get/put/delete/scan by id and logical table.

    ``get`` on a missing key returns None. ``put`` is an upsert, conditional
    on the stored version only when ``expected_version`` is given. Deleting
    a document first deletes every ResourceMeta its folders reference; that
    walk is not transactional, so a pending delete marker on the document
    lets ``DocumentService.resume_pending_deletes`` finish it after a crash.
    """

    def __init__(self, backend: KeyValueBackend, tables: TableNames):
        self.backend = backend
        self.tables = tables

    def get(self, record_id: str, table: Table) -> Optional[Dict[str, Any]]:
        return self.backend.get_item(self.tables.name_for(table), record_id)

    def put(
        self,
        record: Dict[str, Any],
        table: Table,
        expected_version: Optional[int] = None,
    ) -> None:
        self.backend.put_item(self.tables.name_for(table), record, expected_version)

    def delete(self, record_id: str, table: Table) -> None:
        if table == Table.DOCUMENTS:
            self._cascade_resource_meta(record_id)
        self.backend.delete_item(self.tables.name_for(table), record_id)

    def scan(
        self,
        table: Table,
        filters: Optional[Dict[str, Any]] = None,
        require_attributes: Iterable[str] = (),
    ) -> List[Dict[str, Any]]:
        return self.backend.scan(self.tables.name_for(table), filters, require_attributes)

    def update_fields(self, record_id: str, fields: Dict[str, Any], table: Table) -> None:
        self.backend.update_fields(self.tables.name_for(table), record_id, fields)

    def ping(self) -> bool:
        return self.backend.ping(self.tables.documents)

    def _cascade_resource_meta(self, document_id: str) -> None:
        document = self.get(document_id, Table.DOCUMENTS)
        if document is None:
            raise DocumentNotFoundError(document_id)

        meta_table = self.tables.name_for(Table.RESOURCE_META)
        for resource_id in referenced_resource_ids(document):
            try:
                self.backend.delete_item(meta_table, resource_id)
            except StorageError:
                logger.error(
                    "Cascade delete failed",
                    extra={"table": meta_table, "id": resource_id, "document_id": document_id},
                )
                raise
