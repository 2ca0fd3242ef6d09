"""Key-value backend interface shared by DynamoDB and the in-memory store."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional


class Table(str, Enum):
    """Logical tables. Physical names come from settings (``TableNames``)."""
    DOCUMENTS = "Documents"
    RESOURCE_META = "ResourceMeta"
    RESOURCES = "Resources"


@dataclass(frozen=True)
class TableNames:
    documents: str = "curiocity-documents"
    resource_meta: str = "curiocity-resourcemeta"
    resources: str = "curiocity-resources"

    def name_for(self, table: Table) -> str:
        return {
            Table.DOCUMENTS: self.documents,
            Table.RESOURCE_META: self.resource_meta,
            Table.RESOURCES: self.resources,
        }[table]


class ConditionFailed(Exception):
    """A conditional put found a different version than expected."""

    def __init__(self, table_name: str, key: str):
        super().__init__(f"Condition failed for {table_name}/{key}")
        self.table_name = table_name
        self.key = key


class KeyValueBackend(ABC):
    """Single-key item storage. Every table is keyed by a string ``id``.

    Implementations raise ``StorageError`` for infrastructure failures and
    ``ConditionFailed`` when a versioned put loses a race.
    """

    @abstractmethod
    def get_item(self, table_name: str, key: str) -> Optional[Dict[str, Any]]:
        """Return the item, or None when the key is absent."""

    @abstractmethod
    def put_item(
        self,
        table_name: str,
        item: Dict[str, Any],
        expected_version: Optional[int] = None,
    ) -> None:
        """Upsert ``item``.

        With ``expected_version``, the write only happens if the stored item
        exists and its ``version`` equals the expected one; a deleted row is
        never recreated by a stale read.
        """

    @abstractmethod
    def delete_item(self, table_name: str, key: str) -> None:
        """Delete by key. Deleting a missing key is not an error."""

    @abstractmethod
    def scan(
        self,
        table_name: str,
        filters: Optional[Dict[str, Any]] = None,
        require_attributes: Iterable[str] = (),
    ) -> List[Dict[str, Any]]:
        """All items whose attributes equal ``filters`` and that carry every
        attribute in ``require_attributes``."""

    @abstractmethod
    def update_fields(self, table_name: str, key: str, fields: Dict[str, Any]) -> None:
        """Set top-level attributes of an existing item."""

    @abstractmethod
    def ping(self, table_name: str) -> bool:
        """Cheap reachability check used by /health."""
