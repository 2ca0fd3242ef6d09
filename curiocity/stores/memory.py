"""In-process key-value backend for local development and tests."""

import copy
import threading
from typing import Any, Dict, Iterable, List, Optional

from .base import ConditionFailed, KeyValueBackend


class InMemoryBackend(KeyValueBackend):
    """Dict-of-dicts store. Items are deep-copied in and out."""

    def __init__(self):
        self._tables: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._lock = threading.Lock()

    def _table(self, table_name: str) -> Dict[str, Dict[str, Any]]:
        return self._tables.setdefault(table_name, {})

    def get_item(self, table_name: str, key: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            item = self._table(table_name).get(key)
            return copy.deepcopy(item) if item is not None else None

    def put_item(
        self,
        table_name: str,
        item: Dict[str, Any],
        expected_version: Optional[int] = None,
    ) -> None:
        key = item["id"]
        with self._lock:
            table = self._table(table_name)
            if expected_version is not None:
                current = table.get(key)
                if current is None or current.get("version") != expected_version:
                    raise ConditionFailed(table_name, key)
            table[key] = copy.deepcopy(item)

    def delete_item(self, table_name: str, key: str) -> None:
        with self._lock:
            self._table(table_name).pop(key, None)

    def scan(
        self,
        table_name: str,
        filters: Optional[Dict[str, Any]] = None,
        require_attributes: Iterable[str] = (),
    ) -> List[Dict[str, Any]]:
        filters = filters or {}
        required = list(require_attributes)
        with self._lock:
            return [
                copy.deepcopy(item)
                for item in self._table(table_name).values()
                if all(item.get(k) == v for k, v in filters.items())
                and all(item.get(attr) is not None for attr in required)
            ]

    def update_fields(self, table_name: str, key: str, fields: Dict[str, Any]) -> None:
        with self._lock:
            item = self._table(table_name).get(key)
            if item is None:
                raise ConditionFailed(table_name, key)
            item.update(copy.deepcopy(fields))

    def ping(self, table_name: str) -> bool:
        return True
