"""Base repository with shared get-by-ID patterns.

Subclasses specify table, model_class and not_found_error; the base maps
primary-store items to pydantic models. Writes go through the
ReplicationCoordinator, not through repositories.
"""

from typing import TypeVar, Generic, Optional, Type

from ..exceptions import CuriocityException
from ..schemas.base import CamelModel
from ..stores.base import Table
from ..stores.primary import PrimaryStore

ModelT = TypeVar("ModelT", bound=CamelModel)


class BaseRepository(Generic[ModelT]):
    """Shared repository logic for primary-store tables.

    Class variables to set in subclasses:
        table:           Logical table the rows live in
        model_class:     Pydantic model a row maps to
        not_found_error: Exception class to raise from get_by_id
    """

    table: Table
    model_class: Type[ModelT]
    not_found_error: Type[CuriocityException]

    def __init__(self, store: PrimaryStore):
        self.store = store

    def get_by_id(self, entity_id: str) -> ModelT:
        """Get entity by primary key. Raises not_found_error if missing."""
        entity = self.get_by_id_optional(entity_id)
        if entity is None:
            raise self.not_found_error(entity_id)
        return entity

    def get_by_id_optional(self, entity_id: str) -> Optional[ModelT]:
        """Get entity by primary key, or None if not found."""
        item = self.store.get(entity_id, self.table)
        if item is None:
            return None
        return self.model_class.model_validate(item)

    def exists(self, entity_id: str) -> bool:
        return self.store.get(entity_id, self.table) is not None
