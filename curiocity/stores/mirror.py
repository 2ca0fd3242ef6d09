"""Secondary SQL mirror of the three primary tables.

Every operation reports a ``MirrorResult`` instead of raising. A record is
checked for its required fields before it is written; a record that fails
the check is never sent to the database. Rows read back are checked the
same way and dropped when they fail.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Type

import pydantic
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from ..database import Base, create_mirror_engine, create_session_factory
from ..models import MirrorDocument, MirrorResource, MirrorResourceMeta
from .base import Table

logger = logging.getLogger(__name__)


@dataclass
class MirrorResult:
    success: bool
    error: Optional[str] = None


# ---------------------------------------------------------------------------
# Required-field gate
# ---------------------------------------------------------------------------

class _DocumentGate(BaseModel):
    model_config = ConfigDict(extra="allow")
    id: str = Field(..., min_length=1)
    ownerID: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    folders: Dict[str, Any]
    dateAdded: str = Field(..., min_length=1)
    lastOpened: str = Field(..., min_length=1)
    tags: List[Any]


class _ResourceMetaGate(BaseModel):
    model_config = ConfigDict(extra="allow")
    id: str = Field(..., min_length=1)
    hash: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    dateAdded: str = Field(..., min_length=1)
    lastOpened: str = Field(..., min_length=1)
    tags: List[Any]


class _ResourceGate(BaseModel):
    model_config = ConfigDict(extra="allow")
    id: str = Field(..., min_length=1)
    markdown: str
    url: str = Field(..., min_length=1)


_GATES: Dict[Table, Type[BaseModel]] = {
    Table.DOCUMENTS: _DocumentGate,
    Table.RESOURCE_META: _ResourceMetaGate,
    Table.RESOURCES: _ResourceGate,
}

_MODELS: Dict[Table, Type[Base]] = {
    Table.DOCUMENTS: MirrorDocument,
    Table.RESOURCE_META: MirrorResourceMeta,
    Table.RESOURCES: MirrorResource,
}


def validate_record(record: Dict[str, Any], table: Table) -> Optional[str]:
    """Return a description of what is missing, or None if the record passes."""
    try:
        _GATES[table].model_validate(record)
    except pydantic.ValidationError as e:
        fields = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()})
        return f"Invalid {table.value} record: missing or malformed {', '.join(fields)}"
    return None


# ---------------------------------------------------------------------------
# Adapter
# ---------------------------------------------------------------------------

class SecondaryMirror:
    """SQL copy of Documents, ResourceMeta and Resources."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    @classmethod
    def from_url(cls, database_url: str) -> "SecondaryMirror":
        engine = create_mirror_engine(database_url)
        return cls(create_session_factory(engine))

    def put(self, record: Dict[str, Any], table: Table) -> MirrorResult:
        error = validate_record(record, table)
        if error:
            logger.warning(error, extra={"table": table.value, "id": record.get("id")})
            return MirrorResult(success=False, error=error)

        model = _MODELS[table]
        row = model(**{col: record.get(key) for col, key in model.record_fields.items()})
        with self._session_factory() as session:
            try:
                session.merge(row)
                session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                logger.error(
                    "Mirror write failed",
                    extra={"table": table.value, "id": record.get("id"), "error": str(e)},
                )
                return MirrorResult(success=False, error=str(e))
        return MirrorResult(success=True)

    def get(self, record_id: str, table: Table) -> Optional[Dict[str, Any]]:
        model = _MODELS[table]
        try:
            with self._session_factory() as session:
                row = session.get(model, record_id)
                if row is None:
                    return None
                record = {
                    key: getattr(row, col)
                    for col, key in model.record_fields.items()
                    if getattr(row, col) is not None
                }
        except SQLAlchemyError as e:
            logger.error("Mirror read failed", extra={"table": table.value, "id": record_id, "error": str(e)})
            return None

        if validate_record(record, table):
            logger.warning("Mirror row failed validation", extra={"table": table.value, "id": record_id})
            return None
        return record

    def delete(self, record_id: str, table: Table) -> MirrorResult:
        model = _MODELS[table]
        with self._session_factory() as session:
            try:
                row = session.get(model, record_id)
                if row is not None:
                    session.delete(row)
                    session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                logger.error(
                    "Mirror delete failed",
                    extra={"table": table.value, "id": record_id, "error": str(e)},
                )
                return MirrorResult(success=False, error=str(e))
        return MirrorResult(success=True)

    def ping(self) -> bool:
        try:
            with self._session_factory() as session:
                session.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError:
            return False
