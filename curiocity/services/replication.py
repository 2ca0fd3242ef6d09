"""Primary/mirror write coordination.

With the mirror enabled, an update is written to the primary first and
then to the mirror. If the mirror refuses or raises, the pre-image is
written back to the primary and the request fails with ReplicationError.
This is synchronous compensation, not a two-phase commit: a crash between
the two writes leaves the mirror behind until that row is next written.

Creates and deletes have no pre-image worth restoring, so a mirror failure
there is only logged.
"""

import logging
from typing import Any, Dict, Optional

from ..exceptions import ReplicationError, VersionConflictError
from ..stores.base import ConditionFailed, Table
from ..stores.mirror import SecondaryMirror
from ..stores.primary import PrimaryStore

logger = logging.getLogger(__name__)


class ReplicationCoordinator:
    """Wraps every service-level write to the primary store."""

    def __init__(self, primary: PrimaryStore, mirror: Optional[SecondaryMirror] = None):
        self.primary = primary
        self.mirror = mirror

    def put_primary(self, record: Dict[str, Any], table: Table, expected_version: Optional[int] = None) -> None:
        """Primary-only write; a lost version race becomes VersionConflictError."""
        try:
            self.primary.put(record, table, expected_version)
        except ConditionFailed as e:
            raise VersionConflictError(record["id"]) from e

    def _mirror_put(self, record: Dict[str, Any], table: Table) -> Optional[str]:
        """Write to the mirror; return the failure reason, or None on success."""
        try:
            result = self.mirror.put(record, table)
        except Exception as e:
            return str(e) or e.__class__.__name__
        return None if result.success else (result.error or "mirror write failed")

    def create(self, record: Dict[str, Any], table: Table) -> None:
        """Write a new row. A mirror failure is logged, not rolled back."""
        self.put_primary(record, table, None)
        if self.mirror is None:
            return
        error = self._mirror_put(record, table)
        if error:
            logger.error(
                "Mirror write failed on create; primary kept",
                extra={"table": table.value, "id": record["id"], "error": error},
            )

    def write(
        self,
        record: Dict[str, Any],
        previous: Dict[str, Any],
        table: Table,
        expected_version: Optional[int] = None,
    ) -> None:
        """Replace ``previous`` with ``record`` in both stores or in neither.

        Raises:
            VersionConflictError: the primary row changed since it was read.
            StorageError: the primary write failed; the mirror was not touched.
            ReplicationError: the mirror write failed; the primary was reverted.
        """
        self.put_primary(record, table, expected_version)
        if self.mirror is None:
            return

        error = self._mirror_put(record, table)
        if error is None:
            return

        self._compensate(previous, table)
        raise ReplicationError(table.value, record["id"], error)

    def touch(self, record_id: str, fields: Dict[str, Any], record: Dict[str, Any], table: Table) -> None:
        """Targeted field update; the mirror gets the full row, best effort."""
        try:
            self.primary.update_fields(record_id, fields, table)
        except ConditionFailed as e:
            # The row was deleted between our read and the update.
            raise VersionConflictError(record_id, "Record was deleted by another request") from e
        if self.mirror is None:
            return
        error = self._mirror_put(record, table)
        if error:
            logger.warning(
                "Mirror touch failed",
                extra={"table": table.value, "id": record_id, "error": error},
            )

    def delete(self, record_id: str, table: Table) -> None:
        """Delete from the primary (documents cascade), then the mirror.

        A mirror failure does not bring the row back.
        """
        self.primary.delete(record_id, table)
        if self.mirror is None:
            return
        try:
            result = self.mirror.delete(record_id, table)
            error = None if result.success else result.error
        except Exception as e:
            error = str(e)
        if error:
            logger.error(
                "Mirror delete failed; primary delete kept",
                extra={"table": table.value, "id": record_id, "error": error},
            )

    def _compensate(self, previous: Dict[str, Any], table: Table) -> None:
        try:
            self.primary.put(previous, table)
            logger.warning(
                "Reverted primary after mirror failure",
                extra={"table": table.value, "id": previous["id"]},
            )
        except Exception:
            # The caller still gets the original ReplicationError.
            logger.exception(
                "Compensation write failed; primary and mirror have diverged",
                extra={"table": table.value, "id": previous["id"]},
            )
