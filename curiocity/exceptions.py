"""Errors raised by Curiocity services.

Every error carries the HTTP status and the machine code the API returns;
the exception handler turns them into ``{"error", "message", "details"}``.
"""

from enum import Enum
from typing import Optional, Dict, Any


class ErrorCode(str, Enum):
    """Values of the ``error`` field in error responses."""

    DOCUMENT_NOT_FOUND = "DOCUMENT_NOT_FOUND"
    FOLDER_NOT_FOUND = "FOLDER_NOT_FOUND"
    FOLDER_EXISTS = "FOLDER_EXISTS"
    DUPLICATE_TAG = "DUPLICATE_TAG"
    TAG_NOT_FOUND = "TAG_NOT_FOUND"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"

    # Bad input and lost optimistic-concurrency races
    VALIDATION_ERROR = "VALIDATION_ERROR"
    CONFLICT = "CONFLICT"

    # Backends
    STORAGE_ERROR = "STORAGE_ERROR"
    REPLICATION_FAILED = "REPLICATION_FAILED"
    EXTRACTION_FAILED = "EXTRACTION_FAILED"

    INTERNAL_ERROR = "INTERNAL_ERROR"


class CuriocityException(Exception):
    """Root of the Curiocity error tree.

    ``details`` holds identifiers useful to the caller (document id,
    folder name, mirror table) and is returned verbatim.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Response body for this error."""
        return {
            "error": self.error_code.value,
            "message": self.message,
            "details": self.details,
        }


class DocumentNotFoundError(CuriocityException):
    """Document not found in the primary store."""

    def __init__(self, doc_id: str):
        super().__init__(
            f"Document not found: {doc_id}",
            ErrorCode.DOCUMENT_NOT_FOUND,
            status_code=404,
            details={"doc_id": doc_id}
        )


class FolderNotFoundError(CuriocityException):
    """Folder name is not a key of the document's folder map.

    Folder rename/delete report this as a bad request (400); resource
    moves and touches report it as not found (404).
    """

    def __init__(self, doc_id: str, folder_name: str, status_code: int = 404):
        super().__init__(
            f"Folder not found: {folder_name}",
            ErrorCode.FOLDER_NOT_FOUND,
            status_code=status_code,
            details={"doc_id": doc_id, "folder_name": folder_name}
        )


class FolderConflictError(CuriocityException):
    """A folder with this name already exists in the document."""

    def __init__(self, doc_id: str, folder_name: str):
        super().__init__(
            f"Folder already exists: {folder_name}",
            ErrorCode.FOLDER_EXISTS,
            status_code=400,
            details={"doc_id": doc_id, "folder_name": folder_name}
        )


class TagConflictError(CuriocityException):
    """Tag is already present on the document."""

    def __init__(self, doc_id: str, tag: str):
        super().__init__(
            f"Tag already exists: {tag}",
            ErrorCode.DUPLICATE_TAG,
            status_code=409,
            details={"doc_id": doc_id, "tag": tag}
        )


class TagNotFoundError(CuriocityException):
    """Tag is not present on the document."""

    def __init__(self, doc_id: str, tag: str):
        super().__init__(
            f"Tag not found: {tag}",
            ErrorCode.TAG_NOT_FOUND,
            status_code=404,
            details={"doc_id": doc_id, "tag": tag}
        )


class ResourceNotFoundError(CuriocityException):
    """ResourceMeta/Resource row missing, or resource not attached where expected."""

    def __init__(self, resource_id: str, message: Optional[str] = None):
        super().__init__(
            message or f"Resource not found: {resource_id}",
            ErrorCode.RESOURCE_NOT_FOUND,
            status_code=404,
            details={"resource_id": resource_id}
        )


class ValidationError(CuriocityException):
    """Request is well-formed but breaks a rule (blank name, bad TTL, missing field)."""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(
            message,
            ErrorCode.VALIDATION_ERROR,
            status_code=400,
            details=details
        )


class VersionConflictError(CuriocityException):
    """Document was written by someone else since it was read."""

    def __init__(self, doc_id: str, message: str = "Document was modified by another request"):
        super().__init__(
            message,
            ErrorCode.CONFLICT,
            status_code=409,
            details={"doc_id": doc_id}
        )


class StorageError(CuriocityException):
    """Primary store or blob store call failed."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        details = {"cause": str(original_error)} if original_error else {}
        super().__init__(
            message,
            ErrorCode.STORAGE_ERROR,
            status_code=500,
            details=details
        )


class ReplicationError(CuriocityException):
    """Secondary mirror rejected a write; the primary was reverted."""

    def __init__(self, table: str, record_id: str, reason: str):
        super().__init__(
            f"Mirror write failed for {table}/{record_id}",
            ErrorCode.REPLICATION_FAILED,
            status_code=500,
            details={"table": table, "id": record_id, "reason": reason}
        )


class ExtractionError(CuriocityException):
    """Text extraction service failed or timed out."""

    def __init__(self, message: str, filename: Optional[str] = None):
        details = {"filename": filename} if filename else {}
        super().__init__(
            message,
            ErrorCode.EXTRACTION_FAILED,
            status_code=500,
            details=details
        )
