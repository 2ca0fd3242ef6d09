"""Shared test fixtures for the Curiocity backend test suite.

Everything runs in process: an in-memory primary store, in-memory blob
backends standing in for S3 and R2, and (where a test asks for it) an
in-memory SQLite mirror. The app's ``get_clients`` dependency is overridden
so each test gets fresh, isolated stores.
"""

import os

# In-process backends and no external services, before any app imports.
os.environ["ENVIRONMENT"] = "development"
os.environ["PRIMARY_STORE_BACKEND"] = "memory"
os.environ["BLOB_STORE_BACKEND"] = "memory"
os.environ["ENABLE_CLOUDFLARE_DATABASE"] = "false"
os.environ["ENABLE_CLOUDFLARE_STORAGE"] = "false"
os.environ["DISABLE_PARSING"] = "true"
os.environ["LOG_FORMAT"] = "text"

import pytest
from fastapi.testclient import TestClient

from curiocity.blobs import BlobStore, InMemoryBlobBackend
from curiocity.core.clients import Clients, get_clients
from curiocity.main import app
from curiocity.services import DocumentService, ResourceService
from curiocity.stores import InMemoryBackend, PrimaryStore, SecondaryMirror, TableNames


class FakeExtractor:
    """Records calls and returns canned markdown (or raises ``error``)."""

    def __init__(self, markdown: str = "# Extracted\n\nSome text.", error: Exception = None):
        self.markdown = markdown
        self.error = error
        self.calls = []

    def extract(self, data: bytes, filename: str, content_type: str) -> str:
        self.calls.append((filename, content_type, len(data)))
        if self.error is not None:
            raise self.error
        return self.markdown


@pytest.fixture()
def primary() -> PrimaryStore:
    return PrimaryStore(InMemoryBackend(), TableNames())


@pytest.fixture()
def s3_backend() -> InMemoryBlobBackend:
    return InMemoryBlobBackend("s3")


@pytest.fixture()
def r2_backend() -> InMemoryBlobBackend:
    return InMemoryBlobBackend("r2")


@pytest.fixture()
def blobs(s3_backend, r2_backend) -> BlobStore:
    return BlobStore(s3=s3_backend, r2=r2_backend)


@pytest.fixture()
def mirror() -> SecondaryMirror:
    return SecondaryMirror.from_url("sqlite://")


@pytest.fixture()
def extractor() -> FakeExtractor:
    return FakeExtractor()


@pytest.fixture()
def clients(primary, blobs) -> Clients:
    return Clients(primary=primary, blobs=blobs)


@pytest.fixture()
def client(clients):
    """FastAPI TestClient wired to the per-test in-memory clients."""
    app.dependency_overrides[get_clients] = lambda: clients
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def document_service(primary) -> DocumentService:
    return DocumentService(primary)


@pytest.fixture()
def resource_service(primary, blobs) -> ResourceService:
    return ResourceService(primary, blobs)


def make_document(name: str = "Report A", owner_id: str = "u1", **overrides) -> dict:
    """Factory for document creation payloads."""
    payload = {"name": name, "ownerID": owner_id, "text": ""}
    payload.update(overrides)
    return payload


def upload_file(
    client,
    document_id: str,
    folder_name: str = "General",
    filename: str = "a.txt",
    data: bytes = b"0123456789",
    content_type: str = "text/plain",
):
    """POST a multipart upload and return the response."""
    return client.post(
        "/resources",
        files={"file": (filename, data, content_type)},
        data={"documentId": document_id, "folderName": folder_name},
    )
