"""Client handles shared by every request.

Built once in the application lifespan, stored on ``app.state`` and handed
to routes through the ``get_clients`` dependency. Tests override that
dependency with in-memory handles.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from ..blobs import BlobStore, InMemoryBlobBackend, R2BlobBackend, S3BlobBackend
from ..services.extraction import TextExtractor
from ..stores import DynamoDBBackend, InMemoryBackend, PrimaryStore, SecondaryMirror, TableNames
from .config import Settings

logger = logging.getLogger(__name__)


@dataclass
class Clients:
    primary: PrimaryStore
    blobs: BlobStore
    mirror: Optional[SecondaryMirror] = None
    extractor: Optional[TextExtractor] = None
    markdown_max_bytes: int = 350 * 1024


def build_clients(settings: Settings) -> Clients:
    """Construct every store/service client the configuration asks for."""
    tables = TableNames(
        documents=settings.document_table,
        resource_meta=settings.resourcemeta_table,
        resources=settings.resource_table,
    )
    if settings.primary_store_backend == "memory":
        logger.warning("Using the in-memory primary store; data is lost on restart")
        backend = InMemoryBackend()
    else:
        backend = DynamoDBBackend.from_settings(
            settings.dynamodb_region, settings.dynamodb_endpoint_url
        )
    primary = PrimaryStore(backend, tables)

    mirror = None
    if settings.enable_cloudflare_database:
        mirror = SecondaryMirror.from_url(settings.mirror_database_url)
        logger.info("Secondary mirror enabled")

    if settings.blob_store_backend == "memory":
        s3 = InMemoryBlobBackend("s3")
    elif settings.s3_upload_bucket:
        s3 = S3BlobBackend.from_settings(settings.s3_upload_bucket, settings.s3_upload_region)
    else:
        s3 = None
    r2 = None
    if settings.r2_configured:
        r2 = R2BlobBackend.from_credentials(
            account_id=settings.cloudflare_account_id,
            bucket=settings.r2_bucket_name,
            access_key_id=settings.r2_access_key_id,
            secret_access_key=settings.r2_secret_access_key,
            custom_domain=settings.r2_custom_domain,
        )
    if s3 is None and r2 is None:
        logger.warning("No blob backend configured; falling back to in-memory blobs")
        s3 = InMemoryBlobBackend("s3")
    blobs = BlobStore(s3=s3, r2=r2, default_ttl=settings.presign_default_ttl)

    extractor = None
    if settings.disable_parsing:
        logger.info("Text extraction disabled")
    elif not settings.llama_cloud_api_key:
        logger.warning("LLAMA_CLOUD_API_KEY is empty; text extraction disabled")
    else:
        extractor = TextExtractor(
            api_key=settings.llama_cloud_api_key,
            base_url=settings.llama_cloud_api_base,
            timeout=settings.parsing_timeout_seconds,
            poll_interval=settings.parsing_poll_interval,
        )

    return Clients(
        primary=primary,
        blobs=blobs,
        mirror=mirror,
        extractor=extractor,
        markdown_max_bytes=settings.markdown_max_bytes,
    )


def get_clients(request: Request) -> Clients:
    """Dependency for FastAPI routes to get the client handles."""
    return request.app.state.clients
