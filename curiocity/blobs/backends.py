"""Blob backends: S3, Cloudflare R2 (S3-compatible) and in-memory."""

import threading
from abc import ABC, abstractmethod
from typing import Dict, Optional
from urllib.parse import quote

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from ..exceptions import StorageError

_MISSING_KEY_CODES = frozenset({"NoSuchKey", "404", "NotFound"})


class BlobBackend(ABC):
    """put/get/delete by key plus presigned URLs for direct client transfer."""

    @abstractmethod
    def put(self, key: str, data: bytes, content_type: str) -> str:
        """Store ``data`` under ``key`` and return its URL."""

    @abstractmethod
    def get(self, key: str) -> Optional[bytes]:
        """Return the bytes, or None when the key is absent."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Delete ``key``. Deleting a missing key is not an error."""

    @abstractmethod
    def presign(self, key: str, operation: str, expires_in: int) -> str:
        """Time-limited URL for ``operation`` ("get" or "put") on ``key``."""


class S3BlobBackend(BlobBackend):
    """AWS S3 bucket accessed through a boto3 ``s3`` client."""

    def __init__(self, client, bucket: str, region: str):
        self._client = client
        self.bucket = bucket
        self.region = region

    @classmethod
    def from_settings(cls, bucket: str, region: str) -> "S3BlobBackend":
        client = boto3.client(
            "s3",
            region_name=region,
            config=Config(retries={"max_attempts": 3, "mode": "standard"}),
        )
        return cls(client, bucket, region)

    def url_for(self, key: str) -> str:
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{quote(key)}"

    def put(self, key: str, data: bytes, content_type: str) -> str:
        try:
            self._client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Failed to upload {key} to {self.bucket}", e) from e
        return self.url_for(key)

    def get(self, key: str) -> Optional[bytes]:
        try:
            resp = self._client.get_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in _MISSING_KEY_CODES:
                return None
            raise StorageError(f"Failed to read {key} from {self.bucket}", e) from e
        except BotoCoreError as e:
            raise StorageError(f"Failed to read {key} from {self.bucket}", e) from e
        return resp["Body"].read()

    def delete(self, key: str) -> None:
        try:
            self._client.delete_object(Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Failed to delete {key} from {self.bucket}", e) from e

    def presign(self, key: str, operation: str, expires_in: int) -> str:
        method = "put_object" if operation == "put" else "get_object"
        try:
            return self._client.generate_presigned_url(
                method,
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=expires_in,
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Failed to presign {key}", e) from e


class R2BlobBackend(S3BlobBackend):
    """Cloudflare R2 through its S3-compatible endpoint.

    Objects are served publicly from ``custom_domain``, so ``put`` returns
    that URL rather than the API endpoint.
    """

    def __init__(self, client, bucket: str, custom_domain: str):
        super().__init__(client, bucket, region="auto")
        self.custom_domain = custom_domain

    @classmethod
    def from_credentials(
        cls,
        account_id: str,
        bucket: str,
        access_key_id: str,
        secret_access_key: str,
        custom_domain: str,
    ) -> "R2BlobBackend":
        client = boto3.client(
            "s3",
            endpoint_url=f"https://{account_id}.r2.cloudflarestorage.com",
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
            region_name="auto",
            config=Config(retries={"max_attempts": 3, "mode": "standard"}),
        )
        return cls(client, bucket, custom_domain)

    def url_for(self, key: str) -> str:
        return f"https://{self.custom_domain}/{quote(key)}"


class InMemoryBlobBackend(BlobBackend):
    """Process-local blobs for development and tests."""

    def __init__(self, name: str = "memory"):
        self.name = name
        self._blobs: Dict[str, bytes] = {}
        self._lock = threading.Lock()

    def put(self, key: str, data: bytes, content_type: str) -> str:
        with self._lock:
            self._blobs[key] = bytes(data)
        return f"memory://{self.name}/{quote(key)}"

    def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            return self._blobs.get(key)

    def delete(self, key: str) -> None:
        with self._lock:
            self._blobs.pop(key, None)

    def presign(self, key: str, operation: str, expires_in: int) -> str:
        return f"memory://{self.name}/{quote(key)}?op={operation}&expires={expires_in}"
