"""Fan-out over the configured blob backends.

Writes go to S3 and R2 in parallel. The request succeeds when at least one
backend accepts the write; which ones did is reported in the result rather
than raised.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Dict, Optional

from ..exceptions import StorageError
from ..schemas.storage import StorageResult
from .backends import BlobBackend

logger = logging.getLogger(__name__)


class BlobStore:
    """S3 and/or R2. At least one must be configured."""

    def __init__(
        self,
        s3: Optional[BlobBackend] = None,
        r2: Optional[BlobBackend] = None,
        default_ttl: int = 3600,
    ):
        if s3 is None and r2 is None:
            raise ValueError("BlobStore needs at least one backend")
        self.backends: Dict[str, BlobBackend] = {}
        if s3 is not None:
            self.backends["s3"] = s3
        if r2 is not None:
            self.backends["r2"] = r2
        self.default_ttl = default_ttl

    def _fan_out(self, action: str, key: str, call: Callable[[BlobBackend], str]) -> StorageResult:
        results: Dict[str, Optional[str]] = {}
        with ThreadPoolExecutor(max_workers=len(self.backends)) as pool:
            futures = {pool.submit(call, backend): name for name, backend in self.backends.items()}
            for future in as_completed(futures):
                name = futures[future]
                try:
                    results[name] = future.result()
                except Exception as e:
                    logger.warning(
                        "Blob %s failed on %s", action, name,
                        extra={"backend": name, "key": key, "error": str(e)},
                    )
                    results[name] = None

        # Prefer the S3 URL when both succeeded.
        url = results.get("s3") or results.get("r2")
        if url is None:
            raise StorageError(f"Blob {action} failed on every backend for {key}")

        return StorageResult(
            url=url,
            s3_success=(results["s3"] is not None) if "s3" in results else None,
            r2_success=(results["r2"] is not None) if "r2" in results else None,
        )

    def put(self, key: str, data: bytes, content_type: str) -> StorageResult:
        return self._fan_out("upload", key, lambda backend: backend.put(key, data, content_type))

    def presign(self, key: str, operation: str = "get", expires_in: Optional[int] = None) -> StorageResult:
        ttl = expires_in or self.default_ttl
        return self._fan_out("presign", key, lambda backend: backend.presign(key, operation, ttl))

    def get(self, key: str) -> Optional[bytes]:
        """First backend holding the key wins."""
        for name, backend in self.backends.items():
            try:
                data = backend.get(key)
            except StorageError as e:
                logger.warning("Blob read failed on %s: %s", name, e.message)
                continue
            if data is not None:
                return data
        return None

    def delete(self, key: str) -> None:
        """Delete from every backend; raises only if all of them fail."""
        failures = 0
        for name, backend in self.backends.items():
            try:
                backend.delete(key)
            except StorageError as e:
                logger.warning("Blob delete failed on %s: %s", name, e.message)
                failures += 1
        if failures == len(self.backends):
            raise StorageError(f"Blob delete failed on every backend for {key}")
