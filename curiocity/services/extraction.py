"""Text extraction through the LlamaCloud parsing API.

Flow: upload the file, poll the job until it reports SUCCESS (or ERROR, or
the deadline passes), then fetch the result as raw markdown.
"""

import logging
import time
from typing import Any, Optional

import httpx

from ..exceptions import ExtractionError

logger = logging.getLogger(__name__)

# Network errors and 5xx are retried with doubling pauses: 1s, 2s.
MAX_RETRIES = 3
RETRY_BASE_DELAY = 1.0


class TextExtractor:
    """Sync client for the LlamaCloud parsing endpoints.

    Args:
        api_key: LlamaCloud API key, sent as a Bearer token.
        base_url: API root, e.g. ``https://api.cloud.llamaindex.ai``.
        timeout: Overall deadline in seconds for one extraction.
        poll_interval: Seconds between job status checks.
        http_client: Injected client (tests pass one built on ``httpx.MockTransport``).
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.cloud.llamaindex.ai",
        timeout: float = 300.0,
        poll_interval: float = 2.0,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        self.timeout = timeout
        self.poll_interval = poll_interval
        self._client = http_client or httpx.Client(
            base_url=base_url,
            headers={"Authorization": f"Bearer {api_key}", "Accept": "application/json"},
            timeout=30.0,
        )

    def _call(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Send one API call, backing off on network errors and 5xx.

        Anything in the 4xx range is final and raised straight away.
        """
        attempt = 0
        while True:
            attempt += 1
            try:
                resp = self._client.request(method, path, **kwargs)
                if resp.status_code >= 500:
                    resp.raise_for_status()
            except (httpx.TransportError, httpx.HTTPStatusError) as exc:
                if attempt >= MAX_RETRIES:
                    raise
                pause = RETRY_BASE_DELAY * 2 ** (attempt - 1)
                logger.warning(
                    "LlamaCloud %s %s attempt %d of %d failed (%s); next try in %.1fs",
                    method, path, attempt, MAX_RETRIES, exc, pause,
                )
                time.sleep(pause)
                continue
            resp.raise_for_status()
            return resp

    def extract(self, data: bytes, filename: str, content_type: str) -> str:
        """Return the file's text as markdown. Raises ExtractionError on any failure."""
        try:
            upload = self._call(
                "POST",
                "/api/parsing/upload",
                files={"file": (filename, data, content_type)},
            )
            job_id = upload.json()["id"]
            logger.info("Parsing job started", extra={"job_id": job_id, "file_name": filename})

            self._wait_for_job(job_id, filename)

            result = self._call(
                "GET", f"/api/v1/parsing/job/{job_id}/result/raw/markdown"
            )
            return result.json().get("markdown", "")
        except httpx.HTTPError as e:
            raise ExtractionError(f"Parsing request failed: {e}", filename) from e
        except (KeyError, ValueError) as e:
            raise ExtractionError(f"Unexpected parsing response: {e}", filename) from e

    def _wait_for_job(self, job_id: str, filename: str) -> None:
        deadline = time.monotonic() + self.timeout
        while True:
            status = self._call("GET", f"/api/v1/parsing/job/{job_id}").json().get("status")
            if status == "SUCCESS":
                return
            if status == "ERROR":
                raise ExtractionError(f"Parsing job {job_id} failed", filename)
            if time.monotonic() >= deadline:
                raise ExtractionError(f"Parsing job {job_id} timed out after {self.timeout}s", filename)
            time.sleep(self.poll_interval)

    def close(self) -> None:
        self._client.close()
