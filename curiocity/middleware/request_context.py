"""Per-request correlation id, timing and access log.

The correlation id comes from the caller's ``X-Request-ID`` when it is a
plausible id, otherwise a fresh one is minted. It is echoed back on the
response and attached to every log record emitted while the request runs,
so a cascade failure deep in the primary store can be tied to the HTTP
call that triggered it.
"""

import logging
import re
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from ..core.logging_config import request_id_var

logger = logging.getLogger(__name__)

# Load balancer and liveness probes.
_PROBE_PATHS = frozenset({"/", "/health"})

# Caller-supplied ids end up in every log line; anything else is replaced.
_ACCEPTABLE_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


def _correlation_id(request: Request) -> str:
    supplied = request.headers.get("x-request-id", "")
    if _ACCEPTABLE_ID.match(supplied):
        return supplied
    return uuid.uuid4().hex[:16]


def _log_level(path: str, status_code: int) -> int:
    if status_code >= 500:
        return logging.WARNING
    if path in _PROBE_PATHS:
        return logging.DEBUG
    return logging.INFO


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Sets the correlation id, measures the request and logs it once."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        correlation_id = _correlation_id(request)
        token = request_id_var.set(correlation_id)
        started = time.perf_counter()
        try:
            response = await call_next(request)
            elapsed_ms = round((time.perf_counter() - started) * 1000, 1)

            response.headers["X-Request-ID"] = correlation_id
            response.headers["X-Response-Time"] = f"{elapsed_ms}ms"

            logger.log(
                _log_level(request.url.path, response.status_code),
                "%s %s -> %d",
                request.method,
                request.url.path,
                response.status_code,
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": response.status_code,
                    "duration_ms": elapsed_ms,
                    "client": request.client.host if request.client else None,
                },
            )
            return response
        finally:
            request_id_var.reset(token)
