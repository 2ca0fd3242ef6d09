"""Curiocity API application and its startup sequence."""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from .api import documents_router, resources_router, storage_router
from .core.clients import Clients, build_clients, get_clients
from .core.config import settings, ConfigurationError, Environment
from .core.logging_config import setup_logging
from .middleware.exception_handler import curiocity_exception_handler, request_validation_handler
from .middleware.request_context import RequestContextMiddleware
from .exceptions import CuriocityException
from .services import DocumentService

setup_logging(log_level=settings.log_level, log_format=settings.log_format)
logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


def _check_configuration() -> None:
    """Refuse to start a misconfigured production deployment.

    Development only gets the list of problems as warnings.
    """
    try:
        problems = settings.validate_production_config()
    except ConfigurationError as e:
        logger.critical("Refusing to start: %s", e)
        raise SystemExit(1) from e

    if settings.environment == Environment.DEVELOPMENT:
        for problem in problems:
            logger.warning("Configuration problem: %s", problem)


def _finish_interrupted_deletes(clients: Clients) -> None:
    # A crash between the resource cascade and the document delete leaves
    # the document marked pendingDelete; finish those before serving.
    try:
        resumed = DocumentService(clients.primary, clients.mirror).resume_pending_deletes()
    except Exception as e:
        logger.warning("Could not resume pending deletes: %s", e)
        return
    if resumed:
        logger.info("Finished %d interrupted document delete(s)", resumed)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting Curiocity API in %s mode", settings.environment.value)
    _check_configuration()

    clients = build_clients(settings)
    app.state.clients = clients
    _finish_interrupted_deletes(clients)

    logger.info(
        "Ready | primary=%s | mirror=%s | blobs=%s | parsing=%s",
        settings.primary_store_backend,
        "on" if clients.mirror else "off",
        ",".join(clients.blobs.backends) or "none",
        "on" if clients.extractor else "off",
    )

    yield

    if clients.extractor is not None:
        clients.extractor.close()


app = FastAPI(
    title="Curiocity API",
    description=(
        "REST API for Curiocity documents: folders, tags, uploaded resources "
        "with extracted text, and blob storage. DynamoDB is the primary store; "
        "an optional SQL mirror receives a copy of every write."
    ),
    version=API_VERSION,
    lifespan=lifespan,
)

# Added last so it runs first: the correlation id is set before CORS answers preflights.
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
)
app.add_middleware(RequestContextMiddleware)

app.add_exception_handler(CuriocityException, curiocity_exception_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)

for router in (documents_router, resources_router, storage_router):
    app.include_router(router)


@app.get("/")
def root():
    return {"name": "Curiocity API", "version": API_VERSION, "status": "running"}


_started_at = time.monotonic()


@app.get("/health")
def health_check(clients: Clients = Depends(get_clients)):
    """Report primary store and mirror reachability.

    Always answers 200; a failing store shows up as ``degraded`` so probes
    keep getting a body they can read.
    """
    try:
        primary_status = "ok" if clients.primary.ping() else "error"
    except Exception:
        primary_status = "error"

    if clients.mirror is None:
        mirror_status = "disabled"
    else:
        mirror_status = "ok" if clients.mirror.ping() else "error"

    healthy = primary_status == "ok" and mirror_status != "error"
    return {
        "status": "healthy" if healthy else "degraded",
        "primary": primary_status,
        "mirror": mirror_status,
        "uptime_seconds": round(time.monotonic() - _started_at),
        "version": API_VERSION,
    }
