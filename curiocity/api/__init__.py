"""API routes."""

from .documents import router as documents_router
from .resources import router as resources_router
from .storage import router as storage_router

__all__ = [
    "documents_router",
    "resources_router",
    "storage_router",
]
