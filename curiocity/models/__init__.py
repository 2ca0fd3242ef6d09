"""SQL mirror models."""

from .document import MirrorDocument
from .resource import MirrorResourceMeta, MirrorResource

__all__ = ["MirrorDocument", "MirrorResourceMeta", "MirrorResource"]
