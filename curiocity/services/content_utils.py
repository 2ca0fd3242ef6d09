"""Content processing utilities - deep helper module."""

import hashlib
import os
from datetime import datetime, timezone
from typing import Optional

TRUNCATION_MARKER = "..."

PARSING_DISABLED_MARKDOWN = "Disabled Processing"
"""Stored as a Resource's markdown when text extraction is switched off."""

NO_TEXT_MARKDOWN = "No Text for this type of File"
"""Stored for file types the extractor cannot read (images)."""

UNPARSEABLE_CONTENT_TYPES = frozenset({
    "image/png",
    "image/jpeg",
    "image/gif",
    "image/webp",
    "image/svg+xml",
})

_FILE_TYPES_BY_EXTENSION = {
    ".pdf": "PDF",
    ".doc": "Word",
    ".docx": "Word",
    ".xls": "Excel",
    ".xlsx": "Excel",
    ".ppt": "PowerPoint",
    ".pptx": "PowerPoint",
    ".csv": "CSV",
    ".htm": "HTML",
    ".html": "HTML",
    ".png": "PNG",
    ".jpg": "JPG",
    ".jpeg": "JPG",
    ".gif": "GIF",
}


def now_iso() -> str:
    """Current UTC time as ISO-8601 with millisecond precision and a ``Z`` suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def later_of(candidate: str, previous: Optional[str]) -> str:
    """
    Return whichever timestamp is later.

    Touches use this so ``lastOpened`` never moves backwards, even when the
    stored value came from a client clock running ahead of ours. Both values
    are same-format ISO-8601 UTC strings, so string comparison is ordering.
    """
    if previous and previous > candidate:
        return previous
    return candidate


def content_hash(data: bytes) -> str:
    """Lowercase hex MD5 of the raw bytes; the dedup key for Resources."""
    return hashlib.md5(data).hexdigest()


def infer_file_type(filename: str) -> str:
    """Map a file name (or link) to the display file type."""
    if filename.lower().startswith("http"):
        return "Link"
    _, ext = os.path.splitext(filename.lower())
    return _FILE_TYPES_BY_EXTENSION.get(ext, "Other")


def truncate_markdown(markdown: str, max_bytes: int) -> str:
    """
    Cap extracted text at ``max_bytes`` of UTF-8.

    Text over the ceiling is cut at the ceiling (never inside a multi-byte
    character) and gets ``...`` appended.

    Args:
        markdown: Extracted text
        max_bytes: Size ceiling in bytes

    Returns:
        The text unchanged, or the truncated text with the marker
    """
    encoded = markdown.encode("utf-8")
    if len(encoded) <= max_bytes:
        return markdown
    return encoded[:max_bytes].decode("utf-8", errors="ignore") + TRUNCATION_MARKER


def blob_key(hash_: str) -> str:
    """Object key for content with this hash.

    Keys are content-addressed, so a second upload under the same file name
    never replaces bytes an existing Resource row points at.
    """
    return f"resources/{hash_}"
