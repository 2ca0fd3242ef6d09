"""Product analytics events.

Events are written to the ``curiocity.analytics`` logger as structured
records; shipping them to an analytics backend is left to the log pipeline.

Usage in service layer:
    analytics.capture(owner_id, "Document Created", {"document_id": doc.id})
"""

import logging
from typing import Any, Dict, Optional

logger = logging.getLogger("curiocity.analytics")


def capture(distinct_id: Optional[str], event: str, properties: Optional[Dict[str, Any]] = None) -> None:
    """Record an analytics event. Never raises."""
    logger.info(
        event,
        extra={
            "event": event,
            "distinct_id": distinct_id or "anonymous",
            "properties": properties or {},
        },
    )
