"""Logging setup for Curiocity.

Production writes one JSON object per line; development can switch to a
plain text layout with ``LOG_FORMAT=text``. Two things are attached to
every handler regardless of layout: the correlation id of the request
being served, and a filter that masks credentials. AWS keys and the
LlamaCloud key travel through boto and httpx error messages, so both the
message and any string ``extra`` values are scrubbed.
"""

import contextvars
import json
import logging
import logging.config
import re
from datetime import datetime, timezone
from typing import Any, Dict, Optional

# Written by RequestContextMiddleware for the duration of one request.
request_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("request_id", default="")

_MASK = "***REDACTED***"

# Whole match is a credential.
_SECRET_PATTERNS = [
    re.compile(r'\b(?:AKIA|ASIA)[A-Z0-9]{16}\b'),            # AWS access key ids
    re.compile(r'\bllx-[a-zA-Z0-9]{20,}\b'),                 # LlamaCloud keys
]

# Group 1 is a label worth keeping; only what follows it is masked.
_LABELLED_SECRET_PATTERNS = [
    re.compile(r'(?i)(bearer\s+)[a-zA-Z0-9._\-]{20,}'),
    re.compile(
        r'(?i)((?:api_key|secret_access_key|secret|password|token|credentials|x-amz-signature)[=:]\s*)[^\s,&\'"]{8,}'
    ),
]

# Attributes every LogRecord carries; anything else came in through ``extra``.
_STANDARD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


def redact(text: str) -> str:
    """Mask anything that looks like a credential."""
    for pattern in _SECRET_PATTERNS:
        text = pattern.sub(_MASK, text)
    for pattern in _LABELLED_SECRET_PATTERNS:
        text = pattern.sub(lambda m: m.group(1) + _MASK, text)
    return text


def _extras(record: logging.LogRecord) -> Dict[str, Any]:
    return {k: v for k, v in vars(record).items() if k not in _STANDARD_ATTRS}


class _SecretFilter(logging.Filter):
    """Scrub the message, string extras and cached exception text."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = redact(record.getMessage())
        record.args = None
        for key, value in _extras(record).items():
            if isinstance(value, str):
                setattr(record, key, redact(value))
        if record.exc_text:
            record.exc_text = redact(record.exc_text)
        return True


class _JsonFormatter(logging.Formatter):
    """Render a record as one JSON line.

    Standard fields come first, then ``request_id`` when a request is in
    flight, then whatever the caller passed in ``extra`` (for example the
    ``table`` and ``id`` of a failed cascade step).
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        correlation_id = request_id_var.get()
        if correlation_id:
            entry["request_id"] = correlation_id
        for key, value in _extras(record).items():
            entry.setdefault(key, value)
        if record.exc_info:
            entry["exception"] = redact(self.formatException(record.exc_info))
        return json.dumps(entry, default=str)


# Third-party loggers that are noisy at INFO (credential discovery, retries, SQL echo).
_QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "botocore", "boto3", "urllib3", "httpx")


def setup_logging(log_level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """Install the root handler.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL (default INFO).
        log_format: ``"json"`` (default) or ``"text"``.
    """
    level = (log_level or "INFO").upper()
    layout = "text" if (log_format or "json").lower() == "text" else "json"

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {"secrets": {"()": _SecretFilter}},
        "formatters": {
            "json": {"()": _JsonFormatter},
            "text": {
                "format": "%(asctime)s %(levelname)-8s %(name)s: %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "stdout": {
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stdout",
                "formatter": layout,
                "filters": ["secrets"],
            },
        },
        "root": {"level": level, "handlers": ["stdout"]},
        "loggers": {name: {"level": "WARNING"} for name in _QUIET_LOGGERS},
    })

    logging.getLogger(__name__).info("Logging configured", extra={"level": level, "format": layout})
