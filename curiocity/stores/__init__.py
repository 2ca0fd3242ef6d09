"""Primary key-value store."""

from .base import ConditionFailed, KeyValueBackend, Table, TableNames
from .dynamodb import DynamoDBBackend
from .memory import InMemoryBackend
from .mirror import MirrorResult, SecondaryMirror
from .primary import PrimaryStore

__all__ = [
    "ConditionFailed", "KeyValueBackend", "Table", "TableNames",
    "DynamoDBBackend", "InMemoryBackend", "PrimaryStore",
    "MirrorResult", "SecondaryMirror",
]
