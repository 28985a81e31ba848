"""
Append-only store for evaluated requests.

    from crawlguard.storage import get_backend

    with get_backend("sqlite", db_path="data/crawlguard.db") as backend:
        backend.initialize()
        recent = backend.find_by_site("42", limit=20)
"""

from .base import (
    QueryError,
    SchemaError,
    StorageBackend,
    StorageConnectionError,
    StorageError,
)
from .factory import get_backend, list_available_backends, register_backend

__all__ = [
    "StorageBackend",
    "get_backend",
    "register_backend",
    "list_available_backends",
    "StorageError",
    "StorageConnectionError",
    "QueryError",
    "SchemaError",
]
