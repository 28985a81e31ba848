"""
Backend lookup by name.

Backends are classes keyed by a short lowercase name; ``sqlite`` is
registered on first lookup.
"""

import logging
from pathlib import Path
from typing import Optional

from .base import StorageBackend, StorageError

logger = logging.getLogger(__name__)

_backends: dict[str, type[StorageBackend]] = {}


def register_backend(backend_type: str, backend_class: type[StorageBackend]) -> None:
    """Make ``backend_class`` available to get_backend() as ``backend_type``."""
    name = backend_type.lower()
    _backends[name] = backend_class
    logger.debug(f"Storage backend '{name}' -> {backend_class.__name__}")


def _registered() -> dict[str, type[StorageBackend]]:
    if "sqlite" not in _backends:
        from .sqlite_backend import SQLiteBackend

        register_backend("sqlite", SQLiteBackend)
    return _backends


def get_backend(backend_type: Optional[str] = None, **kwargs) -> StorageBackend:
    """
    Build a request-log backend.

    With no ``backend_type`` the name comes from settings, and a SQLite
    backend with no keyword arguments uses the settings database path.
    The backend is returned uninitialized.

    Raises:
        StorageError: Unknown name, or the constructor rejected kwargs

    Examples:
        get_backend()
        get_backend("sqlite", db_path="data/crawlguard.db")
    """
    settings = None
    if backend_type is None or not kwargs:
        from ..config.settings import get_settings

        settings = get_settings()

    name = (backend_type or settings.storage_backend).lower()
    backends = _registered()
    if name not in backends:
        raise StorageError(
            f"Unknown storage backend '{name}' "
            f"(registered: {', '.join(sorted(backends))})"
        )

    if name == "sqlite" and not kwargs:
        kwargs["db_path"] = Path(settings.sqlite_db_path)

    try:
        backend = backends[name](**kwargs)
    except (OSError, TypeError, ValueError) as e:
        raise StorageError(f"Failed to create '{name}' backend: {e}") from e

    logger.info(f"Using {name} request log backend")
    return backend


def list_available_backends() -> list[str]:
    return sorted(_registered())
