"""
Catalog storage backends and their wiring into the app.

The backend is picked once at startup from ``STORAGE_BACKEND`` and kept on
``app.state.storage_provider``. Each request opens its own storage handle
through the ``get_storage`` dependency and closes it afterwards.
"""

from typing import Iterator, Optional

from fastapi import HTTPException, Request
from sqlalchemy.orm import sessionmaker

from ..config import Settings, get_settings
from .base import CatalogStorage
from .memory import InMemoryCatalogStorage
from .sql import SqlCatalogStorage


class StorageProvider:
    """Hands out storage handles, one per unit of work."""

    backend = "unknown"

    def open(self) -> CatalogStorage:
        raise NotImplementedError


class SqlStorageProvider(StorageProvider):
    """A fresh session-backed store per call."""

    backend = "sql"

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def open(self) -> CatalogStorage:
        return SqlCatalogStorage(self.session_factory())


class MemoryStorageProvider(StorageProvider):
    """The same process-wide in-memory store on every call."""

    backend = "memory"

    def __init__(self, storage: Optional[InMemoryCatalogStorage] = None):
        self.storage = storage or InMemoryCatalogStorage()

    def open(self) -> CatalogStorage:
        return self.storage


def build_storage_provider(settings: Optional[Settings] = None) -> StorageProvider:
    """Create the provider selected by ``settings.storage_backend``."""
    settings = settings or get_settings()
    if settings.storage_backend == "memory":
        return MemoryStorageProvider()

    from ..db.base import get_session_local

    return SqlStorageProvider(get_session_local())


def get_storage(request: Request) -> Iterator[CatalogStorage]:
    """FastAPI dependency yielding a storage handle for the current request."""
    provider: Optional[StorageProvider] = getattr(
        request.app.state, "storage_provider", None
    )
    if provider is None:
        raise HTTPException(status_code=503, detail="Storage not initialized")

    storage = provider.open()
    try:
        yield storage
    finally:
        storage.close()


__all__ = [
    "CatalogStorage",
    "InMemoryCatalogStorage",
    "SqlCatalogStorage",
    "StorageProvider",
    "SqlStorageProvider",
    "MemoryStorageProvider",
    "build_storage_provider",
    "get_storage",
]
