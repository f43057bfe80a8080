"""Tests for database URL handling and storage provider wiring."""

import asyncio

import pytest
from sqlalchemy.engine.url import make_url

from data_product_catalog.config import Settings
from data_product_catalog.db.base import (
    create_tables,
    get_database_url,
    get_session_local,
    init_database,
)
from data_product_catalog.storage import (
    MemoryStorageProvider,
    SqlCatalogStorage,
    SqlStorageProvider,
    build_storage_provider,
)

from conftest import make_product


@pytest.mark.parametrize(
    "raw, driver, database, password",
    [
        ("postgresql+asyncpg://u:secret@db/catalog", "postgresql+psycopg", "catalog", "secret"),
        ("postgresql+psycopg://u:secret@db/catalog", "postgresql+psycopg", "catalog", "secret"),
        ("sqlite+aiosqlite:///./catalog.db", "sqlite", "./catalog.db", None),
        ("sqlite:///:memory:", "sqlite", ":memory:", None),
    ],
)
def test_database_url_uses_sync_driver(raw, driver, database, password):
    url = make_url(get_database_url(raw))

    assert url.drivername == driver
    assert url.database == database
    assert url.password == password


def test_memory_provider_shares_one_store():
    provider = build_storage_provider(Settings(storage_backend="memory"))

    assert isinstance(provider, MemoryStorageProvider)
    assert provider.backend == "memory"
    assert provider.open() is provider.open()


def test_sql_provider_opens_fresh_sessions(sql_engine):
    provider = SqlStorageProvider(get_session_local(sql_engine))
    first = provider.open()
    second = provider.open()
    try:
        assert isinstance(first, SqlCatalogStorage)
        assert first.db is not second.db

        product = make_product(first)
        assert second.get_product(product.id).name == product.name
    finally:
        first.close()
        second.close()


def test_init_database_creates_tables(sql_engine):
    asyncio.run(init_database(sql_engine))

    storage = SqlStorageProvider(get_session_local(sql_engine)).open()
    try:
        assert storage.list_products() == []
    finally:
        storage.close()


def test_create_tables_is_idempotent(sql_engine):
    create_tables(sql_engine)
    create_tables(sql_engine)

    storage = SqlStorageProvider(get_session_local(sql_engine)).open()
    try:
        assert storage.stats().total_products == 0
    finally:
        storage.close()
