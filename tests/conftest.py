"""Test configuration and fixtures."""

from typing import Any, Dict, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from data_product_catalog.api import app
from data_product_catalog.catalog.product import DataProductCreate
from data_product_catalog.db import models  # noqa: F401
from data_product_catalog.db.base import Base
from data_product_catalog.storage import (
    CatalogStorage,
    InMemoryCatalogStorage,
    SqlCatalogStorage,
    get_storage,
)


def product_payload(**overrides: Any) -> Dict[str, Any]:
    """A valid camelCase product payload."""
    payload = {
        "name": "Sales Dashboard",
        "description": "Weekly sales by region",
        "type": "dashboard_selfservice",
        "domain": "sales",
        "status": "active",
        "owner": "Ana Rodrigues",
        "ownerInitials": "AR",
        "tags": ["sales", "weekly"],
    }
    payload.update(overrides)
    return payload


def make_product(storage: CatalogStorage, changed_by: str = "system", **overrides: Any):
    """Create a product directly in ``storage``."""
    return storage.create_product(
        DataProductCreate.model_validate(product_payload(**overrides)),
        changed_by=changed_by,
    )


@pytest.fixture
def sql_engine():
    """Fresh in-memory SQLite database with all tables."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def sql_storage(sql_engine) -> Generator[SqlCatalogStorage, None, None]:
    session_factory = sessionmaker(autocommit=False, autoflush=False, bind=sql_engine)
    storage = SqlCatalogStorage(session_factory())
    yield storage
    storage.close()


@pytest.fixture
def memory_storage() -> InMemoryCatalogStorage:
    return InMemoryCatalogStorage()


@pytest.fixture(params=["memory", "sql"])
def storage(request) -> CatalogStorage:
    """Each test using this fixture runs once per storage backend."""
    return request.getfixturevalue(f"{request.param}_storage")


@pytest.fixture
def client(storage) -> Generator[TestClient, None, None]:
    """API client wired to the parametrized storage."""

    def override_get_storage():
        yield storage

    app.dependency_overrides[get_storage] = override_get_storage
    yield TestClient(app)
    app.dependency_overrides.pop(get_storage, None)
