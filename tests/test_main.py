from __future__ import annotations

from fastapi.testclient import TestClient

from data_product_catalog.api import app
from data_product_catalog.main import app as main_app
from data_product_catalog.storage import MemoryStorageProvider

client = TestClient(app)


def test_main_exposes_api_app():
    assert main_app is app


def test_healthz():
    response = client.get("/healthz")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_health_without_storage():
    """Before startup no storage backend is wired in."""
    app.state.storage_provider = None
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "storage": None}


def test_health_reports_backend():
    app.state.storage_provider = MemoryStorageProvider()
    try:
        response = client.get("/health")
    finally:
        app.state.storage_provider = None
    assert response.json()["storage"] == "memory"


def test_catalog_without_storage_is_503():
    app.state.storage_provider = None
    response = client.get("/api/data-products")
    assert response.status_code == 503


def test_version():
    response = client.get("/version")
    assert response.status_code == 200
    # The installed distribution decides the value; just check the shape.
    assert isinstance(response.json()["version"], str)


def test_unhandled_error_is_500():
    from data_product_catalog.storage import get_storage

    def broken():
        raise RuntimeError("boom")

    app.dependency_overrides[get_storage] = broken
    try:
        response = TestClient(app, raise_server_exceptions=False).get("/api/stats")
    finally:
        app.dependency_overrides.pop(get_storage, None)

    assert response.status_code == 500
    assert response.json() == {"message": "Internal server error"}
