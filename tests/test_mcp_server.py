"""
Tests for the catalog MCP server tools.

Patches _get_storage in mcp.py to hand every tool the same in-memory store.
"""
from __future__ import annotations

import asyncio
import json
from unittest.mock import patch

import pytest

from conftest import make_product, product_payload

import data_product_catalog.mcp as mcp_module
from data_product_catalog.catalog.lineage import DataLineageCreate
from data_product_catalog.config import Settings
from data_product_catalog.mcp import (
    _get_storage,
    catalog_get_changelog,
    catalog_get_product,
    catalog_list_pending_requests,
    catalog_review_request,
    catalog_search_products,
    catalog_stats,
    catalog_submit_change_request,
)
from data_product_catalog.storage import InMemoryCatalogStorage, MemoryStorageProvider


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def store():
    """Patch _get_storage to return one shared in-memory store."""
    storage = InMemoryCatalogStorage()
    with patch.object(mcp_module, "_get_storage", lambda: storage):
        yield storage


def _call(tool, *args, **kwargs):
    return json.loads(tool(*args, **kwargs))


# ---------------------------------------------------------------------------
# Product tools
# ---------------------------------------------------------------------------


class TestSearchProducts:
    def test_empty_catalog(self):
        result = _call(catalog_search_products)
        assert result == {"success": True, "count": 0, "products": []}

    def test_filters_and_limit(self, store):
        make_product(store, name="Finance Board", domain="finance")
        make_product(store, name="Sales Board", domain="sales")
        make_product(store, name="Sales Model", domain="sales", type="traditional_ai")

        sales = _call(catalog_search_products, domain="sales")
        boards = _call(catalog_search_products, search="board", limit=1)

        assert sales["count"] == 2
        assert {p["name"] for p in sales["products"]} == {"Sales Board", "Sales Model"}
        assert boards["count"] == 2
        assert len(boards["products"]) == 1


class TestGetProduct:
    def test_includes_lineage(self, store):
        product = make_product(store)
        store.add_lineage(
            DataLineageCreate(product_id=product.id, source_type="table", source_name="erp")
        )

        result = _call(catalog_get_product, product.id)

        assert result["success"] is True
        assert result["product"]["id"] == product.id
        assert result["lineage"][0]["sourceName"] == "erp"
        assert result["dependencies"] == []

    def test_unknown_product(self):
        result = _call(catalog_get_product, 999)

        assert result["success"] is False
        assert result["error"]["code"] == "PRODUCT_NOT_FOUND"
        assert "suggestion" in result["error"]


class TestChangelogAndStats:
    def test_changelog(self, store):
        product = make_product(store)

        result = _call(catalog_get_changelog, product.id)

        assert result["count"] == 1
        assert result["changes"][0]["changeType"] == "created"

    def test_stats(self, store):
        make_product(store)
        result = _call(catalog_stats)
        assert result["stats"]["totalProducts"] == 1
        assert result["stats"]["activeProducts"] == 1


# ---------------------------------------------------------------------------
# Approval tools
# ---------------------------------------------------------------------------


class TestSubmitChangeRequest:
    def test_submit_create(self, store):
        result = _call(
            catalog_submit_change_request,
            request_type="create",
            requested_by="agent",
            proposed_changes=product_payload(name="Proposed"),
        )

        assert result["success"] is True
        assert result["request"]["status"] == "pending"
        assert store.list_products() == []

    def test_bad_request_type(self):
        result = _call(
            catalog_submit_change_request, request_type="merge", requested_by="agent"
        )

        assert result["success"] is False
        assert result["error"]["code"] == "VALIDATION_ERROR"
        assert result["error"]["errors"]

    def test_invalid_proposed_changes(self):
        result = _call(
            catalog_submit_change_request,
            request_type="create",
            requested_by="agent",
            proposed_changes={"name": "Missing everything else"},
        )

        assert result["error"]["code"] == "INVALID_PROPOSED_CHANGES"

    def test_update_unknown_product(self):
        result = _call(
            catalog_submit_change_request,
            request_type="update",
            requested_by="agent",
            product_id=42,
            proposed_changes={"description": "x"},
        )

        assert result["error"]["code"] == "INVALID_PRODUCT_REFERENCE"


class TestReviewRequest:
    def _submit_update(self, store):
        product = make_product(store, description="a")
        result = _call(
            catalog_submit_change_request,
            request_type="update",
            requested_by="agent",
            product_id=product.id,
            proposed_changes={"description": "b"},
        )
        return product, result["request"]["id"]

    def test_pending_list(self, store):
        _, request_id = self._submit_update(store)

        result = _call(catalog_list_pending_requests)

        assert result["count"] == 1
        assert result["requests"][0]["id"] == request_id

    def test_approve_applies_change(self, store):
        product, request_id = self._submit_update(store)

        result = _call(catalog_review_request, request_id, "approved", reviewer="lead")

        assert result["request"]["status"] == "approved"
        assert store.get_product(product.id).description == "b"
        assert _call(catalog_list_pending_requests)["count"] == 0

    def test_reject_requires_reason(self, store):
        _, request_id = self._submit_update(store)

        result = _call(catalog_review_request, request_id, "rejected")

        assert result["error"]["code"] == "INVALID_REVIEW"

    def test_second_review_is_refused(self, store):
        _, request_id = self._submit_update(store)
        _call(catalog_review_request, request_id, "rejected", rejection_reason="no")

        result = _call(catalog_review_request, request_id, "approved")

        assert result["error"]["code"] == "REQUEST_ALREADY_RESOLVED"

    def test_unknown_request(self):
        result = _call(catalog_review_request, 999, "approved")
        assert result["error"]["code"] == "REQUEST_NOT_FOUND"


# ---------------------------------------------------------------------------
# Store failures and server wiring
# ---------------------------------------------------------------------------


class _BrokenStorage(InMemoryCatalogStorage):
    """Store whose reads all fail."""

    def _fail(self, *args, **kwargs):
        raise RuntimeError("database unavailable")

    get_product = _fail
    list_products = _fail
    changes_for_product = _fail
    stats = _fail
    pending_approval_requests = _fail
    get_approval_request = _fail


class TestStoreFailures:
    @pytest.fixture(autouse=True)
    def broken(self):
        storage = _BrokenStorage()
        with patch.object(mcp_module, "_get_storage", lambda: storage):
            yield storage

    @pytest.mark.parametrize(
        "tool, args, code",
        [
            (catalog_search_products, (), "SEARCH_ERROR"),
            (catalog_get_product, (1,), "GET_PRODUCT_ERROR"),
            (catalog_get_changelog, (1,), "GET_CHANGELOG_ERROR"),
            (catalog_stats, (), "STATS_ERROR"),
            (catalog_list_pending_requests, (), "LIST_REQUESTS_ERROR"),
            (catalog_review_request, (1, "approved"), "REVIEW_REQUEST_ERROR"),
        ],
    )
    def test_read_errors_become_error_bodies(self, tool, args, code):
        result = _call(tool, *args)

        assert result["success"] is False
        assert result["error"]["code"] == code
        assert result["error"]["message"] == "database unavailable"

    def test_submit_error_becomes_error_body(self):
        result = _call(
            catalog_submit_change_request,
            request_type="update",
            requested_by="agent",
            product_id=1,
            proposed_changes={"description": "x"},
        )

        assert result["error"]["code"] == "SUBMIT_REQUEST_ERROR"


class TestStorageSetup:
    def _configure(self, monkeypatch, backend):
        created = []
        monkeypatch.setattr(mcp_module, "_provider", None)
        monkeypatch.setattr(
            mcp_module, "get_settings", lambda: Settings(storage_backend=backend)
        )
        monkeypatch.setattr(mcp_module, "create_tables", lambda: created.append(True))
        monkeypatch.setattr(
            mcp_module, "build_storage_provider", lambda settings: MemoryStorageProvider()
        )
        return created

    def test_sql_backend_creates_tables_once(self, monkeypatch):
        created = self._configure(monkeypatch, "sql")

        first = _get_storage()
        second = _get_storage()

        assert created == [True]
        assert first is second

    def test_memory_backend_skips_table_creation(self, monkeypatch):
        created = self._configure(monkeypatch, "memory")

        _get_storage()

        assert created == []


def test_server_registers_catalog_tools():
    tools = asyncio.run(mcp_module.server.list_tools())

    assert {tool.name for tool in tools} == {
        "catalog_search_products",
        "catalog_get_product",
        "catalog_get_changelog",
        "catalog_stats",
        "catalog_submit_change_request",
        "catalog_list_pending_requests",
        "catalog_review_request",
    }
