"""
Tests for the change log: value rendering, field diffs and cross-product
recent changes.
"""

from datetime import datetime, timedelta, timezone

from conftest import make_product

from data_product_catalog.catalog.changes import (
    ProductChangeCreate,
    describe_field_change,
    diff_entries,
    stringify,
    wire_name,
)
from data_product_catalog.catalog.enums import ChangeType, ProductStatus
from data_product_catalog.catalog.product import DataProduct, DataProductUpdate


def _product(**overrides) -> DataProduct:
    now = datetime(2025, 1, 1, tzinfo=timezone.utc)
    values = {
        "id": 7,
        "name": "Churn Model",
        "description": "a",
        "type": "traditional_ai",
        "domain": "customer_service",
        "status": "development",
        "owner": "Lab",
        "owner_initials": "LB",
        "tags": ["ml"],
        "created_at": now,
        "last_updated": now,
    }
    values.update(overrides)
    return DataProduct.model_validate(values)


class TestStringify:
    def test_none_is_empty_string(self):
        assert stringify(None) == ""

    def test_list_is_comma_joined(self):
        assert stringify(["a", "b", "c"]) == "a, b, c"

    def test_dict_is_sorted_json(self):
        assert stringify({"b": 1, "a": 2}) == '{"a": 2, "b": 1}'

    def test_enum_uses_value(self):
        assert stringify(ProductStatus.ACTIVE) == "active"

    def test_scalars(self):
        assert stringify("x") == "x"
        assert stringify(3) == "3"


class TestFieldNames:
    def test_wire_name_is_camel_case(self):
        assert wire_name("owner_initials") == "ownerInitials"
        assert wire_name("description") == "description"

    def test_wire_name_uses_explicit_alias(self):
        assert wire_name("contract_sla") == "contractSLA"

    def test_known_field_description(self):
        assert (
            describe_field_change("description", "a", "b")
            == 'Description changed from "a" to "b"'
        )

    def test_unknown_field_description(self):
        assert describe_field_change("api_endpoint", None, "https://x") == "apiEndpoint changed"


class TestDiffEntries:
    def test_only_changed_fields_produce_entries(self):
        before = _product()
        updates = DataProductUpdate(description="b", owner="Lab").changed_values()
        at = datetime(2025, 2, 1, tzinfo=timezone.utc)

        entries = diff_entries(before, updates, "bob", at)

        assert len(entries) == 1
        entry = entries[0]
        assert entry.product_id == 7
        assert entry.change_type == ChangeType.UPDATED
        assert entry.field_name == "description"
        assert (entry.old_value, entry.new_value) == ("a", "b")
        assert entry.changed_by == "bob"
        assert entry.changed_at == at

    def test_enum_fields_compare_by_value(self):
        before = _product(status="development")
        updates = DataProductUpdate(status=ProductStatus.DEVELOPMENT).changed_values()

        assert diff_entries(before, updates, "bob", datetime.now(timezone.utc)) == []

    def test_unset_fields_are_ignored(self):
        before = _product()
        assert diff_entries(before, {}, "bob", datetime.now(timezone.utc)) == []


class TestRecentChanges:
    def test_joins_product_name_and_orders_newest_first(self, storage):
        older = make_product(storage, name="Older")
        newer = make_product(storage, name="Newer")

        recent = storage.recent_changes()

        assert [c.product_name for c in recent] == ["Newer", "Older"]
        assert recent[0].product_id == newer.id
        assert recent[1].product_id == older.id

    def test_limit_bounds_result(self, storage):
        for i in range(5):
            make_product(storage, name=f"P{i}")

        assert len(storage.recent_changes(limit=3)) == 3

    def test_serializes_with_product_name(self, storage):
        make_product(storage, name="Named")

        body = storage.recent_changes()[0].to_api()
        assert body["productName"] == "Named"
        assert body["changeType"] == "created"
        assert "changedAt" in body

    def test_explicit_changed_at_is_kept(self, storage):
        product = make_product(storage)
        earlier = product.created_at - timedelta(days=3)

        entry = storage.record_change(
            ProductChangeCreate(
                product_id=product.id,
                changed_by="system",
                change_type=ChangeType.STATUS_CHANGED,
                field_name="status",
                old_value="development",
                new_value="active",
                description='Status changed from "development" to "active"',
                changed_at=earlier,
            )
        )

        assert entry.changed_at == earlier
        assert storage.changes_for_product(product.id)[-1].id == entry.id
