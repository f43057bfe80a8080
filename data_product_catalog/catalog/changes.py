"""
Product change log.

Change entries are an append-only ledger per product. Creating a product
writes one ``created`` entry; updating writes one ``updated`` entry per field
whose value actually changed. Values are stored as display text.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic.alias_generators import to_camel

from .enums import ChangeType
from .primitives import CatalogModel
from .product import DataProduct, DataProductUpdate

FIELD_DISPLAY_NAMES: Dict[str, str] = {
    "name": "Name",
    "description": "Description",
    "type": "Type",
    "domain": "Domain",
    "status": "Status",
    "owner": "Owner",
    "tags": "Tags",
    "contract_sla": "Contract SLA",
    "technical_contact": "Technical contact",
    "business_contact": "Business contact",
    "update_frequency": "Update frequency",
    "documentation_content": "Documentation",
}


class ProductChangeCreate(CatalogModel):
    """Schema for appending a change-log entry."""

    product_id: int
    changed_by: str
    change_type: ChangeType
    field_name: Optional[str] = None
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    description: Optional[str] = None
    changed_at: Optional[datetime] = None


class ProductChange(CatalogModel):
    """A stored change-log entry."""

    id: int
    product_id: int
    changed_by: str
    change_type: ChangeType
    field_name: Optional[str] = None
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    description: Optional[str] = None
    changed_at: datetime


class RecentChange(ProductChange):
    """Change-log entry joined with the name of its product."""

    product_name: str


def stringify(value: Any) -> str:
    """Render a field value the way the change log stores it."""
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return ", ".join(str(item) for item in value)
    if isinstance(value, dict):
        return json.dumps(value, sort_keys=True, default=str)
    if hasattr(value, "value"):
        return str(value.value)
    return str(value)


def describe_field_change(field: str, old_value: Any, new_value: Any) -> str:
    display = FIELD_DISPLAY_NAMES.get(field)
    if display is None:
        return f"{wire_name(field)} changed"
    return f'{display} changed from "{stringify(old_value)}" to "{stringify(new_value)}"'


def wire_name(field: str) -> str:
    """API (camelCase) name of a product field."""
    info = DataProductUpdate.model_fields.get(field)
    if info is not None and info.alias:
        return info.alias
    return to_camel(field)


def created_entry(product: DataProduct, changed_by: str) -> ProductChangeCreate:
    return ProductChangeCreate(
        product_id=product.id,
        changed_by=changed_by,
        change_type=ChangeType.CREATED,
        description=f'Product "{product.name}" was created',
        changed_at=product.created_at,
    )


def diff_entries(
    before: DataProduct,
    updates: Dict[str, Any],
    changed_by: str,
    changed_at: datetime,
) -> List[ProductChangeCreate]:
    """One ``updated`` entry per field in ``updates`` that differs from ``before``.

    ``updates`` holds JSON-ready values keyed by snake_case field name, as
    produced by ``DataProductUpdate.changed_values()``.
    """
    previous = before.model_dump(mode="json")
    entries = []
    for field, new_value in updates.items():
        old_value = previous.get(field)
        if old_value == new_value:
            continue
        entries.append(
            ProductChangeCreate(
                product_id=before.id,
                changed_by=changed_by,
                change_type=ChangeType.UPDATED,
                field_name=wire_name(field),
                old_value=stringify(old_value),
                new_value=stringify(new_value),
                description=describe_field_change(field, old_value, new_value),
                changed_at=changed_at,
            )
        )
    return entries
