"""
DataProduct schemas.

A DataProduct is a cataloged entity: a dashboard, API, model or agent that
some team owns and other teams consume. ``DataProductCreate`` is the full
payload accepted on creation, ``DataProductUpdate`` the partial payload
accepted on update, and ``DataProduct`` the stored record.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import ConfigDict, Field, constr, model_validator

from .enums import ProductDomain, ProductStatus, ProductType
from .primitives import CatalogModel

# Fields that may be omitted on update but never explicitly nulled
REQUIRED_PRODUCT_FIELDS = frozenset(
    {
        "name",
        "description",
        "type",
        "domain",
        "status",
        "owner",
        "owner_initials",
        "tags",
        "upstream_sources",
        "downstream_targets",
    }
)


class DataProductFields(CatalogModel):
    """Optional descriptive extensions shared by every product schema."""

    contract_sla: Optional[str] = Field(None, alias="contractSLA")
    technical_contact: Optional[str] = None
    business_contact: Optional[str] = None
    data_source: Optional[str] = None
    update_frequency: Optional[str] = Field(
        None, description="real-time, daily, weekly, monthly"
    )
    api_endpoint: Optional[str] = None
    documentation_url: Optional[str] = None
    documentation_content: Optional[str] = Field(None, description="Markdown body")
    model_type: Optional[str] = Field(
        None, description="For AI products: LLM, traditional ML, recommendation engine"
    )
    confidence_level: Optional[str] = None
    compliance_level: Optional[str] = Field(None, description="LGPD, SOX, PCI, ...")
    metadata: Optional[Dict[str, Any]] = None
    quality_metrics: Optional[Dict[str, Any]] = None


class DataProductCreate(DataProductFields):
    """Schema for creating a new DataProduct."""

    model_config = ConfigDict(extra="forbid")

    name: constr(min_length=1, max_length=256)
    description: str = ""
    type: ProductType
    domain: ProductDomain
    status: ProductStatus
    owner: constr(min_length=1, max_length=256)
    owner_initials: constr(min_length=1, max_length=3)
    tags: List[str] = Field(default_factory=list)
    upstream_sources: List[str] = Field(default_factory=list)
    downstream_targets: List[str] = Field(default_factory=list)


class DataProductUpdate(DataProductFields):
    """Schema for a partial update. Only fields that are sent are applied."""

    model_config = ConfigDict(extra="forbid")

    name: Optional[constr(min_length=1, max_length=256)] = None
    description: Optional[str] = None
    type: Optional[ProductType] = None
    domain: Optional[ProductDomain] = None
    status: Optional[ProductStatus] = None
    owner: Optional[constr(min_length=1, max_length=256)] = None
    owner_initials: Optional[constr(min_length=1, max_length=3)] = None
    tags: Optional[List[str]] = None
    upstream_sources: Optional[List[str]] = None
    downstream_targets: Optional[List[str]] = None

    @model_validator(mode="after")
    def reject_null_required_fields(self) -> "DataProductUpdate":
        nulled = sorted(
            name
            for name in self.model_fields_set & REQUIRED_PRODUCT_FIELDS
            if getattr(self, name) is None
        )
        if nulled:
            raise ValueError(f"Fields cannot be null: {', '.join(nulled)}")
        return self

    def changed_values(self) -> Dict[str, Any]:
        """Return only the fields the caller sent, JSON-ready and snake_case."""
        return self.model_dump(mode="json", exclude_unset=True)


class DataProduct(DataProductFields):
    """A stored DataProduct."""

    id: int
    name: str
    description: str = ""
    type: ProductType
    domain: ProductDomain
    status: ProductStatus
    owner: str
    owner_initials: str
    tags: List[str] = Field(default_factory=list)
    upstream_sources: List[str] = Field(default_factory=list)
    downstream_targets: List[str] = Field(default_factory=list)
    created_at: datetime
    last_updated: datetime


class ProductFilters(CatalogModel):
    """List filters. Blank values and ``"all"`` mean no filtering."""

    search: Optional[str] = None
    type: Optional[str] = None
    domain: Optional[str] = None
    status: Optional[str] = None

    @staticmethod
    def _active(value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        if not value or value == "all":
            return None
        return value

    @property
    def search_term(self) -> Optional[str]:
        term = self._active(self.search)
        return term.lower() if term else None

    @property
    def exact_filters(self) -> Dict[str, str]:
        """Dimension -> required value, for the dimensions that are active."""
        filters = {}
        for name in ("type", "domain", "status"):
            value = self._active(getattr(self, name))
            if value:
                filters[name] = value
        return filters

    def matches_search(self, product: DataProduct) -> bool:
        term = self.search_term
        if term is None:
            return True
        return (
            term in product.name.lower()
            or term in product.description.lower()
            or any(term in tag.lower() for tag in product.tags)
            or term in product.owner.lower()
        )

    def matches(self, product: DataProduct) -> bool:
        for name, value in self.exact_filters.items():
            if getattr(product, name).value != value:
                return False
        return self.matches_search(product)


class CatalogStats(CatalogModel):
    """Aggregate counts shown on the catalog landing page."""

    total_products: int
    active_products: int
    with_contracts: int
    needs_attention: int
