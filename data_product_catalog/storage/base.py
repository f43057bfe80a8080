"""
Catalog storage abstraction.

``CatalogStorage`` is the persistence contract for products, change log,
approval requests, favorites and lineage. Two implementations exist:

- ``SqlCatalogStorage``: SQLAlchemy session against the relational schema
- ``InMemoryCatalogStorage``: process-local dicts, for tests and demos

Product mutations are template methods here so change tracking behaves the
same on every backend; subclasses only provide the raw reads and writes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import datetime
from typing import Any, Dict, List, Optional

import structlog

from ..catalog.approval import ApprovalRequest
from ..catalog.changes import (
    ProductChange,
    ProductChangeCreate,
    RecentChange,
    created_entry,
    diff_entries,
)
from ..catalog.enums import (
    ATTENTION_STATUSES,
    ProductStatus,
    RequestStatus,
    RequestType,
)
from ..catalog.favorites import UserFavorite
from ..catalog.lineage import (
    DataLineage,
    DataLineageCreate,
    ProductDependency,
    ProductDependencyCreate,
)
from ..catalog.primitives import utc_now
from ..catalog.product import (
    CatalogStats,
    DataProduct,
    DataProductCreate,
    DataProductUpdate,
    ProductFilters,
)

logger = structlog.get_logger(__name__)


class CatalogStorage(ABC):
    """Abstract base class for catalog storage."""

    # ------------------------------------------------------------------
    # Unit of work
    # ------------------------------------------------------------------

    @abstractmethod
    def transaction(self) -> AbstractContextManager:
        """Group writes so they commit together or not at all.

        Nested ``transaction()`` blocks join the outermost one. An exception
        escaping any level discards every write made since the outermost
        block was entered.
        """

    def close(self) -> None:
        """Release resources held by this storage handle."""

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    @abstractmethod
    def get_product(self, product_id: int) -> Optional[DataProduct]:
        """Get a product by ID, or None."""

    @abstractmethod
    def list_products(self, filters: Optional[ProductFilters] = None) -> List[DataProduct]:
        """List products matching every active filter dimension."""

    @abstractmethod
    def _insert_product(self, values: Dict[str, Any], now: datetime) -> DataProduct:
        """Persist a new product row with created_at = last_updated = now."""

    @abstractmethod
    def _write_product(
        self, product_id: int, values: Dict[str, Any], now: datetime
    ) -> Optional[DataProduct]:
        """Overwrite the given fields and set last_updated = now."""

    @abstractmethod
    def delete_product(self, product_id: int) -> bool:
        """Hard-delete a product and its favorites, lineage and dependencies.

        Change-log entries and approval requests that reference the product
        are kept. Returns False when the product does not exist.
        """

    def create_product(
        self, product: DataProductCreate, changed_by: str = "system"
    ) -> DataProduct:
        """Create a product and record a ``created`` change entry."""
        with self.transaction():
            created = self._insert_product(product.model_dump(mode="json"), utc_now())
            self.record_change(created_entry(created, changed_by))
        logger.info(
            "Data product created",
            product_id=created.id,
            name=created.name,
            changed_by=changed_by,
        )
        return created

    def update_product(
        self,
        product_id: int,
        update: DataProductUpdate,
        changed_by: str = "system",
    ) -> Optional[DataProduct]:
        """Apply a partial update and record one change entry per changed field."""
        with self.transaction():
            before = self.get_product(product_id)
            if before is None:
                return None

            values = update.changed_values()
            now = utc_now()
            updated = self._write_product(product_id, values, now)
            entries = diff_entries(before, values, changed_by, now)
            for entry in entries:
                self.record_change(entry)

        logger.info(
            "Data product updated",
            product_id=product_id,
            changed_fields=[entry.field_name for entry in entries],
            changed_by=changed_by,
        )
        return updated

    def stats(self) -> CatalogStats:
        products = self.list_products()
        return CatalogStats(
            total_products=len(products),
            active_products=sum(1 for p in products if p.status == ProductStatus.ACTIVE),
            with_contracts=sum(1 for p in products if p.contract_sla),
            needs_attention=sum(1 for p in products if p.status in ATTENTION_STATUSES),
        )

    # ------------------------------------------------------------------
    # Change log
    # ------------------------------------------------------------------

    @abstractmethod
    def record_change(self, change: ProductChangeCreate) -> ProductChange:
        """Append a change entry. Entries are never updated or deleted."""

    @abstractmethod
    def changes_for_product(self, product_id: int) -> List[ProductChange]:
        """Change entries of one product, newest first."""

    @abstractmethod
    def recent_changes(self, limit: int = 50) -> List[RecentChange]:
        """Newest change entries across existing products, with product names."""

    # ------------------------------------------------------------------
    # Approval requests
    # ------------------------------------------------------------------

    @abstractmethod
    def create_approval_request(
        self,
        request_type: RequestType,
        requested_by: str,
        proposed_changes: Dict[str, Any],
        product_id: Optional[int] = None,
        current_data: Optional[Dict[str, Any]] = None,
    ) -> ApprovalRequest:
        """Persist a new request. Status is always pending."""

    @abstractmethod
    def get_approval_request(self, request_id: int) -> Optional[ApprovalRequest]:
        """Get a request by ID, or None."""

    @abstractmethod
    def list_approval_requests(
        self, status: Optional[str] = None
    ) -> List[ApprovalRequest]:
        """List requests, optionally only those with the given status."""

    @abstractmethod
    def set_approval_status(
        self,
        request_id: int,
        status: RequestStatus,
        approved_by: Optional[str] = None,
        rejection_reason: Optional[str] = None,
        expected_status: RequestStatus = RequestStatus.PENDING,
    ) -> Optional[ApprovalRequest]:
        """Compare-and-swap the status of a request.

        Only a request currently in ``expected_status`` is transitioned.
        ``approved_at`` is stamped when moving to approved or rejected.
        Returns None when the request is missing or was not in
        ``expected_status``.
        """

    def pending_approval_requests(self) -> List[ApprovalRequest]:
        return self.list_approval_requests(status=RequestStatus.PENDING.value)

    # ------------------------------------------------------------------
    # Favorites
    # ------------------------------------------------------------------

    @abstractmethod
    def get_favorites(self, user_email: str) -> List[UserFavorite]:
        """Favorites of a user, newest first."""

    @abstractmethod
    def add_favorite(self, user_email: str, product_id: int) -> Optional[UserFavorite]:
        """Favorite a product. Idempotent; None if the product does not exist."""

    @abstractmethod
    def remove_favorite(self, user_email: str, product_id: int) -> bool:
        """Remove a favorite; False when there was none."""

    @abstractmethod
    def is_favorited(self, user_email: str, product_id: int) -> bool:
        """Whether the user has favorited the product."""

    # ------------------------------------------------------------------
    # Lineage and dependencies
    # ------------------------------------------------------------------

    @abstractmethod
    def get_lineage(self, product_id: int) -> List[DataLineage]:
        """Lineage sources of a product."""

    @abstractmethod
    def add_lineage(self, lineage: DataLineageCreate) -> DataLineage:
        """Record a lineage source."""

    @abstractmethod
    def get_dependencies(self, product_id: int) -> List[ProductDependency]:
        """Dependencies of a product."""

    @abstractmethod
    def add_dependency(self, dependency: ProductDependencyCreate) -> ProductDependency:
        """Record a dependency."""
