"""
In-memory catalog storage.

Keeps every record in process-local dicts. Intended for tests, demos and
single-process development; state is lost on restart. Transactions are
implemented by snapshotting all tables on entry and restoring the snapshot
if the block raises.
"""

from __future__ import annotations

import copy
import itertools
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional

from ..catalog.approval import ApprovalRequest
from ..catalog.changes import ProductChange, ProductChangeCreate, RecentChange
from ..catalog.enums import RequestStatus, RequestType
from ..catalog.favorites import UserFavorite
from ..catalog.lineage import (
    DataLineage,
    DataLineageCreate,
    ProductDependency,
    ProductDependencyCreate,
)
from ..catalog.primitives import utc_now
from ..catalog.product import DataProduct, ProductFilters
from .base import CatalogStorage

_TABLES = (
    "_products",
    "_changes",
    "_approvals",
    "_favorites",
    "_lineage",
    "_dependencies",
)


class InMemoryCatalogStorage(CatalogStorage):
    """Catalog storage backed by Python dicts."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._depth = 0
        self._products: Dict[int, DataProduct] = {}
        self._changes: Dict[int, ProductChange] = {}
        self._approvals: Dict[int, ApprovalRequest] = {}
        self._favorites: Dict[int, UserFavorite] = {}
        self._lineage: Dict[int, DataLineage] = {}
        self._dependencies: Dict[int, ProductDependency] = {}
        # ids are never handed out twice, even across rollbacks and deletes
        self._ids = {name: itertools.count(1) for name in _TABLES}

    def _next_id(self, table: str) -> int:
        return next(self._ids[table])

    @contextmanager
    def transaction(self) -> Iterator["InMemoryCatalogStorage"]:
        with self._lock:
            snapshot = None
            if self._depth == 0:
                snapshot = {name: copy.deepcopy(getattr(self, name)) for name in _TABLES}
            self._depth += 1
            try:
                yield self
            except BaseException:
                if snapshot is not None:
                    for name, table in snapshot.items():
                        setattr(self, name, table)
                raise
            finally:
                self._depth -= 1

    # Products

    def get_product(self, product_id: int) -> Optional[DataProduct]:
        with self._lock:
            product = self._products.get(product_id)
            return product.model_copy(deep=True) if product else None

    def list_products(self, filters: Optional[ProductFilters] = None) -> List[DataProduct]:
        filters = filters or ProductFilters()
        with self._lock:
            products = sorted(
                self._products.values(), key=lambda p: (p.last_updated, p.id)
            )
            return [p.model_copy(deep=True) for p in products if filters.matches(p)]

    def _insert_product(self, values: Dict[str, Any], now: datetime) -> DataProduct:
        product = DataProduct(
            id=self._next_id("_products"),
            created_at=now,
            last_updated=now,
            **values,
        )
        self._products[product.id] = product
        return product.model_copy(deep=True)

    def _write_product(
        self, product_id: int, values: Dict[str, Any], now: datetime
    ) -> Optional[DataProduct]:
        current = self._products.get(product_id)
        if current is None:
            return None
        merged = current.model_dump()
        merged.update(values)
        merged["last_updated"] = now
        product = DataProduct.model_validate(merged)
        self._products[product_id] = product
        return product.model_copy(deep=True)

    def delete_product(self, product_id: int) -> bool:
        with self.transaction():
            if self._products.pop(product_id, None) is None:
                return False
            for table in (self._favorites, self._lineage, self._dependencies):
                for row_id in [k for k, row in table.items() if row.product_id == product_id]:
                    del table[row_id]
            return True

    # Change log

    def record_change(self, change: ProductChangeCreate) -> ProductChange:
        with self._lock:
            values = change.model_dump()
            values["changed_at"] = values.get("changed_at") or utc_now()
            entry = ProductChange(id=self._next_id("_changes"), **values)
            self._changes[entry.id] = entry
            return entry.model_copy()

    @staticmethod
    def _newest_first(changes: List[ProductChange]) -> List[ProductChange]:
        return sorted(changes, key=lambda c: (c.changed_at, c.id), reverse=True)

    def changes_for_product(self, product_id: int) -> List[ProductChange]:
        with self._lock:
            return self._newest_first(
                [c.model_copy() for c in self._changes.values() if c.product_id == product_id]
            )

    def recent_changes(self, limit: int = 50) -> List[RecentChange]:
        with self._lock:
            joined = [
                RecentChange(
                    **change.model_dump(),
                    product_name=self._products[change.product_id].name,
                )
                for change in self._changes.values()
                if change.product_id in self._products
            ]
            return self._newest_first(joined)[:limit]

    # Approval requests

    def create_approval_request(
        self,
        request_type: RequestType,
        requested_by: str,
        proposed_changes: Dict[str, Any],
        product_id: Optional[int] = None,
        current_data: Optional[Dict[str, Any]] = None,
    ) -> ApprovalRequest:
        with self._lock:
            request = ApprovalRequest(
                id=self._next_id("_approvals"),
                product_id=product_id,
                request_type=request_type,
                requested_by=requested_by,
                requested_at=utc_now(),
                status=RequestStatus.PENDING,
                proposed_changes=copy.deepcopy(proposed_changes),
                current_data=copy.deepcopy(current_data),
            )
            self._approvals[request.id] = request
            return request.model_copy(deep=True)

    def get_approval_request(self, request_id: int) -> Optional[ApprovalRequest]:
        with self._lock:
            request = self._approvals.get(request_id)
            return request.model_copy(deep=True) if request else None

    def list_approval_requests(self, status: Optional[str] = None) -> List[ApprovalRequest]:
        with self._lock:
            return [
                r.model_copy(deep=True)
                for r in sorted(self._approvals.values(), key=lambda r: r.id)
                if status is None or r.status.value == status
            ]

    def set_approval_status(
        self,
        request_id: int,
        status: RequestStatus,
        approved_by: Optional[str] = None,
        rejection_reason: Optional[str] = None,
        expected_status: RequestStatus = RequestStatus.PENDING,
    ) -> Optional[ApprovalRequest]:
        with self._lock:
            current = self._approvals.get(request_id)
            if current is None or current.status != expected_status:
                return None

            changes: Dict[str, Any] = {"status": status}
            if approved_by:
                changes["approved_by"] = approved_by
            if rejection_reason:
                changes["rejection_reason"] = rejection_reason
            if status.is_terminal:
                changes["approved_at"] = utc_now()

            updated = current.model_copy(update=changes, deep=True)
            self._approvals[request_id] = updated
            return updated.model_copy(deep=True)

    # Favorites

    def get_favorites(self, user_email: str) -> List[UserFavorite]:
        with self._lock:
            favorites = [f for f in self._favorites.values() if f.user_email == user_email]
            return sorted(favorites, key=lambda f: (f.created_at, f.id), reverse=True)

    def _find_favorite(self, user_email: str, product_id: int) -> Optional[UserFavorite]:
        for favorite in self._favorites.values():
            if favorite.user_email == user_email and favorite.product_id == product_id:
                return favorite
        return None

    def add_favorite(self, user_email: str, product_id: int) -> Optional[UserFavorite]:
        with self._lock:
            if product_id not in self._products:
                return None
            existing = self._find_favorite(user_email, product_id)
            if existing is not None:
                return existing.model_copy()
            favorite = UserFavorite(
                id=self._next_id("_favorites"),
                user_email=user_email,
                product_id=product_id,
                created_at=utc_now(),
            )
            self._favorites[favorite.id] = favorite
            return favorite.model_copy()

    def remove_favorite(self, user_email: str, product_id: int) -> bool:
        with self._lock:
            favorite = self._find_favorite(user_email, product_id)
            if favorite is None:
                return False
            del self._favorites[favorite.id]
            return True

    def is_favorited(self, user_email: str, product_id: int) -> bool:
        with self._lock:
            return self._find_favorite(user_email, product_id) is not None

    # Lineage and dependencies

    def get_lineage(self, product_id: int) -> List[DataLineage]:
        with self._lock:
            return [
                row.model_copy(deep=True)
                for row in self._lineage.values()
                if row.product_id == product_id
            ]

    def add_lineage(self, lineage: DataLineageCreate) -> DataLineage:
        with self._lock:
            row = DataLineage(
                id=self._next_id("_lineage"), created_at=utc_now(), **lineage.model_dump()
            )
            self._lineage[row.id] = row
            return row.model_copy(deep=True)

    def get_dependencies(self, product_id: int) -> List[ProductDependency]:
        with self._lock:
            return [
                row.model_copy()
                for row in self._dependencies.values()
                if row.product_id == product_id
            ]

    def add_dependency(self, dependency: ProductDependencyCreate) -> ProductDependency:
        with self._lock:
            row = ProductDependency(
                id=self._next_id("_dependencies"),
                created_at=utc_now(),
                **dependency.model_dump(),
            )
            self._dependencies[row.id] = row
            return row.model_copy()
