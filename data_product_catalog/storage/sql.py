"""
Relational catalog storage.

Wraps a SQLAlchemy session. Writes are flushed inside ``transaction()`` and
committed once, when the outermost transaction block exits cleanly.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional

from sqlalchemy import and_, case, delete, desc, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..catalog.approval import ApprovalRequest
from ..catalog.changes import ProductChange, ProductChangeCreate, RecentChange
from ..catalog.enums import ProductStatus, RequestStatus, RequestType
from ..catalog.favorites import UserFavorite
from ..catalog.lineage import (
    DataLineage,
    DataLineageCreate,
    ProductDependency,
    ProductDependencyCreate,
)
from ..catalog.primitives import utc_now
from ..catalog.product import CatalogStats, DataProduct, ProductFilters
from ..db.models import (
    ApprovalRequestModel,
    DataLineageModel,
    DataProductModel,
    ProductChangeModel,
    ProductDependencyModel,
    UserFavoriteModel,
)
from .base import CatalogStorage

# Product field name -> ORM attribute, where they differ
_PRODUCT_ATTRS = {"metadata": "product_metadata"}


class SqlCatalogStorage(CatalogStorage):
    """Catalog storage backed by a SQLAlchemy session."""

    def __init__(self, db: Session):
        self.db = db
        self._depth = 0

    @contextmanager
    def transaction(self) -> Iterator["SqlCatalogStorage"]:
        self._depth += 1
        try:
            yield self
            self.db.flush()
        except BaseException:
            self._depth -= 1
            if self._depth == 0:
                self.db.rollback()
            raise
        else:
            self._depth -= 1
            if self._depth == 0:
                self.db.commit()

    def close(self) -> None:
        self.db.close()

    # Products

    def _product_row(self, product_id: int) -> Optional[DataProductModel]:
        return self.db.get(DataProductModel, product_id)

    def get_product(self, product_id: int) -> Optional[DataProduct]:
        row = self._product_row(product_id)
        return DataProduct.model_validate(row.to_dict()) if row else None

    def list_products(self, filters: Optional[ProductFilters] = None) -> List[DataProduct]:
        filters = filters or ProductFilters()
        query = select(DataProductModel)
        for name, value in filters.exact_filters.items():
            query = query.where(getattr(DataProductModel, name) == value)
        query = query.order_by(DataProductModel.last_updated, DataProductModel.id)

        products = [
            DataProduct.model_validate(row.to_dict())
            for row in self.db.scalars(query)
        ]
        # Tags live in a JSON column, so free-text search runs in Python
        return [p for p in products if filters.matches_search(p)]

    def _insert_product(self, values: Dict[str, Any], now: datetime) -> DataProduct:
        row = DataProductModel(created_at=now, last_updated=now)
        for field, value in values.items():
            setattr(row, _PRODUCT_ATTRS.get(field, field), value)
        self.db.add(row)
        self.db.flush()
        return DataProduct.model_validate(row.to_dict())

    def _write_product(
        self, product_id: int, values: Dict[str, Any], now: datetime
    ) -> Optional[DataProduct]:
        row = self._product_row(product_id)
        if row is None:
            return None
        for field, value in values.items():
            setattr(row, _PRODUCT_ATTRS.get(field, field), value)
        row.last_updated = now
        self.db.flush()
        return DataProduct.model_validate(row.to_dict())

    def delete_product(self, product_id: int) -> bool:
        with self.transaction():
            row = self._product_row(product_id)
            if row is None:
                return False
            for model in (UserFavoriteModel, DataLineageModel, ProductDependencyModel):
                self.db.execute(delete(model).where(model.product_id == product_id))
            self.db.delete(row)
            return True

    def stats(self) -> CatalogStats:
        has_contract = and_(
            DataProductModel.contract_sla.isnot(None),
            DataProductModel.contract_sla != "",
        )
        needs_attention = DataProductModel.status.in_(
            [ProductStatus.DEPRECATED.value, ProductStatus.DEVELOPMENT.value]
        )
        row = self.db.execute(
            select(
                func.count(DataProductModel.id),
                func.sum(case((DataProductModel.status == ProductStatus.ACTIVE.value, 1), else_=0)),
                func.sum(case((has_contract, 1), else_=0)),
                func.sum(case((needs_attention, 1), else_=0)),
            )
        ).one()
        total, active, with_contracts, attention = row
        return CatalogStats(
            total_products=total or 0,
            active_products=active or 0,
            with_contracts=with_contracts or 0,
            needs_attention=attention or 0,
        )

    # Change log

    def record_change(self, change: ProductChangeCreate) -> ProductChange:
        with self.transaction():
            values = change.model_dump(mode="json", exclude={"changed_at"})
            row = ProductChangeModel(**values, changed_at=change.changed_at or utc_now())
            self.db.add(row)
            self.db.flush()
            return ProductChange.model_validate(row.to_dict())

    def changes_for_product(self, product_id: int) -> List[ProductChange]:
        rows = self.db.scalars(
            select(ProductChangeModel)
            .where(ProductChangeModel.product_id == product_id)
            .order_by(desc(ProductChangeModel.changed_at), desc(ProductChangeModel.id))
        )
        return [ProductChange.model_validate(row.to_dict()) for row in rows]

    def recent_changes(self, limit: int = 50) -> List[RecentChange]:
        rows = self.db.execute(
            select(ProductChangeModel, DataProductModel.name)
            .join(DataProductModel, ProductChangeModel.product_id == DataProductModel.id)
            .order_by(desc(ProductChangeModel.changed_at), desc(ProductChangeModel.id))
            .limit(limit)
        )
        return [
            RecentChange.model_validate({**change.to_dict(), "product_name": name})
            for change, name in rows
        ]

    # Approval requests

    def create_approval_request(
        self,
        request_type: RequestType,
        requested_by: str,
        proposed_changes: Dict[str, Any],
        product_id: Optional[int] = None,
        current_data: Optional[Dict[str, Any]] = None,
    ) -> ApprovalRequest:
        with self.transaction():
            row = ApprovalRequestModel(
                product_id=product_id,
                request_type=request_type.value,
                requested_by=requested_by,
                requested_at=utc_now(),
                status=RequestStatus.PENDING.value,
                proposed_changes=proposed_changes,
                current_data=current_data,
            )
            self.db.add(row)
            self.db.flush()
            return ApprovalRequest.model_validate(row.to_dict())

    def get_approval_request(self, request_id: int) -> Optional[ApprovalRequest]:
        row = self.db.get(ApprovalRequestModel, request_id)
        return ApprovalRequest.model_validate(row.to_dict()) if row else None

    def list_approval_requests(self, status: Optional[str] = None) -> List[ApprovalRequest]:
        query = select(ApprovalRequestModel)
        if status:
            query = query.where(ApprovalRequestModel.status == status)
        rows = self.db.scalars(query.order_by(ApprovalRequestModel.id))
        return [ApprovalRequest.model_validate(row.to_dict()) for row in rows]

    def set_approval_status(
        self,
        request_id: int,
        status: RequestStatus,
        approved_by: Optional[str] = None,
        rejection_reason: Optional[str] = None,
        expected_status: RequestStatus = RequestStatus.PENDING,
    ) -> Optional[ApprovalRequest]:
        values: Dict[str, Any] = {"status": status.value}
        if approved_by:
            values["approved_by"] = approved_by
        if rejection_reason:
            values["rejection_reason"] = rejection_reason
        if status.is_terminal:
            values["approved_at"] = utc_now()

        with self.transaction():
            # Only update if status is still the expected one
            result = self.db.execute(
                update(ApprovalRequestModel)
                .where(
                    ApprovalRequestModel.id == request_id,
                    ApprovalRequestModel.status == expected_status.value,
                )
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                return None

            row = self.db.get(ApprovalRequestModel, request_id, populate_existing=True)
            return ApprovalRequest.model_validate(row.to_dict())

    # Favorites

    def _favorite_row(self, user_email: str, product_id: int) -> Optional[UserFavoriteModel]:
        return self.db.scalars(
            select(UserFavoriteModel)
            .where(
                UserFavoriteModel.user_email == user_email,
                UserFavoriteModel.product_id == product_id,
            )
            .limit(1)
        ).first()

    def get_favorites(self, user_email: str) -> List[UserFavorite]:
        rows = self.db.scalars(
            select(UserFavoriteModel)
            .where(UserFavoriteModel.user_email == user_email)
            .order_by(desc(UserFavoriteModel.created_at), desc(UserFavoriteModel.id))
        )
        return [UserFavorite.model_validate(row.to_dict()) for row in rows]

    def add_favorite(self, user_email: str, product_id: int) -> Optional[UserFavorite]:
        try:
            with self.transaction():
                if self._product_row(product_id) is None:
                    return None
                row = self._favorite_row(user_email, product_id)
                if row is None:
                    row = UserFavoriteModel(
                        user_email=user_email,
                        product_id=product_id,
                        created_at=utc_now(),
                    )
                    self.db.add(row)
                    self.db.flush()
                favorite = UserFavorite.model_validate(row.to_dict())
        except IntegrityError:
            # A concurrent request inserted the same pair first
            if self._depth:
                raise
            row = self._favorite_row(user_email, product_id)
            if row is None:
                raise
            favorite = UserFavorite.model_validate(row.to_dict())
        return favorite

    def remove_favorite(self, user_email: str, product_id: int) -> bool:
        with self.transaction():
            result = self.db.execute(
                delete(UserFavoriteModel).where(
                    UserFavoriteModel.user_email == user_email,
                    UserFavoriteModel.product_id == product_id,
                )
            )
            return result.rowcount > 0

    def is_favorited(self, user_email: str, product_id: int) -> bool:
        return self._favorite_row(user_email, product_id) is not None

    # Lineage and dependencies

    def get_lineage(self, product_id: int) -> List[DataLineage]:
        rows = self.db.scalars(
            select(DataLineageModel)
            .where(DataLineageModel.product_id == product_id)
            .order_by(DataLineageModel.id)
        )
        return [DataLineage.model_validate(row.to_dict()) for row in rows]

    def add_lineage(self, lineage: DataLineageCreate) -> DataLineage:
        with self.transaction():
            row = DataLineageModel(**lineage.model_dump(), created_at=utc_now())
            self.db.add(row)
            self.db.flush()
            return DataLineage.model_validate(row.to_dict())

    def get_dependencies(self, product_id: int) -> List[ProductDependency]:
        rows = self.db.scalars(
            select(ProductDependencyModel)
            .where(ProductDependencyModel.product_id == product_id)
            .order_by(ProductDependencyModel.id)
        )
        return [ProductDependency.model_validate(row.to_dict()) for row in rows]

    def add_dependency(self, dependency: ProductDependencyCreate) -> ProductDependency:
        with self.transaction():
            row = ProductDependencyModel(**dependency.model_dump(), created_at=utc_now())
            self.db.add(row)
            self.db.flush()
            return ProductDependency.model_validate(row.to_dict())
