"""
SQLAlchemy models for the Data Product Catalog.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.sql import func

from .base import Base


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive timestamps read back from SQLite."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class DataProductModel(Base):
    """SQLAlchemy model for data products."""

    __tablename__ = "data_products"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(256), nullable=False, index=True)
    description = Column(Text, nullable=False, default="")
    type = Column(String(50), nullable=False, index=True)
    domain = Column(String(50), nullable=False, index=True)
    status = Column(String(50), nullable=False, index=True)
    owner = Column(String(256), nullable=False)
    owner_initials = Column(String(3), nullable=False)
    tags = Column(JSON, nullable=False, default=list)

    # "metadata" is reserved on declarative classes
    product_metadata = Column("metadata", JSON, nullable=True)
    contract_sla = Column(Text, nullable=True)
    quality_metrics = Column(JSON, nullable=True)

    technical_contact = Column(String(256), nullable=True)
    business_contact = Column(String(256), nullable=True)
    data_source = Column(String(256), nullable=True)
    update_frequency = Column(String(50), nullable=True)
    api_endpoint = Column(Text, nullable=True)
    documentation_url = Column(Text, nullable=True)
    documentation_content = Column(Text, nullable=True)
    model_type = Column(String(100), nullable=True)
    confidence_level = Column(String(50), nullable=True)
    compliance_level = Column(String(100), nullable=True)

    upstream_sources = Column(JSON, nullable=False, default=list)
    downstream_targets = Column(JSON, nullable=False, default=list)

    last_updated = Column(DateTime(timezone=True), nullable=False, default=func.now())
    created_at = Column(DateTime(timezone=True), nullable=False, default=func.now())

    __table_args__ = (
        Index("ix_data_products_type_domain_status", "type", "domain", "status"),
        {"sqlite_autoincrement": True},
    )

    def to_dict(self) -> Dict[str, Any]:
        """Convert model to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "type": self.type,
            "domain": self.domain,
            "status": self.status,
            "owner": self.owner,
            "owner_initials": self.owner_initials,
            "tags": list(self.tags or []),
            "metadata": self.product_metadata,
            "contract_sla": self.contract_sla,
            "quality_metrics": self.quality_metrics,
            "technical_contact": self.technical_contact,
            "business_contact": self.business_contact,
            "data_source": self.data_source,
            "update_frequency": self.update_frequency,
            "api_endpoint": self.api_endpoint,
            "documentation_url": self.documentation_url,
            "documentation_content": self.documentation_content,
            "model_type": self.model_type,
            "confidence_level": self.confidence_level,
            "compliance_level": self.compliance_level,
            "upstream_sources": list(self.upstream_sources or []),
            "downstream_targets": list(self.downstream_targets or []),
            "last_updated": as_utc(self.last_updated),
            "created_at": as_utc(self.created_at),
        }


class ApprovalRequestModel(Base):
    """SQLAlchemy model for approval requests.

    ``product_id`` is a plain column rather than a foreign key: an approved
    delete removes the product but the request keeps pointing at it.
    """

    __tablename__ = "approval_requests"

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(Integer, nullable=True, index=True)
    request_type = Column(String(20), nullable=False)
    requested_by = Column(String(256), nullable=False)
    requested_at = Column(DateTime(timezone=True), nullable=False, default=func.now())
    status = Column(String(20), nullable=False, default="pending", index=True)
    approved_by = Column(String(256), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    rejection_reason = Column(Text, nullable=True)
    proposed_changes = Column(JSON, nullable=False, default=dict)
    current_data = Column(JSON, nullable=True)

    __table_args__ = (
        Index("ix_approval_requests_status_requested_at", "status", "requested_at"),
        {"sqlite_autoincrement": True},
    )

    def to_dict(self) -> Dict[str, Any]:
        """Convert model to dictionary."""
        return {
            "id": self.id,
            "product_id": self.product_id,
            "request_type": self.request_type,
            "requested_by": self.requested_by,
            "requested_at": as_utc(self.requested_at),
            "status": self.status,
            "approved_by": self.approved_by,
            "approved_at": as_utc(self.approved_at),
            "rejection_reason": self.rejection_reason,
            "proposed_changes": self.proposed_changes or {},
            "current_data": self.current_data,
        }


class ProductChangeModel(Base):
    """SQLAlchemy model for product change-log entries.

    Entries outlive the product they describe, so ``product_id`` carries no
    foreign key constraint.
    """

    __tablename__ = "product_changes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(Integer, nullable=False, index=True)
    changed_by = Column(String(256), nullable=False)
    change_type = Column(String(20), nullable=False)
    field_name = Column(String(100), nullable=True)
    old_value = Column(Text, nullable=True)
    new_value = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    changed_at = Column(DateTime(timezone=True), nullable=False, default=func.now())

    __table_args__ = (
        Index("ix_product_changes_product_changed_at", "product_id", "changed_at"),
        Index("ix_product_changes_changed_at", "changed_at"),
        {"sqlite_autoincrement": True},
    )

    def to_dict(self) -> Dict[str, Any]:
        """Convert model to dictionary."""
        return {
            "id": self.id,
            "product_id": self.product_id,
            "changed_by": self.changed_by,
            "change_type": self.change_type,
            "field_name": self.field_name,
            "old_value": self.old_value,
            "new_value": self.new_value,
            "description": self.description,
            "changed_at": as_utc(self.changed_at),
        }


class UserFavoriteModel(Base):
    """SQLAlchemy model for user favorites."""

    __tablename__ = "user_favorites"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_email = Column(String(320), nullable=False, index=True)
    product_id = Column(
        Integer,
        ForeignKey("data_products.id", ondelete="CASCADE"),
        nullable=False,
    )
    created_at = Column(DateTime(timezone=True), nullable=False, default=func.now())

    __table_args__ = (
        UniqueConstraint("user_email", "product_id", name="uq_user_favorites_user_product"),
        {"sqlite_autoincrement": True},
    )

    def to_dict(self) -> Dict[str, Any]:
        """Convert model to dictionary."""
        return {
            "id": self.id,
            "user_email": self.user_email,
            "product_id": self.product_id,
            "created_at": as_utc(self.created_at),
        }


class DataLineageModel(Base):
    """SQLAlchemy model for lineage sources."""

    __tablename__ = "data_lineage"

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(
        Integer,
        ForeignKey("data_products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    source_type = Column(String(20), nullable=False)
    source_name = Column(String(256), nullable=False)
    source_description = Column(Text, nullable=True)
    transformations = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), nullable=False, default=func.now())

    __table_args__ = ({"sqlite_autoincrement": True},)

    def to_dict(self) -> Dict[str, Any]:
        """Convert model to dictionary."""
        return {
            "id": self.id,
            "product_id": self.product_id,
            "source_type": self.source_type,
            "source_name": self.source_name,
            "source_description": self.source_description,
            "transformations": list(self.transformations or []),
            "created_at": as_utc(self.created_at),
        }


class ProductDependencyModel(Base):
    """SQLAlchemy model for product dependencies."""

    __tablename__ = "product_dependencies"

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(
        Integer,
        ForeignKey("data_products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    dependency_type = Column(String(20), nullable=False)
    dependency_name = Column(String(256), nullable=False)
    dependency_schema = Column(String(256), nullable=True)
    description = Column(Text, nullable=True)
    is_required = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=func.now())

    __table_args__ = ({"sqlite_autoincrement": True},)

    def to_dict(self) -> Dict[str, Any]:
        """Convert model to dictionary."""
        return {
            "id": self.id,
            "product_id": self.product_id,
            "dependency_type": self.dependency_type,
            "dependency_name": self.dependency_name,
            "dependency_schema": self.dependency_schema,
            "description": self.description,
            "is_required": self.is_required,
            "created_at": as_utc(self.created_at),
        }
