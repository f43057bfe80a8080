"""Create catalog tables

Revision ID: 0001_catalog
Revises:
Create Date: 2026-10-18

Creates the six catalog tables:
- data_products: the catalog itself
- approval_requests: proposed create/update/delete changes awaiting review
- product_changes: append-only change log per product
- user_favorites: (user, product) favorites, unique per pair
- data_lineage / product_dependencies: display-only lineage rows

approval_requests and product_changes keep a plain product_id so they
survive deletion of the product they reference.
"""
from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "0001_catalog"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # ===========================================
    # 1. data_products
    # ===========================================
    op.create_table(
        "data_products",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=256), nullable=False),
        sa.Column("description", sa.Text, nullable=False, server_default=""),
        sa.Column("type", sa.String(length=50), nullable=False),
        sa.Column("domain", sa.String(length=50), nullable=False),
        sa.Column("status", sa.String(length=50), nullable=False),
        sa.Column("owner", sa.String(length=256), nullable=False),
        sa.Column("owner_initials", sa.String(length=3), nullable=False),
        sa.Column("tags", sa.JSON, nullable=False, server_default="[]"),
        sa.Column("metadata", sa.JSON, nullable=True),
        sa.Column("contract_sla", sa.Text, nullable=True),
        sa.Column("quality_metrics", sa.JSON, nullable=True),
        sa.Column("technical_contact", sa.String(length=256), nullable=True),
        sa.Column("business_contact", sa.String(length=256), nullable=True),
        sa.Column("data_source", sa.String(length=256), nullable=True),
        sa.Column("update_frequency", sa.String(length=50), nullable=True),
        sa.Column("api_endpoint", sa.Text, nullable=True),
        sa.Column("documentation_url", sa.Text, nullable=True),
        sa.Column("documentation_content", sa.Text, nullable=True),
        sa.Column("model_type", sa.String(length=100), nullable=True),
        sa.Column("confidence_level", sa.String(length=50), nullable=True),
        sa.Column("compliance_level", sa.String(length=100), nullable=True),
        sa.Column("upstream_sources", sa.JSON, nullable=False, server_default="[]"),
        sa.Column("downstream_targets", sa.JSON, nullable=False, server_default="[]"),
        sa.Column(
            "last_updated",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_data_products_name", "data_products", ["name"])
    op.create_index("ix_data_products_type", "data_products", ["type"])
    op.create_index("ix_data_products_domain", "data_products", ["domain"])
    op.create_index("ix_data_products_status", "data_products", ["status"])
    op.create_index(
        "ix_data_products_type_domain_status", "data_products", ["type", "domain", "status"]
    )

    # ===========================================
    # 2. approval_requests
    # ===========================================
    op.create_table(
        "approval_requests",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("product_id", sa.Integer, nullable=True),
        sa.Column("request_type", sa.String(length=20), nullable=False),
        sa.Column("requested_by", sa.String(length=256), nullable=False),
        sa.Column(
            "requested_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("approved_by", sa.String(length=256), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejection_reason", sa.Text, nullable=True),
        sa.Column("proposed_changes", sa.JSON, nullable=False, server_default="{}"),
        sa.Column("current_data", sa.JSON, nullable=True),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_approval_requests_product_id", "approval_requests", ["product_id"])
    op.create_index("ix_approval_requests_status", "approval_requests", ["status"])
    op.create_index(
        "ix_approval_requests_status_requested_at",
        "approval_requests",
        ["status", "requested_at"],
    )

    # ===========================================
    # 3. product_changes
    # ===========================================
    op.create_table(
        "product_changes",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("product_id", sa.Integer, nullable=False),
        sa.Column("changed_by", sa.String(length=256), nullable=False),
        sa.Column("change_type", sa.String(length=20), nullable=False),
        sa.Column("field_name", sa.String(length=100), nullable=True),
        sa.Column("old_value", sa.Text, nullable=True),
        sa.Column("new_value", sa.Text, nullable=True),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column(
            "changed_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_product_changes_product_id", "product_changes", ["product_id"])
    op.create_index(
        "ix_product_changes_product_changed_at",
        "product_changes",
        ["product_id", "changed_at"],
    )
    op.create_index("ix_product_changes_changed_at", "product_changes", ["changed_at"])

    # ===========================================
    # 4. user_favorites
    # ===========================================
    op.create_table(
        "user_favorites",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("user_email", sa.String(length=320), nullable=False),
        sa.Column(
            "product_id",
            sa.Integer,
            sa.ForeignKey("data_products.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.UniqueConstraint(
            "user_email", "product_id", name="uq_user_favorites_user_product"
        ),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_user_favorites_user_email", "user_favorites", ["user_email"])

    # ===========================================
    # 5. data_lineage
    # ===========================================
    op.create_table(
        "data_lineage",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "product_id",
            sa.Integer,
            sa.ForeignKey("data_products.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("source_type", sa.String(length=20), nullable=False),
        sa.Column("source_name", sa.String(length=256), nullable=False),
        sa.Column("source_description", sa.Text, nullable=True),
        sa.Column("transformations", sa.JSON, nullable=False, server_default="[]"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_data_lineage_product_id", "data_lineage", ["product_id"])

    # ===========================================
    # 6. product_dependencies
    # ===========================================
    op.create_table(
        "product_dependencies",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "product_id",
            sa.Integer,
            sa.ForeignKey("data_products.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("dependency_type", sa.String(length=20), nullable=False),
        sa.Column("dependency_name", sa.String(length=256), nullable=False),
        sa.Column("dependency_schema", sa.String(length=256), nullable=True),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("is_required", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sqlite_autoincrement=True,
    )
    op.create_index(
        "ix_product_dependencies_product_id", "product_dependencies", ["product_id"]
    )


def downgrade() -> None:
    op.drop_index("ix_product_dependencies_product_id", table_name="product_dependencies")
    op.drop_table("product_dependencies")

    op.drop_index("ix_data_lineage_product_id", table_name="data_lineage")
    op.drop_table("data_lineage")

    op.drop_index("ix_user_favorites_user_email", table_name="user_favorites")
    op.drop_table("user_favorites")

    op.drop_index("ix_product_changes_changed_at", table_name="product_changes")
    op.drop_index("ix_product_changes_product_changed_at", table_name="product_changes")
    op.drop_index("ix_product_changes_product_id", table_name="product_changes")
    op.drop_table("product_changes")

    op.drop_index("ix_approval_requests_status_requested_at", table_name="approval_requests")
    op.drop_index("ix_approval_requests_status", table_name="approval_requests")
    op.drop_index("ix_approval_requests_product_id", table_name="approval_requests")
    op.drop_table("approval_requests")

    op.drop_index("ix_data_products_type_domain_status", table_name="data_products")
    op.drop_index("ix_data_products_status", table_name="data_products")
    op.drop_index("ix_data_products_domain", table_name="data_products")
    op.drop_index("ix_data_products_type", table_name="data_products")
    op.drop_index("ix_data_products_name", table_name="data_products")
    op.drop_table("data_products")
