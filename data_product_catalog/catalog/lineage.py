"""
Lineage and dependency schemas.

Display-only data: where a product's data comes from, and which tables or
models it needs to run.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import Field, constr

from .primitives import CatalogModel


class DataLineageCreate(CatalogModel):
    """Schema for recording a lineage source of a product."""

    product_id: int
    source_type: Literal["table", "model", "api", "file"]
    source_name: constr(min_length=1, max_length=256)
    source_description: Optional[str] = None
    transformations: List[str] = Field(default_factory=list)


class DataLineage(DataLineageCreate):
    id: int
    created_at: datetime


class ProductDependencyCreate(CatalogModel):
    """Schema for recording a table/model/dataset a product depends on."""

    product_id: int
    dependency_type: Literal["table", "model", "dataset"]
    dependency_name: constr(min_length=1, max_length=256)
    dependency_schema: Optional[str] = None
    description: Optional[str] = None
    is_required: bool = True


class ProductDependency(ProductDependencyCreate):
    id: int
    created_at: datetime
