"""
Data Product Catalog

Browse, favorite and govern organizational data products, with every
change going through an approval workflow and an audit trail.
"""

import importlib.metadata

__version__ = importlib.metadata.version("data-product-catalog")

from .catalog import (
    ApprovalRequest,
    ApprovalRequestCreate,
    ApprovalWorkflow,
    DataProduct,
    DataProductCreate,
    DataProductUpdate,
    ProductFilters,
)
from .storage import CatalogStorage, InMemoryCatalogStorage, SqlCatalogStorage

__all__ = [
    "ApprovalRequest",
    "ApprovalRequestCreate",
    "ApprovalWorkflow",
    "CatalogStorage",
    "DataProduct",
    "DataProductCreate",
    "DataProductUpdate",
    "InMemoryCatalogStorage",
    "ProductFilters",
    "SqlCatalogStorage",
]
