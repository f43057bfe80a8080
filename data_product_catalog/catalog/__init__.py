"""
Catalog domain: data products, change log, approval requests, favorites
and lineage.
"""

from .approval import ApprovalRequest, ApprovalRequestCreate, ApprovalReview
from .changes import ProductChange, ProductChangeCreate, RecentChange
from .enums import (
    ChangeType,
    ProductDomain,
    ProductStatus,
    ProductType,
    RequestStatus,
    RequestType,
)
from .errors import (
    ApprovalApplyError,
    CatalogError,
    InvalidProposedChangesError,
    InvalidReviewError,
    ProductReferenceError,
    RequestAlreadyResolvedError,
)
from .favorites import FavoriteCreate, UserFavorite
from .lineage import (
    DataLineage,
    DataLineageCreate,
    ProductDependency,
    ProductDependencyCreate,
)
from .product import (
    CatalogStats,
    DataProduct,
    DataProductCreate,
    DataProductUpdate,
    ProductFilters,
)
from .workflow import ApprovalWorkflow

__all__ = [
    "ApprovalRequest",
    "ApprovalRequestCreate",
    "ApprovalReview",
    "ApprovalWorkflow",
    "ProductChange",
    "ProductChangeCreate",
    "RecentChange",
    "ChangeType",
    "ProductDomain",
    "ProductStatus",
    "ProductType",
    "RequestStatus",
    "RequestType",
    "ApprovalApplyError",
    "CatalogError",
    "InvalidProposedChangesError",
    "InvalidReviewError",
    "ProductReferenceError",
    "RequestAlreadyResolvedError",
    "FavoriteCreate",
    "UserFavorite",
    "DataLineage",
    "DataLineageCreate",
    "ProductDependency",
    "ProductDependencyCreate",
    "CatalogStats",
    "DataProduct",
    "DataProductCreate",
    "DataProductUpdate",
    "ProductFilters",
]
