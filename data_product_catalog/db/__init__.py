"""
Database package for the Data Product Catalog.
"""

from .base import Base, create_tables, get_engine, get_session_local, init_database
from .models import (
    ApprovalRequestModel,
    DataLineageModel,
    DataProductModel,
    ProductChangeModel,
    ProductDependencyModel,
    UserFavoriteModel,
)

__all__ = [
    "Base",
    "create_tables",
    "get_engine",
    "get_session_local",
    "init_database",
    "ApprovalRequestModel",
    "DataLineageModel",
    "DataProductModel",
    "ProductChangeModel",
    "ProductDependencyModel",
    "UserFavoriteModel",
]
