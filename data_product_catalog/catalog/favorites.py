"""
UserFavorite schemas.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import constr

from .primitives import CatalogModel


class FavoriteCreate(CatalogModel):
    """Schema for favoriting a product."""

    user_email: constr(min_length=3, max_length=320)
    product_id: int


class UserFavorite(CatalogModel):
    """A stored (user, product) favorite. At most one per pair."""

    id: int
    user_email: str
    product_id: int
    created_at: datetime
