"""
Catalog API Routes.

REST endpoints for data products, approval requests, change log, favorites
and lineage. All endpoints are prefixed with /api and speak camelCase JSON.
"""

from typing import Any, Dict, List, Optional

import structlog
from fastapi import APIRouter, Depends, Header, HTTPException, Query, Response

from ..config import get_settings
from ..storage import CatalogStorage, get_storage
from .approval import ApprovalRequestCreate, ApprovalReview
from .favorites import FavoriteCreate
from .product import DataProductCreate, DataProductUpdate, ProductFilters
from .workflow import ApprovalWorkflow

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api", tags=["catalog"])


def _changed_by(header_value: Optional[str]) -> str:
    if header_value and header_value.strip():
        return header_value.strip()
    return get_settings().default_changed_by


# =============================================================================
# Data Product Endpoints
# =============================================================================


@router.get("/data-products")
async def list_data_products(
    search: Optional[str] = None,
    type: Optional[str] = None,
    domain: Optional[str] = None,
    status: Optional[str] = None,
    storage: CatalogStorage = Depends(get_storage),
) -> List[Dict[str, Any]]:
    """List data products, optionally filtered."""
    filters = ProductFilters(search=search, type=type, domain=domain, status=status)
    return [p.to_api() for p in storage.list_products(filters)]


@router.get("/data-products/{product_id}")
async def get_data_product(
    product_id: int,
    storage: CatalogStorage = Depends(get_storage),
) -> Dict[str, Any]:
    """Get a data product by ID."""
    product = storage.get_product(product_id)

    if not product:
        raise HTTPException(status_code=404, detail="Data product not found")

    return product.to_api()


@router.post("/data-products", status_code=201)
async def create_data_product(
    product: DataProductCreate,
    x_changed_by: Optional[str] = Header(None),
    storage: CatalogStorage = Depends(get_storage),
) -> Dict[str, Any]:
    """Create a data product directly, bypassing approval."""
    created = storage.create_product(product, changed_by=_changed_by(x_changed_by))
    return created.to_api()


@router.put("/data-products/{product_id}")
async def update_data_product(
    product_id: int,
    update: DataProductUpdate,
    x_changed_by: Optional[str] = Header(None),
    storage: CatalogStorage = Depends(get_storage),
) -> Dict[str, Any]:
    """Apply a partial update to a data product."""
    product = storage.update_product(
        product_id, update, changed_by=_changed_by(x_changed_by)
    )

    if not product:
        raise HTTPException(status_code=404, detail="Data product not found")

    return product.to_api()


@router.delete("/data-products/{product_id}", status_code=204)
async def delete_data_product(
    product_id: int,
    storage: CatalogStorage = Depends(get_storage),
) -> Response:
    """Delete a data product."""
    if not storage.delete_product(product_id):
        raise HTTPException(status_code=404, detail="Data product not found")

    logger.info("Data product deleted", product_id=product_id)
    return Response(status_code=204)


@router.get("/stats")
async def get_stats(storage: CatalogStorage = Depends(get_storage)) -> Dict[str, Any]:
    """Aggregate counts for the catalog landing page."""
    return storage.stats().to_api()


# =============================================================================
# Approval Request Endpoints
# =============================================================================


@router.get("/approval-requests")
async def list_approval_requests(
    status: Optional[str] = None,
    storage: CatalogStorage = Depends(get_storage),
) -> List[Dict[str, Any]]:
    """List approval requests, optionally by status."""
    if status is not None and (not status.strip() or status == "all"):
        status = None
    return [r.to_api() for r in storage.list_approval_requests(status=status)]


@router.get("/approval-requests/pending")
async def list_pending_approval_requests(
    storage: CatalogStorage = Depends(get_storage),
) -> List[Dict[str, Any]]:
    """List approval requests awaiting review."""
    return [r.to_api() for r in storage.pending_approval_requests()]


@router.get("/approval-requests/{request_id}")
async def get_approval_request(
    request_id: int,
    storage: CatalogStorage = Depends(get_storage),
) -> Dict[str, Any]:
    """Get an approval request by ID."""
    request = storage.get_approval_request(request_id)

    if not request:
        raise HTTPException(status_code=404, detail="Approval request not found")

    return request.to_api()


@router.post("/approval-requests", status_code=201)
async def submit_approval_request(
    payload: ApprovalRequestCreate,
    x_changed_by: Optional[str] = Header(None),
    storage: CatalogStorage = Depends(get_storage),
) -> Dict[str, Any]:
    """Submit a proposed create, update or delete for review."""
    workflow = ApprovalWorkflow(storage, default_author=_changed_by(x_changed_by))
    request = workflow.submit(payload)
    return request.to_api()


@router.patch("/approval-requests/{request_id}")
async def review_approval_request(
    request_id: int,
    review: ApprovalReview,
    storage: CatalogStorage = Depends(get_storage),
) -> Dict[str, Any]:
    """Approve or reject a pending approval request."""
    request = ApprovalWorkflow(storage).review(
        request_id,
        review.status,
        reviewer=review.approved_by,
        rejection_reason=review.rejection_reason,
    )

    if not request:
        raise HTTPException(status_code=404, detail="Approval request not found")

    return request.to_api()


# =============================================================================
# Change Log Endpoints
# =============================================================================


@router.get("/product-changes/{product_id}")
async def get_product_changes(
    product_id: int,
    storage: CatalogStorage = Depends(get_storage),
) -> List[Dict[str, Any]]:
    """Change log of one product, newest first."""
    return [c.to_api() for c in storage.changes_for_product(product_id)]


@router.get("/recent-changes")
async def get_recent_changes(
    limit: int = Query(50, ge=1),
    storage: CatalogStorage = Depends(get_storage),
) -> List[Dict[str, Any]]:
    """Newest changes across all existing products."""
    limit = min(limit, get_settings().recent_changes_max_limit)
    return [c.to_api() for c in storage.recent_changes(limit=limit)]


# =============================================================================
# Lineage Endpoints
# =============================================================================


@router.get("/data-lineage/{product_id}")
async def get_data_lineage(
    product_id: int,
    storage: CatalogStorage = Depends(get_storage),
) -> List[Dict[str, Any]]:
    """Lineage sources of a product."""
    return [row.to_api() for row in storage.get_lineage(product_id)]


@router.get("/product-dependencies/{product_id}")
async def get_product_dependencies(
    product_id: int,
    storage: CatalogStorage = Depends(get_storage),
) -> List[Dict[str, Any]]:
    """Tables, models and datasets a product depends on."""
    return [row.to_api() for row in storage.get_dependencies(product_id)]


# =============================================================================
# Favorites Endpoints
# =============================================================================


@router.get("/favorites/{user_email}")
async def get_favorites(
    user_email: str,
    storage: CatalogStorage = Depends(get_storage),
) -> List[Dict[str, Any]]:
    """Favorites of a user, newest first."""
    return [f.to_api() for f in storage.get_favorites(user_email)]


@router.post("/favorites")
async def add_favorite(
    favorite: FavoriteCreate,
    storage: CatalogStorage = Depends(get_storage),
) -> Dict[str, Any]:
    """Favorite a product. Favoriting twice returns the existing row."""
    created = storage.add_favorite(favorite.user_email, favorite.product_id)

    if not created:
        raise HTTPException(status_code=404, detail="Data product not found")

    return created.to_api()


@router.delete("/favorites/{user_email}/{product_id}")
async def remove_favorite(
    user_email: str,
    product_id: int,
    storage: CatalogStorage = Depends(get_storage),
) -> Dict[str, bool]:
    """Remove a favorite."""
    return {"success": storage.remove_favorite(user_email, product_id)}


@router.get("/favorites/{user_email}/{product_id}/check")
async def check_favorite(
    user_email: str,
    product_id: int,
    storage: CatalogStorage = Depends(get_storage),
) -> Dict[str, bool]:
    """Whether the user has favorited the product."""
    return {"isFavorited": storage.is_favorited(user_email, product_id)}
