"""
Catalog MCP Server: exposes catalog search and change review to agents.

Usage:
    python -m data_product_catalog.mcp          # stdio transport
    catalog-mcp                                 # via pyproject.toml entry point

MCP client configuration:
    {
      "mcpServers": {
        "catalog": {
          "command": "python3",
          "args": ["-m", "data_product_catalog.mcp"]
        }
      }
    }
"""
import json
import sys
from typing import Any, Dict, Optional

import structlog
from mcp.server.fastmcp import FastMCP
from pydantic import ValidationError

from .catalog.approval import ApprovalRequestCreate
from .catalog.errors import CatalogError
from .catalog.product import ProductFilters
from .catalog.workflow import ApprovalWorkflow, validation_details
from .config import get_settings
from .db.base import create_tables
from .storage import build_storage_provider

logger = structlog.get_logger(__name__)

server = FastMCP(
    name="data-product-catalog",
    instructions=(
        "Data Product Catalog: search cataloged data products, inspect their "
        "change history, and propose or review approval-gated changes. "
        "Product changes only take effect once a request is approved."
    ),
)


# ---------------------------------------------------------------------------
# Lazy-initialized storage provider
# ---------------------------------------------------------------------------

_provider = None


def _get_storage():
    """Open a storage handle. Caller must close it."""
    global _provider
    if _provider is None:
        settings = get_settings()
        if settings.storage_backend == "sql":
            create_tables()
        _provider = build_storage_provider(settings)
    return _provider.open()


def _success(**kwargs: Any) -> str:
    """Format a success response."""
    return json.dumps({"success": True, **kwargs}, default=str)


def _error(code: str, message: str, suggestion: str = "", **extra: Any) -> str:
    """Format an error response."""
    err: Dict[str, Any] = {"code": code, "message": message, **extra}
    if suggestion:
        err["suggestion"] = suggestion
    return json.dumps({"success": False, "error": err}, default=str)


def _catalog_error(exc: CatalogError) -> str:
    body = exc.to_dict()
    return _error(body.pop("code"), body.pop("message"), **body)


# ---------------------------------------------------------------------------
# Product Tools
# ---------------------------------------------------------------------------


@server.tool(
    name="catalog_search_products",
    description=(
        "Search the data product catalog. Matches text against name, "
        "description, tags and owner; type, domain and status narrow the "
        "result. Leave a filter empty (or 'all') to skip it."
    ),
)
def catalog_search_products(
    search: Optional[str] = None,
    type: Optional[str] = None,
    domain: Optional[str] = None,
    status: Optional[str] = None,
    limit: int = 20,
) -> str:
    """List products matching the given filters."""
    storage = _get_storage()
    try:
        filters = ProductFilters(search=search, type=type, domain=domain, status=status)
        products = storage.list_products(filters)
        return _success(
            count=len(products),
            products=[p.to_api() for p in products[: max(limit, 0)]],
        )
    except Exception as exc:
        logger.exception("catalog_search_products failed")
        return _error("SEARCH_ERROR", str(exc))
    finally:
        storage.close()


@server.tool(
    name="catalog_get_product",
    description="Get one data product with its lineage sources and dependencies.",
)
def catalog_get_product(product_id: int) -> str:
    """Fetch a product by ID."""
    storage = _get_storage()
    try:
        product = storage.get_product(product_id)
        if product is None:
            return _error(
                "PRODUCT_NOT_FOUND",
                f"Data product {product_id} not found",
                suggestion="Use catalog_search_products to find valid IDs",
            )
        return _success(
            product=product.to_api(),
            lineage=[row.to_api() for row in storage.get_lineage(product_id)],
            dependencies=[row.to_api() for row in storage.get_dependencies(product_id)],
        )
    except Exception as exc:
        logger.exception("catalog_get_product failed", product_id=product_id)
        return _error("GET_PRODUCT_ERROR", str(exc))
    finally:
        storage.close()


@server.tool(
    name="catalog_get_changelog",
    description="Change history of one data product, newest entry first.",
)
def catalog_get_changelog(product_id: int, limit: int = 20) -> str:
    """List change-log entries of a product."""
    storage = _get_storage()
    try:
        changes = storage.changes_for_product(product_id)
        return _success(
            product_id=product_id,
            count=len(changes),
            changes=[c.to_api() for c in changes[: max(limit, 0)]],
        )
    except Exception as exc:
        logger.exception("catalog_get_changelog failed", product_id=product_id)
        return _error("GET_CHANGELOG_ERROR", str(exc))
    finally:
        storage.close()


@server.tool(
    name="catalog_stats",
    description="Catalog totals: products, active, with contracts, needing attention.",
)
def catalog_stats() -> str:
    """Aggregate counts."""
    storage = _get_storage()
    try:
        return _success(stats=storage.stats().to_api())
    except Exception as exc:
        logger.exception("catalog_stats failed")
        return _error("STATS_ERROR", str(exc))
    finally:
        storage.close()


# ---------------------------------------------------------------------------
# Approval Tools
# ---------------------------------------------------------------------------


@server.tool(
    name="catalog_submit_change_request",
    description=(
        "Propose creating, updating or deleting a data product. The change "
        "is stored as a pending approval request and applied only when a "
        "reviewer approves it. request_type is create, update or delete; "
        "product_id is required for update and delete; proposed_changes "
        "holds the full product (create) or the fields to change (update)."
    ),
)
def catalog_submit_change_request(
    request_type: str,
    requested_by: str,
    proposed_changes: Optional[Dict[str, Any]] = None,
    product_id: Optional[int] = None,
) -> str:
    """Submit an approval request."""
    try:
        payload = ApprovalRequestCreate(
            request_type=request_type,
            requested_by=requested_by,
            product_id=product_id,
            proposed_changes=proposed_changes or {},
        )
    except ValidationError as exc:
        return _error(
            "VALIDATION_ERROR", "Invalid change request", errors=validation_details(exc)
        )

    storage = _get_storage()
    try:
        request = ApprovalWorkflow(storage).submit(payload)
        return _success(request=request.to_api())
    except CatalogError as exc:
        return _catalog_error(exc)
    except Exception as exc:
        logger.exception("catalog_submit_change_request failed")
        return _error("SUBMIT_REQUEST_ERROR", str(exc))
    finally:
        storage.close()


@server.tool(
    name="catalog_list_pending_requests",
    description="List approval requests waiting for a reviewer, oldest first.",
)
def catalog_list_pending_requests(limit: int = 20) -> str:
    """List pending approval requests."""
    storage = _get_storage()
    try:
        requests = storage.pending_approval_requests()
        return _success(
            count=len(requests),
            requests=[r.to_api() for r in requests[: max(limit, 0)]],
        )
    except Exception as exc:
        logger.exception("catalog_list_pending_requests failed")
        return _error("LIST_REQUESTS_ERROR", str(exc))
    finally:
        storage.close()


@server.tool(
    name="catalog_review_request",
    description=(
        "Approve or reject a pending approval request. decision is "
        "'approved' or 'rejected'; rejections need a rejection_reason. "
        "Approving applies the proposed change to the catalog."
    ),
)
def catalog_review_request(
    request_id: int,
    decision: str,
    reviewer: Optional[str] = None,
    rejection_reason: Optional[str] = None,
) -> str:
    """Review an approval request."""
    storage = _get_storage()
    try:
        request = ApprovalWorkflow(storage).review(
            request_id, decision, reviewer=reviewer, rejection_reason=rejection_reason
        )
        if request is None:
            return _error(
                "REQUEST_NOT_FOUND",
                f"Approval request {request_id} not found",
                suggestion="Use catalog_list_pending_requests to find valid IDs",
            )
        return _success(request=request.to_api())
    except CatalogError as exc:
        return _catalog_error(exc)
    except Exception as exc:
        logger.exception("catalog_review_request failed", request_id=request_id)
        return _error("REVIEW_REQUEST_ERROR", str(exc))
    finally:
        storage.close()


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main():
    """Run the catalog MCP server (stdio transport)."""
    # Re-read settings from current process env (MCP config sets env vars)
    from .config import reset_settings
    from .logging_config import configure_logging

    reset_settings()
    configure_logging(stream=sys.stderr)
    server.run(transport="stdio")


if __name__ == "__main__":
    main()
