"""
Catalog domain errors.

Not-found is never an error here: stores return ``None``/``False`` and the
HTTP layer maps that to 404. These exceptions cover invalid input and
illegal approval transitions; each knows its HTTP status and JSON body.
"""

from typing import Any, Dict, List, Optional


class CatalogError(Exception):
    """Base class for catalog domain errors."""

    code = "CATALOG_ERROR"
    status_code = 400

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        self.message = message
        self.errors = errors or []
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.errors:
            body["errors"] = self.errors
        return body


class InvalidReviewError(CatalogError):
    """Review decision is not approved/rejected, or a rejection has no reason."""

    code = "INVALID_REVIEW"


class InvalidProposedChangesError(CatalogError):
    """proposedChanges does not validate against the product schema."""

    code = "INVALID_PROPOSED_CHANGES"


class ProductReferenceError(CatalogError):
    """Request references a product that is missing or not allowed."""

    code = "INVALID_PRODUCT_REFERENCE"


class RequestAlreadyResolvedError(CatalogError):
    """Review attempted on a request that already left pending."""

    code = "REQUEST_ALREADY_RESOLVED"
    status_code = 409

    def __init__(self, request_id: int, status: str):
        self.request_id = request_id
        self.status = status
        super().__init__(f"Approval request {request_id} is already {status}")


class ApprovalApplyError(CatalogError):
    """Approved change could not be applied; the approval was rolled back."""

    code = "APPROVAL_APPLY_FAILED"
    status_code = 422

    def __init__(
        self,
        request_id: int,
        reason: str,
        errors: Optional[List[Dict[str, Any]]] = None,
    ):
        self.request_id = request_id
        super().__init__(
            f"Approval request {request_id} could not be applied: {reason}",
            errors=errors,
        )
