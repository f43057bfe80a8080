"""
Approval workflow.

Requests move ``pending -> approved`` or ``pending -> rejected`` and are
never transitioned again. Approving a request applies its proposed change to
the product store in the same unit of work as the status flip, so either both
happen or neither does.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

import structlog
from pydantic import ValidationError

from .approval import ApprovalRequest, ApprovalRequestCreate
from .enums import RequestStatus, RequestType
from .errors import (
    ApprovalApplyError,
    CatalogError,
    InvalidProposedChangesError,
    InvalidReviewError,
    ProductReferenceError,
    RequestAlreadyResolvedError,
)
from .product import DataProductCreate, DataProductUpdate

logger = structlog.get_logger(__name__)

REVIEW_DECISIONS = (RequestStatus.APPROVED, RequestStatus.REJECTED)


def validation_details(exc: ValidationError) -> List[Dict[str, Any]]:
    """JSON-safe per-field error detail from a pydantic ValidationError."""
    return [
        {"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]}
        for err in exc.errors()
    ]


class ApprovalWorkflow:
    """Submits and reviews approval requests against a CatalogStorage."""

    def __init__(self, storage, default_author: str = "system"):
        self.storage = storage
        self.default_author = default_author

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def submit(self, payload: ApprovalRequestCreate) -> ApprovalRequest:
        """Validate a proposed change and store it as a pending request.

        Create requests must carry a complete product payload and no
        productId. Update requests need a non-empty partial payload and an
        existing product; delete requests need an existing product. When the
        caller sends no ``currentData``, the product as it is now is stored
        for reviewer comparison.

        Raises:
            InvalidProposedChangesError: proposedChanges fails validation
            ProductReferenceError: productId missing, unexpected or unknown
        """
        request_type = payload.request_type
        requested_by = payload.requested_by or self.default_author
        product_id = payload.product_id
        current_data = payload.current_data

        if request_type == RequestType.CREATE:
            if product_id is not None:
                raise ProductReferenceError("productId must be empty for create requests")
            proposed = self._validated_create(payload.proposed_changes)
        else:
            if product_id is None:
                raise ProductReferenceError(
                    f"productId is required for {request_type.value} requests"
                )
            product = self.storage.get_product(product_id)
            if product is None:
                raise ProductReferenceError(f"Data product {product_id} does not exist")
            if current_data is None:
                current_data = product.to_api()

            if request_type == RequestType.UPDATE:
                proposed = self._validated_update(payload.proposed_changes)
            else:
                proposed = dict(payload.proposed_changes)

        request = self.storage.create_approval_request(
            request_type=request_type,
            requested_by=requested_by,
            proposed_changes=proposed,
            product_id=product_id,
            current_data=current_data,
        )
        logger.info(
            "Approval request submitted",
            request_id=request.id,
            request_type=request_type.value,
            product_id=product_id,
            requested_by=requested_by,
        )
        return request

    @staticmethod
    def _validated_create(changes: Dict[str, Any]) -> Dict[str, Any]:
        try:
            product = DataProductCreate.model_validate(changes)
        except ValidationError as exc:
            raise InvalidProposedChangesError(
                "proposedChanges is not a valid data product",
                errors=validation_details(exc),
            ) from exc
        return product.model_dump(mode="json", by_alias=True, exclude_unset=True)

    @staticmethod
    def _validated_update(changes: Dict[str, Any]) -> Dict[str, Any]:
        try:
            update = DataProductUpdate.model_validate(changes)
        except ValidationError as exc:
            raise InvalidProposedChangesError(
                "proposedChanges is not a valid product update",
                errors=validation_details(exc),
            ) from exc
        if not update.model_fields_set:
            raise InvalidProposedChangesError(
                "proposedChanges must contain at least one field"
            )
        return update.model_dump(mode="json", by_alias=True, exclude_unset=True)

    # ------------------------------------------------------------------
    # Review
    # ------------------------------------------------------------------

    @staticmethod
    def parse_decision(decision: Union[str, RequestStatus]) -> RequestStatus:
        try:
            status = RequestStatus(decision)
        except ValueError:
            status = None
        if status not in REVIEW_DECISIONS:
            raise InvalidReviewError(
                "Invalid status",
                errors=[
                    {
                        "loc": ["body", "status"],
                        "msg": "status must be 'approved' or 'rejected'",
                        "type": "value_error",
                    }
                ],
            )
        return status

    def review(
        self,
        request_id: int,
        decision: Union[str, RequestStatus],
        reviewer: Optional[str] = None,
        rejection_reason: Optional[str] = None,
    ) -> Optional[ApprovalRequest]:
        """Approve or reject a pending request.

        Returns the resolved request, or None when ``request_id`` is unknown.

        Raises:
            InvalidReviewError: decision is not approved/rejected, or a
                rejection carries no reason
            RequestAlreadyResolvedError: the request already left pending
            ApprovalApplyError: the approved change could not be applied;
                nothing was written and the request is still pending
        """
        status = self.parse_decision(decision)
        if status == RequestStatus.REJECTED:
            if not rejection_reason or not rejection_reason.strip():
                raise InvalidReviewError("rejectionReason is required when rejecting")
        else:
            rejection_reason = None

        request = self.storage.get_approval_request(request_id)
        if request is None:
            return None
        if request.is_resolved:
            logger.warning(
                "Review of resolved approval request refused",
                request_id=request_id,
                status=request.status.value,
                decision=status.value,
            )
            raise RequestAlreadyResolvedError(request_id, request.status.value)

        with self.storage.transaction():
            resolved = self.storage.set_approval_status(
                request_id,
                status,
                approved_by=reviewer,
                rejection_reason=rejection_reason,
                expected_status=RequestStatus.PENDING,
            )
            if resolved is None:
                # Another reviewer got there first
                current = self.storage.get_approval_request(request_id)
                raise RequestAlreadyResolvedError(
                    request_id, current.status.value if current else "resolved"
                )
            if status == RequestStatus.APPROVED:
                self._apply(resolved)

        logger.info(
            "Approval request reviewed",
            request_id=request_id,
            request_type=resolved.request_type.value,
            status=status.value,
            reviewer=reviewer,
        )
        return resolved

    def _apply(self, request: ApprovalRequest) -> None:
        try:
            self._dispatch(request)
        except CatalogError:
            raise
        except Exception as exc:
            logger.exception(
                "Applying approved request failed", request_id=request.id
            )
            raise ApprovalApplyError(request.id, str(exc) or type(exc).__name__) from exc

    def _dispatch(self, request: ApprovalRequest) -> None:
        changed_by = request.requested_by

        if request.request_type == RequestType.CREATE:
            try:
                product = DataProductCreate.model_validate(request.proposed_changes)
            except ValidationError as exc:
                raise ApprovalApplyError(
                    request.id, "proposedChanges is not a valid data product",
                    errors=validation_details(exc),
                ) from exc
            self.storage.create_product(product, changed_by=changed_by)
            return

        if request.product_id is None:
            raise ApprovalApplyError(request.id, "request has no productId")

        if request.request_type == RequestType.UPDATE:
            try:
                update = DataProductUpdate.model_validate(request.proposed_changes)
            except ValidationError as exc:
                raise ApprovalApplyError(
                    request.id, "proposedChanges is not a valid product update",
                    errors=validation_details(exc),
                ) from exc
            if self.storage.update_product(request.product_id, update, changed_by) is None:
                raise ApprovalApplyError(
                    request.id, f"data product {request.product_id} no longer exists"
                )
            return

        if not self.storage.delete_product(request.product_id):
            raise ApprovalApplyError(
                request.id, f"data product {request.product_id} no longer exists"
            )
