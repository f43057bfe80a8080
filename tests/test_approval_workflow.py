"""
Tests for the approval workflow.

Tests verify:
1. Submission validates proposedChanges and product references
2. Approving create/update/delete applies exactly that change
3. Rejection never touches products
4. A request can be resolved only once
5. A failed apply rolls back the approval
"""

import pytest

from conftest import make_product, product_payload

from data_product_catalog.catalog.approval import ApprovalRequestCreate
from data_product_catalog.catalog.enums import ChangeType, RequestStatus, RequestType
from data_product_catalog.catalog.errors import (
    ApprovalApplyError,
    InvalidProposedChangesError,
    InvalidReviewError,
    ProductReferenceError,
    RequestAlreadyResolvedError,
)
from data_product_catalog.catalog.workflow import ApprovalWorkflow


@pytest.fixture
def workflow(storage) -> ApprovalWorkflow:
    return ApprovalWorkflow(storage)


def _create_request(workflow, **overrides):
    return workflow.submit(
        ApprovalRequestCreate(
            request_type=RequestType.CREATE,
            requested_by="ana@example.com",
            proposed_changes=product_payload(**overrides),
        )
    )


def _update_request(workflow, product_id, changes, requested_by="bob@example.com"):
    return workflow.submit(
        ApprovalRequestCreate(
            request_type=RequestType.UPDATE,
            requested_by=requested_by,
            product_id=product_id,
            proposed_changes=changes,
        )
    )


class TestSubmit:
    def test_create_request_starts_pending(self, workflow):
        request = _create_request(workflow, name="X")

        assert request.status == RequestStatus.PENDING
        assert request.product_id is None
        assert request.proposed_changes["name"] == "X"
        assert request.approved_at is None

    def test_status_in_payload_is_ignored(self, workflow):
        request = workflow.submit(
            ApprovalRequestCreate.model_validate(
                {
                    "requestType": "create",
                    "requestedBy": "ana@example.com",
                    "proposedChanges": product_payload(),
                    "status": "approved",
                }
            )
        )
        assert request.status == RequestStatus.PENDING

    def test_missing_requested_by_uses_default_author(self, storage):
        workflow = ApprovalWorkflow(storage, default_author="reviewer-bot")
        request = workflow.submit(
            ApprovalRequestCreate(
                request_type=RequestType.CREATE, proposed_changes=product_payload()
            )
        )
        assert request.requested_by == "reviewer-bot"

    def test_invalid_create_payload_is_rejected(self, workflow, storage):
        with pytest.raises(InvalidProposedChangesError) as exc_info:
            _create_request(workflow, type="spreadsheet")

        assert exc_info.value.errors
        assert storage.list_approval_requests() == []

    def test_create_with_product_id_is_rejected(self, workflow, storage):
        product = make_product(storage)
        with pytest.raises(ProductReferenceError):
            workflow.submit(
                ApprovalRequestCreate(
                    request_type=RequestType.CREATE,
                    requested_by="ana",
                    product_id=product.id,
                    proposed_changes=product_payload(),
                )
            )

    def test_update_requires_product_id(self, workflow):
        with pytest.raises(ProductReferenceError):
            _update_request(workflow, None, {"description": "b"})

    def test_update_requires_existing_product(self, workflow):
        with pytest.raises(ProductReferenceError):
            _update_request(workflow, 999, {"description": "b"})

    def test_update_requires_at_least_one_field(self, workflow, storage):
        product = make_product(storage)
        with pytest.raises(InvalidProposedChangesError):
            _update_request(workflow, product.id, {})

    def test_update_rejects_unknown_fields(self, workflow, storage):
        product = make_product(storage)
        with pytest.raises(InvalidProposedChangesError):
            _update_request(workflow, product.id, {"colour": "blue"})

    def test_update_snapshots_current_data(self, workflow, storage):
        product = make_product(storage, description="a")

        request = _update_request(workflow, product.id, {"description": "b"})

        assert request.current_data["description"] == "a"
        assert request.current_data["id"] == product.id
        assert request.proposed_changes == {"description": "b"}

    def test_caller_supplied_current_data_is_kept(self, workflow, storage):
        product = make_product(storage)
        request = workflow.submit(
            ApprovalRequestCreate(
                request_type=RequestType.DELETE,
                requested_by="ana",
                product_id=product.id,
                current_data={"name": "as the caller saw it"},
            )
        )
        assert request.current_data == {"name": "as the caller saw it"}


class TestApprove:
    def test_approve_create_adds_exactly_one_product(self, workflow, storage):
        request = _create_request(workflow, name="X", description="")

        resolved = workflow.review(request.id, "approved", reviewer="lead@example.com")

        assert resolved.status == RequestStatus.APPROVED
        assert resolved.approved_by == "lead@example.com"
        assert resolved.approved_at is not None
        products = storage.list_products()
        assert len(products) == 1
        created = products[0].to_api()
        for field, value in request.proposed_changes.items():
            assert created[field] == value

    def test_approve_create_attributes_change_to_requester(self, workflow, storage):
        request = _create_request(workflow)
        workflow.review(request.id, RequestStatus.APPROVED)

        product = storage.list_products()[0]
        changes = storage.changes_for_product(product.id)
        assert changes[0].change_type == ChangeType.CREATED
        assert changes[0].changed_by == "ana@example.com"

    def test_approve_update_changes_only_target_product(self, workflow, storage):
        target = make_product(storage, name="Target", description="a")
        other = make_product(storage, name="Other", description="a")
        request = _update_request(workflow, target.id, {"description": "b", "tags": ["new"]})

        workflow.review(request.id, "approved")

        assert storage.get_product(target.id).description == "b"
        assert storage.get_product(target.id).tags == ["new"]
        assert storage.get_product(other.id) == other

        changes = storage.changes_for_product(target.id)
        fields = {c.field_name for c in changes if c.change_type == ChangeType.UPDATED}
        assert fields == {"description", "tags"}
        assert all(c.changed_by == "bob@example.com" for c in changes[:2])

    def test_approve_delete_removes_product(self, workflow, storage):
        product = make_product(storage)
        request = workflow.submit(
            ApprovalRequestCreate(
                request_type=RequestType.DELETE, requested_by="ana", product_id=product.id
            )
        )

        resolved = workflow.review(request.id, "approved")

        assert resolved.status == RequestStatus.APPROVED
        assert resolved.product_id == product.id
        assert storage.get_product(product.id) is None


class TestReject:
    def test_reject_stores_reason_and_leaves_products_alone(self, workflow, storage):
        product = make_product(storage, description="a")
        request = _update_request(workflow, product.id, {"description": "b"})

        resolved = workflow.review(
            request.id, "rejected", reviewer="lead", rejection_reason="Not now"
        )

        assert resolved.status == RequestStatus.REJECTED
        assert resolved.rejection_reason == "Not now"
        assert resolved.approved_by == "lead"
        assert resolved.approved_at is not None
        assert storage.get_product(product.id) == product

    def test_reject_create_creates_nothing(self, workflow, storage):
        request = _create_request(workflow)
        workflow.review(request.id, "rejected", rejection_reason="Duplicate")
        assert storage.list_products() == []

    @pytest.mark.parametrize("reason", [None, "", "   "])
    def test_reject_requires_reason(self, workflow, reason):
        request = _create_request(workflow)

        with pytest.raises(InvalidReviewError):
            workflow.review(request.id, "rejected", rejection_reason=reason)

    def test_approve_ignores_rejection_reason(self, workflow):
        request = _create_request(workflow)
        resolved = workflow.review(request.id, "approved", rejection_reason="ignored")
        assert resolved.rejection_reason is None


class TestReviewGuards:
    @pytest.mark.parametrize("decision", ["pending", "done", ""])
    def test_invalid_decision(self, workflow, decision):
        request = _create_request(workflow)

        with pytest.raises(InvalidReviewError) as exc_info:
            workflow.review(request.id, decision)

        assert exc_info.value.message == "Invalid status"

    def test_unknown_request_returns_none(self, workflow):
        assert workflow.review(999, "approved") is None

    @pytest.mark.parametrize("first", ["approved", "rejected"])
    @pytest.mark.parametrize("second", ["approved", "rejected"])
    def test_resolved_request_cannot_be_reviewed_again(self, workflow, storage, first, second):
        request = _create_request(workflow)
        workflow.review(request.id, first, rejection_reason="no")
        products_before = storage.list_products()

        with pytest.raises(RequestAlreadyResolvedError) as exc_info:
            workflow.review(request.id, second, rejection_reason="no")

        assert exc_info.value.status_code == 409
        assert storage.list_products() == products_before
        assert storage.get_approval_request(request.id).status == RequestStatus(first)

    def test_status_cas_only_moves_expected_status(self, storage, workflow):
        request = _create_request(workflow)

        assert storage.set_approval_status(
            request.id, RequestStatus.REJECTED, expected_status=RequestStatus.APPROVED
        ) is None
        assert storage.get_approval_request(request.id).status == RequestStatus.PENDING


class TestApplyFailure:
    def test_update_of_vanished_product_rolls_back(self, workflow, storage):
        product = make_product(storage)
        request = _update_request(workflow, product.id, {"description": "b"})
        storage.delete_product(product.id)

        with pytest.raises(ApprovalApplyError) as exc_info:
            workflow.review(request.id, "approved")

        assert exc_info.value.status_code == 422
        current = storage.get_approval_request(request.id)
        assert current.status == RequestStatus.PENDING
        assert current.approved_at is None

    def test_delete_of_vanished_product_rolls_back(self, workflow, storage):
        product = make_product(storage)
        request = workflow.submit(
            ApprovalRequestCreate(
                request_type=RequestType.DELETE, requested_by="ana", product_id=product.id
            )
        )
        storage.delete_product(product.id)

        with pytest.raises(ApprovalApplyError):
            workflow.review(request.id, "approved")

        assert storage.get_approval_request(request.id).status == RequestStatus.PENDING

    def test_store_failure_during_apply_rolls_back(self, workflow, storage, monkeypatch):
        request = _create_request(workflow)

        def broken_insert(values, now):
            raise RuntimeError("disk full")

        monkeypatch.setattr(storage, "_insert_product", broken_insert)

        with pytest.raises(ApprovalApplyError) as exc_info:
            workflow.review(request.id, "approved")

        assert "disk full" in exc_info.value.message
        assert storage.get_approval_request(request.id).status == RequestStatus.PENDING
        assert storage.recent_changes() == []

    def test_rejection_still_possible_after_failed_approval(self, workflow, storage):
        product = make_product(storage)
        request = _update_request(workflow, product.id, {"description": "b"})
        storage.delete_product(product.id)

        with pytest.raises(ApprovalApplyError):
            workflow.review(request.id, "approved")

        resolved = workflow.review(request.id, "rejected", rejection_reason="Product is gone")
        assert resolved.status == RequestStatus.REJECTED
