"""
ApprovalRequest schemas.

An ApprovalRequest proposes a create, update or delete of a DataProduct.
It starts pending and is resolved exactly once, by approval (which applies
the proposed change) or by rejection (which applies nothing).
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import ConfigDict, Field, constr

from .enums import RequestStatus, RequestType
from .primitives import CatalogModel


class ApprovalRequestCreate(CatalogModel):
    """Schema for submitting a new ApprovalRequest."""

    model_config = ConfigDict(extra="forbid")

    request_type: RequestType
    requested_by: Optional[constr(min_length=1, max_length=256)] = Field(
        None, description="Submitter; defaults to the configured change author"
    )
    product_id: Optional[int] = Field(
        None, description="Target product; required for update and delete"
    )
    proposed_changes: Dict[str, Any] = Field(default_factory=dict)
    current_data: Optional[Dict[str, Any]] = None
    status: Optional[str] = Field(
        None, description="Accepted for compatibility; new requests always start pending"
    )


class ApprovalReview(CatalogModel):
    """Reviewer decision on a pending ApprovalRequest."""

    status: str = Field(..., description="approved or rejected")
    approved_by: Optional[str] = None
    rejection_reason: Optional[str] = None


class ApprovalRequest(CatalogModel):
    """A stored ApprovalRequest."""

    id: int
    product_id: Optional[int] = None
    request_type: RequestType
    requested_by: str
    requested_at: datetime
    status: RequestStatus = RequestStatus.PENDING
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    proposed_changes: Dict[str, Any] = Field(default_factory=dict)
    current_data: Optional[Dict[str, Any]] = None

    @property
    def is_resolved(self) -> bool:
        return self.status.is_terminal
