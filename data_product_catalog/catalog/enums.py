"""
Catalog enums.

These define the allowed values for product classification, approval
requests and change-log entries. Values are persisted as plain strings.
"""

from enum import Enum


class ProductType(str, Enum):
    """Kinds of data products the catalog tracks."""

    DASHBOARD_SELFSERVICE = "dashboard_selfservice"
    API_OUTPUTS = "api_outputs"
    INSIGHTS = "insights"
    AI_AGENTS = "ai_agents"
    RECOMMENDATION_SYSTEM = "recommendation_system"
    GENAI_CHAT = "genai_chat"
    GENAI_WORKFLOW = "genai_workflow"
    TRADITIONAL_AI = "traditional_ai"
    GENIE_SPACES = "genie_spaces"


class ProductDomain(str, Enum):
    """Business domain owning a product."""

    SALES = "sales"
    MARKETING = "marketing"
    FINANCE = "finance"
    HR = "hr"
    OPERATIONS = "operations"
    CUSTOMER_SERVICE = "customer_service"
    PRODUCT = "product"


class ProductStatus(str, Enum):
    """Lifecycle status of a product."""

    ACTIVE = "active"
    DEPRECATED = "deprecated"
    DEVELOPMENT = "development"
    EXPERIMENTACAO = "experimentacao"


# Statuses counted as "needs attention" in catalog stats
ATTENTION_STATUSES = frozenset({ProductStatus.DEPRECATED, ProductStatus.DEVELOPMENT})


class RequestType(str, Enum):
    """Mutation an approval request asks for."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class RequestStatus(str, Enum):
    """Approval request status. Approved and rejected are terminal."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self is not RequestStatus.PENDING


class ChangeType(str, Enum):
    """Kinds of change-log entries."""

    CREATED = "created"
    UPDATED = "updated"
    STATUS_CHANGED = "status_changed"
