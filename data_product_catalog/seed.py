"""
Sample catalog content for demos and local development.
"""

from typing import Any, Dict, List

import structlog

from .catalog.changes import ProductChangeCreate
from .catalog.enums import ChangeType
from .catalog.lineage import DataLineageCreate, ProductDependencyCreate
from .catalog.product import DataProductCreate
from .storage.base import CatalogStorage

logger = structlog.get_logger(__name__)

SEED_USER = "demo@example.com"

SAMPLE_PRODUCTS: List[Dict[str, Any]] = [
    {
        "name": "Dashboard Executivo Financeiro",
        "description": "Executive view of revenue, margin and cash flow, refreshed in real time.",
        "type": "dashboard_selfservice",
        "domain": "finance",
        "status": "active",
        "owner": "Carlos Silva",
        "ownerInitials": "CS",
        "tags": ["dashboard", "finance", "executive"],
        "metadata": {"views": "2.1k", "refresh": "real-time", "widgets": 12},
        "contractSLA": "99.5% uptime, real-time",
        "qualityMetrics": {"freshness": 99.8, "usability": 95.2},
        "upstreamSources": ["erp.ledger", "treasury.cashflow"],
        "downstreamTargets": ["board-report"],
    },
    {
        "name": "Relatório Self-Service Vendas",
        "description": "Self-service sales reports by region, product and period.",
        "type": "dashboard_selfservice",
        "domain": "sales",
        "status": "active",
        "owner": "Ana Rodrigues",
        "ownerInitials": "AR",
        "tags": ["self-service", "sales", "reports"],
        "contractSLA": "99% uptime, <3s load time",
        "qualityMetrics": {"performance": 92.1, "satisfaction": 88.5},
    },
    {
        "name": "Dashboard Qualidade Produtos",
        "description": "Quality, defect and customer satisfaction indicators per product line.",
        "type": "dashboard_selfservice",
        "domain": "operations",
        "status": "development",
        "owner": "Fernanda Oliveira",
        "ownerInitials": "FO",
        "tags": ["quality", "products", "monitoring"],
    },
    {
        "name": "API Customer 360",
        "description": "Unified customer view aggregated from multiple sources with a quality score.",
        "type": "api_outputs",
        "domain": "sales",
        "status": "active",
        "owner": "Camila Torres",
        "ownerInitials": "CT",
        "tags": ["customer", "360", "unified"],
        "contractSLA": "99.7% uptime, <300ms response",
        "apiEndpoint": "https://api.example.com/v1/customers",
        "technicalContact": "camila.torres@example.com",
        "complianceLevel": "LGPD",
    },
    {
        "name": "Sistema de Recomendação E-commerce",
        "description": "Product recommendations from browsing behaviour and purchase history.",
        "type": "recommendation_system",
        "domain": "sales",
        "status": "active",
        "owner": "Ana Carolina",
        "ownerInitials": "AC",
        "tags": ["ml", "recommendation", "ecommerce", "personalization"],
        "contractSLA": "Latency < 100ms, 99.9% uptime",
        "qualityMetrics": {"precision": 91.2, "recall": 88.7},
        "modelType": "Collaborative Filtering + Deep Learning",
        "confidenceLevel": "high",
        "dataSource": "user_interactions, product_catalog, purchase_history",
        "updateFrequency": "real-time",
    },
    {
        "name": "Assistente Virtual Atendimento",
        "description": "Customer support chatbot with automatic resolution and smart escalation.",
        "type": "genai_chat",
        "domain": "customer_service",
        "status": "active",
        "owner": "Marcos Silva",
        "ownerInitials": "MS",
        "tags": ["chatbot", "ai", "customer-service", "nlp"],
        "modelType": "LLM",
        "confidenceLevel": "medium",
    },
    {
        "name": "Análise Preditiva Churn Beta",
        "description": "Experimental churn prediction model using deep learning.",
        "type": "traditional_ai",
        "domain": "customer_service",
        "status": "experimentacao",
        "owner": "Data Science Lab",
        "ownerInitials": "DS",
        "tags": ["experimental", "churn", "deep-learning", "beta"],
        "modelType": "LSTM Neural Network",
        "updateFrequency": "weekly",
    },
    {
        "name": "Dashboard Análise Sentimentos Legacy",
        "description": "Social media sentiment dashboard, replaced by the GenAI workflow.",
        "type": "dashboard_selfservice",
        "domain": "marketing",
        "status": "deprecated",
        "owner": "Sistema Legacy",
        "ownerInitials": "SL",
        "tags": ["legacy", "sentiment", "social", "deprecated"],
    },
]


def seed_catalog(storage: CatalogStorage) -> int:
    """Insert sample products, lineage, dependencies and favorites.

    Does nothing when the catalog already holds products. Returns the number
    of products inserted.
    """
    if storage.list_products():
        logger.info("Catalog already seeded")
        return 0

    with storage.transaction():
        products = [
            storage.create_product(DataProductCreate.model_validate(data), changed_by="system")
            for data in SAMPLE_PRODUCTS
        ]
        by_name = {p.name: p for p in products}

        executive = by_name["Dashboard Executivo Financeiro"]
        storage.add_lineage(
            DataLineageCreate(
                product_id=executive.id,
                source_type="table",
                source_name="erp.ledger_entries",
                source_description="General ledger postings",
                transformations=["aggregate by cost center", "currency conversion"],
            )
        )
        storage.add_dependency(
            ProductDependencyCreate(
                product_id=executive.id,
                dependency_type="table",
                dependency_name="ledger_entries",
                dependency_schema="erp",
                description="Daily ledger snapshot",
            )
        )

        recommender = by_name["Sistema de Recomendação E-commerce"]
        storage.add_lineage(
            DataLineageCreate(
                product_id=recommender.id,
                source_type="model",
                source_name="user-embeddings",
                transformations=["feature scaling"],
            )
        )
        storage.add_dependency(
            ProductDependencyCreate(
                product_id=recommender.id,
                dependency_type="dataset",
                dependency_name="purchase_history",
                is_required=False,
            )
        )

        legacy = by_name["Dashboard Análise Sentimentos Legacy"]
        storage.record_change(
            ProductChangeCreate(
                product_id=legacy.id,
                changed_by="system",
                change_type=ChangeType.STATUS_CHANGED,
                field_name="status",
                old_value="active",
                new_value="deprecated",
                description='Status changed from "active" to "deprecated"',
            )
        )

        storage.add_favorite(SEED_USER, executive.id)
        storage.add_favorite(SEED_USER, recommender.id)

    logger.info("Catalog seeded", products=len(products))
    return len(products)
