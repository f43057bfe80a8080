"""
FastAPI application for the Data Product Catalog.
"""

from __future__ import annotations

import importlib.metadata
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any, Dict

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .catalog.errors import CatalogError
from .catalog.routes import router as catalog_router
from .config import get_settings
from .db.base import init_database
from .logging_config import configure_logging
from .storage import build_storage_provider

logger = structlog.get_logger()

settings = get_settings()

PACKAGE_NAME = "data-product-catalog"


def app_version() -> str:
    try:
        return importlib.metadata.version(PACKAGE_NAME)
    except importlib.metadata.PackageNotFoundError:
        return "0.0.0+unknown"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    configure_logging()
    current = get_settings()
    logger.info(
        "Starting Data Product Catalog",
        storage_backend=current.storage_backend,
        environment=current.environment,
    )

    try:
        if current.storage_backend == "sql":
            await init_database()

        provider = build_storage_provider(current)
        app.state.storage_provider = provider

        if current.seed_on_startup:
            from .seed import seed_catalog

            storage = provider.open()
            try:
                seed_catalog(storage)
            finally:
                storage.close()

    except Exception as e:
        logger.error("Failed to start application", error=str(e))
        raise

    yield

    logger.info("Shutting down Data Product Catalog")
    app.state.storage_provider = None


app = FastAPI(
    title=settings.app_name,
    description="Catalog of data products with approval-gated changes",
    version=app_version(),
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed input as 400 with per-field detail."""
    errors = [
        {key: value for key, value in error.items() if key not in ("ctx", "url")}
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={"message": "Validation error", "errors": jsonable_encoder(errors)},
    )


@app.exception_handler(CatalogError)
async def catalog_exception_handler(request: Request, exc: CatalogError) -> JSONResponse:
    """Map domain errors to their HTTP status and JSON body."""
    logger.info(
        "Catalog request refused",
        path=request.url.path,
        code=exc.code,
        status_code=exc.status_code,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error", path=request.url.path, method=request.method)
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


@app.get("/health", tags=["system"])
async def health() -> Dict[str, Any]:
    """Liveness check; also reports which storage backend is wired in."""
    provider = getattr(app.state, "storage_provider", None)
    return {
        "status": "ok",
        "storage": provider.backend if provider is not None else None,
    }


@app.get("/healthz", tags=["system"])
def healthz() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "ok"}


@app.get("/version", tags=["system"])
def version() -> dict[str, str]:
    """Return the version of the application."""
    return {"version": app_version()}


app.include_router(catalog_router)
