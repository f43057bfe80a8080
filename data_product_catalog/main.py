"""
Main entry point for the Data Product Catalog API server.
"""

from typing import Optional

from .api import app  # noqa: F401
from .config import get_settings


def run(
    host: Optional[str] = None,
    port: Optional[int] = None,
    reload: Optional[bool] = None,
) -> None:
    """Serve the API with uvicorn; unset arguments come from settings."""
    import uvicorn

    settings = get_settings()
    reload = settings.debug if reload is None else reload
    uvicorn.run(
        "data_product_catalog.main:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=reload,
        workers=1 if reload else settings.api_workers,
        log_config=None,
    )


if __name__ == "__main__":
    run()
