"""
Command Line Interface for the Data Product Catalog.
"""

import asyncio
from contextlib import contextmanager
from typing import Iterator, Optional

import typer
from rich import print as rprint
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..catalog.enums import RequestStatus
from ..catalog.errors import CatalogError
from ..catalog.product import ProductFilters
from ..catalog.workflow import ApprovalWorkflow
from ..config import get_settings
from ..logging_config import configure_logging
from ..storage import CatalogStorage, build_storage_provider

app = typer.Typer(help="Data Product Catalog - browse products and review change requests")
console = Console()

STATUS_EMOJI = {
    "active": "🟢",
    "development": "🟡",
    "experimentacao": "🧪",
    "deprecated": "🔴",
    "pending": "⏳",
    "approved": "✅",
    "rejected": "❌",
}


@contextmanager
def open_storage() -> Iterator[CatalogStorage]:
    """Open a storage handle for the configured backend.

    The in-memory catalog only lives inside the API process, so commands
    that read or write catalog data need the sql backend.
    """
    settings = get_settings()
    if settings.storage_backend == "memory":
        console.print(
            "❌ This command needs STORAGE_BACKEND=sql; "
            "the memory backend starts empty on every run"
        )
        raise typer.Exit(code=1)

    if settings.storage_backend == "sql":
        from ..db.base import init_database

        asyncio.run(init_database())

    storage = build_storage_provider(settings).open()
    try:
        yield storage
    finally:
        storage.close()


@app.callback()
def main() -> None:
    configure_logging()


@app.command()
def serve(
    port: Optional[int] = typer.Option(None, help="Port to run the API server on"),
    host: Optional[str] = typer.Option(None, help="Host to bind the server to"),
    reload: bool = typer.Option(False, help="Reload on code changes"),
):
    """Start the catalog API server."""
    from ..main import run

    settings = get_settings()
    rprint(Panel.fit("📚 Starting Data Product Catalog", style="bold blue"))
    console.print(
        f"🚀 Serving on http://{host or settings.api_host}:{port or settings.api_port} "
        f"(storage: {settings.storage_backend})"
    )
    run(host=host, port=port, reload=reload)


@app.command("init-db")
def init_db():
    """Create all catalog tables in the configured database."""
    from ..db.base import init_database

    asyncio.run(init_database())
    console.print("✅ Database tables created")


@app.command()
def seed():
    """Load sample products into an empty catalog."""
    from ..seed import seed_catalog

    with open_storage() as storage:
        inserted = seed_catalog(storage)

    if inserted:
        console.print(f"✅ Seeded {inserted} data products")
    else:
        console.print("Catalog already has products; nothing seeded")


@app.command()
def stats():
    """Show catalog aggregate counts."""
    with open_storage() as storage:
        result = storage.stats()

    table = Table(title="Catalog Stats", show_header=True, header_style="bold magenta")
    table.add_column("Metric", style="cyan")
    table.add_column("Count", style="green", justify="right")
    table.add_row("Total products", str(result.total_products))
    table.add_row("Active", str(result.active_products))
    table.add_row("With contracts", str(result.with_contracts))
    table.add_row("Needs attention", str(result.needs_attention))
    console.print(table)


@app.command()
def products(
    search: Optional[str] = typer.Option(None, help="Text to look for in name, description, tags, owner"),
    type: Optional[str] = typer.Option(None, "--type", help="Product type"),
    domain: Optional[str] = typer.Option(None, help="Business domain"),
    status: Optional[str] = typer.Option(None, help="Lifecycle status"),
):
    """List data products."""
    filters = ProductFilters(search=search, type=type, domain=domain, status=status)
    with open_storage() as storage:
        rows = storage.list_products(filters)

    if not rows:
        console.print("No data products found")
        return

    table = Table(title="Data Products", show_header=True, header_style="bold cyan")
    table.add_column("ID", style="yellow", justify="right")
    table.add_column("Name")
    table.add_column("Type", style="blue")
    table.add_column("Domain", style="magenta")
    table.add_column("Status")
    table.add_column("Owner")

    for product in rows:
        status_value = product.status.value
        table.add_row(
            str(product.id),
            product.name,
            product.type.value,
            product.domain.value,
            f"{STATUS_EMOJI.get(status_value, '❓')} {status_value}",
            product.owner,
        )

    console.print(table)


@app.command()
def requests(
    status: Optional[str] = typer.Option(
        RequestStatus.PENDING.value, help="pending, approved, rejected or all"
    ),
):
    """List approval requests."""
    if status == "all":
        status = None
    with open_storage() as storage:
        rows = storage.list_approval_requests(status=status)

    if not rows:
        console.print("No approval requests found")
        return

    table = Table(title="Approval Requests", show_header=True, header_style="bold cyan")
    table.add_column("ID", style="yellow", justify="right")
    table.add_column("Type", style="blue")
    table.add_column("Product", justify="right")
    table.add_column("Requested by")
    table.add_column("Status")
    table.add_column("Requested at")

    for request in rows:
        status_value = request.status.value
        table.add_row(
            str(request.id),
            request.request_type.value,
            str(request.product_id) if request.product_id is not None else "-",
            request.requested_by,
            f"{STATUS_EMOJI.get(status_value, '❓')} {status_value}",
            request.requested_at.strftime("%Y-%m-%d %H:%M"),
        )

    console.print(table)


@app.command()
def review(
    request_id: int = typer.Argument(..., help="Approval request ID"),
    approve: bool = typer.Option(
        True, "--approve/--reject", help="Approve (default) or reject the request"
    ),
    reviewer: Optional[str] = typer.Option(None, help="Who is reviewing"),
    reason: Optional[str] = typer.Option(None, help="Rejection reason (required with --reject)"),
):
    """Approve or reject a pending approval request."""
    decision = RequestStatus.APPROVED if approve else RequestStatus.REJECTED

    with open_storage() as storage:
        try:
            result = ApprovalWorkflow(storage).review(
                request_id, decision, reviewer=reviewer, rejection_reason=reason
            )
        except CatalogError as e:
            console.print(f"❌ {e.message}")
            raise typer.Exit(code=1)

    if result is None:
        console.print(f"❌ Approval request {request_id} not found")
        raise typer.Exit(code=1)

    console.print(
        f"{STATUS_EMOJI[result.status.value]} Request {result.id} "
        f"({result.request_type.value}) is now {result.status.value}"
    )


if __name__ == "__main__":
    app()
