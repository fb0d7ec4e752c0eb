"""Server command."""

from __future__ import annotations

import click
import uvicorn

from marketplace_bff.cli.utils import info
from marketplace_bff.core.settings import get_app_settings


@click.command()
@click.option("--host", default=None, help="Host to bind (default: from settings)")
@click.option("--port", default=None, type=int, help="Port to bind (default: from settings)")
@click.option("--reload/--no-reload", default=False, help="Enable auto-reload on code changes")
def serve(host: str | None, port: int | None, reload: bool) -> None:
    """Run the GraphQL server with uvicorn."""
    settings = get_app_settings()
    host = host or settings.host
    port = port or settings.port
    info(f"Serving at http://{host}:{port} ({settings.environment})")
    uvicorn.run(
        "marketplace_bff.app.main:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        # Logging is configured by the application lifespan
        log_config=None,
    )
