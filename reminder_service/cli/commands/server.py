"""HTTP server command."""

import sys

import click

from reminder_service.cli.utils import error, info
from reminder_service.core.settings import get_app_settings


@click.command(name="serve")
@click.option("--host", default=None, help="Host to bind (default: APP_HOST)")
@click.option("--port", default=None, type=int, help="Port to bind (default: APP_PORT)")
@click.option("--reload/--no-reload", default=None, help="Auto-reload on code changes (default: APP_RELOAD)")
@click.option(
    "--log-level",
    default="info",
    type=click.Choice(["critical", "error", "warning", "info", "debug", "trace"]),
    help="uvicorn log level",
)
def serve(host: str | None, port: int | None, reload: bool | None, log_level: str) -> None:
    """Run the API server with uvicorn."""
    import uvicorn

    settings = get_app_settings()
    host = host or settings.host
    port = port or settings.port
    reload = settings.reload if reload is None else reload

    info(f"Server will run at: http://{host}:{port}")
    info(f"Environment: {settings.environment}")
    info(f"Job worker in API process: {'enabled' if settings.run_worker else 'disabled'}")

    try:
        uvicorn.run(
            "reminder_service.app.main:create_app",
            factory=True,
            host=host,
            port=port,
            reload=reload,
            log_level=log_level,
        )
    except Exception as e:
        error(f"Failed to start server: {e}")
        sys.exit(1)
