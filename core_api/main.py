from __future__ import annotations

import sys
from typing import Optional

import typer
import uvicorn

from core_api.config import get_settings
from core_api.utils.logging import configure_from_settings

app = typer.Typer(help="core-api server CLI.")


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"{settings.app_name} {settings.app_version} env={settings.app_env} | "
        f"DB={settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name} "
        f"pool={settings.db_connection_limit} tz={settings.db_timezone} | "
        f"port={settings.port}"
    )


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", "--host", help="Interface to bind."),
    port: Optional[int] = typer.Option(
        None,
        "--port",
        "-p",
        help="Override the listening port (default from settings).",
    ),
) -> None:
    """
    Run the HTTP server.
    """
    settings = get_settings()
    configure_from_settings(settings)
    listen_port = port or settings.port
    typer.echo(f"Server listening on {listen_port}")
    uvicorn.run(
        "core_api.router:create_app",
        factory=True,
        host=host,
        port=listen_port,
        log_config=None,
    )


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
