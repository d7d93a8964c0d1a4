"""Server command to start the API."""

import os
from pathlib import Path

import typer
import uvicorn

from anamnesis.config.loader import ConfigLoader
from anamnesis.core.errors import ConfigError

app = typer.Typer(help="Start API server")


@app.callback(invoke_without_command=True)
def start_server(
    config: Path = typer.Option(
        ..., "--config", "-c", help="Path to anamnesis.yaml", exists=True
    ),
    host: str | None = typer.Option(None, "--host", "-h", help="Defaults to settings.server.host"),
    port: int | None = typer.Option(None, "--port", "-p", help="Defaults to settings.server.port"),
    reload: bool = typer.Option(False, "--reload"),
) -> None:
    """Start the Anamnesis API server."""

    # 1. Validate Config
    try:
        loaded = ConfigLoader.load(config)
    except ConfigError as e:
        typer.echo(f"Invalid config: {e}", err=True)
        raise typer.Exit(1) from e

    # 2. Set Env Vars for the server process (it loads config from env)
    os.environ["ANAMNESIS_CONFIG_PATH"] = str(config.absolute())

    host = host or loaded.settings.server.host
    port = port or loaded.settings.server.port
    typer.echo(f"Starting Anamnesis server on http://{host}:{port}")
    typer.echo(f"   Config: {config}")

    uvicorn.run(
        "anamnesis.server.api:app",
        host=host,
        port=port,
        reload=reload,
        log_level=loaded.settings.logging.level.lower(),
    )
