"""Interview command for interactive console sessions."""

import asyncio
from pathlib import Path

import typer

from anamnesis.core.errors import AnamnesisError

app = typer.Typer(help="Run an interactive interview in the console")


@app.callback(invoke_without_command=True)
def run_interview(
    config: Path = typer.Option(
        "anamnesis.yaml", "--config", "-c", help="Path to anamnesis.yaml or config directory"
    ),
    debug: bool = typer.Option(False, "--debug", help="Debug mode"),
    verbose: bool = typer.Option(False, "--verbose", help="Verbose mode"),
) -> None:
    """Start an interactive interview."""
    from anamnesis.cli.interview_runner import InterviewConfig
    from anamnesis.cli.interview_runner import run_interview as run

    interview_config = InterviewConfig(config_path=config, debug=debug, verbose=verbose)

    try:
        asyncio.run(run(interview_config))
    except AnamnesisError as e:
        typer.echo(f"Fatal error: {e}", err=True)
        raise typer.Exit(1) from e
