"""Main CLI entry point for Anamnesis"""

import typer

from anamnesis import __version__
from anamnesis.cli.commands import graph as graph_module
from anamnesis.cli.commands import interview as interview_module
from anamnesis.cli.commands import server as server_module

app = typer.Typer(
    name="anamnesis",
    help="Anamnesis - slot-graph interview dialog engine",
    add_completion=False,
)

# Register subcommands
app.add_typer(interview_module.app, name="interview", help="Run an interview in the console")
app.add_typer(server_module.app, name="server", help="Start the Anamnesis API server")
app.add_typer(graph_module.app, name="graph", help="Inspect slot graphs")


def version_callback(value: bool) -> None:
    """Print version and exit"""
    if value:
        typer.echo(f"Anamnesis version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """Anamnesis - slot-graph interview dialog engine"""
    pass


def cli() -> None:
    """Entry point for CLI"""
    app()


if __name__ == "__main__":
    cli()
