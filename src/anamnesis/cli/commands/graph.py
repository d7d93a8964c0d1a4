"""Graph commands for inspecting slot-graph configs."""

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from anamnesis.config.loader import ConfigLoader
from anamnesis.core.errors import ConfigError

app = typer.Typer(help="Inspect slot graphs")
console = Console()


@app.command("check")
def check_graph(
    config: Path = typer.Argument(..., help="Path to anamnesis.yaml or config directory"),
    show: bool = typer.Option(False, "--show", "-s", help="Print the slot table"),
) -> None:
    """Validate a slot-graph config and report cycles."""
    try:
        graph = ConfigLoader.load(config).build_graph()
    except ConfigError as e:
        console.print(f"[red]Invalid config:[/] {e}")
        raise typer.Exit(1) from e

    if show:
        table = Table(title="Slots")
        table.add_column("Slot")
        table.add_column("Type")
        table.add_column("Branches")
        table.add_column("Default next")
        for slot in graph:
            branches = ", ".join(
                f"{pattern} -> {target}" for pattern, target in slot.branches.items()
            )
            table.add_row(slot.id, slot.type.value, branches or "-", slot.default_next or "(end)")
        console.print(table)

    cycles = graph.find_cycles()
    if cycles:
        for cycle in cycles:
            console.print(f"[red]Cycle:[/] {' -> '.join(cycle)}")
        raise typer.Exit(1)

    console.print(f"[green]OK[/] {len(graph)} slots, root '{graph.root}', no cycles")
