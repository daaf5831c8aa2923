from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from kano_tools_core.data import DEFAULT_TYPE, Data
from kano_tools_core.errors import ConfigError

from ..util import load_toolbox_config

app = typer.Typer(help="Config data conversion and validation")
console = Console()


@app.command()
def convert(
    value: str = typer.Argument(..., help="Raw value to convert"),
    type_name: str = typer.Option(DEFAULT_TYPE, "--type", "-t", help="auto, boolean, number, string, field, list[.type] or a class path"),
):
    """Convert VALUE the way a [[data]] entry of the given type would."""
    try:
        datum = Data(key="value", value=value, type=type_name)
        datum.validate()
    except ConfigError as e:
        console.print(f"[red]❌ {escape(str(e))}[/red]")
        raise typer.Exit(1)

    converted = datum.converted_value
    console.print(f"{escape(repr(converted))} [dim]({type(converted).__name__})[/dim]")


@app.command()
def check(
    config_file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Toolbox config file"),
):
    """Validate every [[data]] entry in CONFIG_FILE."""
    config = load_toolbox_config(config_file)

    table = Table(title=f"Data entries ({config_file.name})")
    table.add_column("Key", style="cyan")
    table.add_column("Type", style="magenta")
    table.add_column("Value", style="white")
    table.add_column("Status", style="green")

    failures = 0
    seen: set[str] = set()
    for spec in config.data:
        try:
            datum = spec.to_data()
            datum.validate()
            if datum.key in seen:
                raise ConfigError(f"Duplicate data key: {datum.key}")
            seen.add(datum.key)
            status = f"✓ {escape(repr(datum.converted_value))}"
        except ConfigError as e:
            failures += 1
            status = f"[red]❌ {escape(str(e))}[/red]"
        table.add_row(escape(str(spec.key)), escape(spec.type), escape(str(spec.value)), status)

    console.print(table)
    if failures:
        console.print(f"[red]{failures} invalid data entr{'y' if failures == 1 else 'ies'}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]✓[/green] {len(config.data)} data entries valid")
