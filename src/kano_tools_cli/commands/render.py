"""Render a template through the loop-aware template engine."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from kano_tools_core.errors import ConfigError
from kano_tools_ops.template_engine import TemplateEngine

from ..util import load_context_file, load_toolbox_config

console = Console(stderr=True)


def render(
    template: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Template file"),
    context_file: Optional[Path] = typer.Option(
        None,
        "--context",
        "-c",
        exists=True,
        dir_okay=False,
        readable=True,
        help="JSON or TOML file with template variables",
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        exists=True,
        dir_okay=False,
        readable=True,
        help="Toolbox config (.toml) whose [[data]] entries are added to the context",
    ),
    output: Optional[Path] = typer.Option(None, "--out", "-o", help="Write output to file instead of stdout"),
):
    """Render TEMPLATE with the given context.

    Config data is merged first; keys from --context win on conflict.
    """
    config = load_toolbox_config(config_file)
    try:
        context = config.resolve_data()
    except ConfigError as e:
        console.print(f"[red]❌ Invalid config data:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    if context_file is not None:
        context.update(load_context_file(context_file))

    engine = TemplateEngine(loop_key=config.loop_key)
    rendered = engine.render(template.read_text(encoding="utf-8"), context)

    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(rendered, encoding="utf-8")
        console.print(f"[green]✓[/green] Wrote {output}")
        return
    typer.echo(rendered, nl=False)
