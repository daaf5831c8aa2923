from __future__ import annotations

import typer

from .util import configure_logging, configure_stdio

app = typer.Typer(help="kano-tools: Template loop control and config data CLI")


@app.callback()
def _init(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    configure_stdio()
    configure_logging(verbose)


from .commands import render as render_cmd  # noqa: E402
from .commands import data_cmd as data_cmd  # noqa: E402

app.command(name="render")(render_cmd.render)
app.add_typer(data_cmd.app, name="data", help="Config data conversion and validation")


def main():
    app()
