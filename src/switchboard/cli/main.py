"""Switchboard CLI main entry point.

Defines the Typer application and registers all commands.
"""

from typing import Annotated

import typer

from switchboard import __version__
from switchboard.cli.commands import config, models, serve
from switchboard.cli.formatters import console

app = typer.Typer(
    name="switchboard",
    help="Switchboard - model routing and fallback service",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.command("serve")(serve.serve)
app.command("models")(models.models)
app.command("recommend")(models.recommend)
app.add_typer(config.app, name="config")


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold cyan]Switchboard[/] version [green]{__version__}[/]")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
) -> None:
    """Switchboard - route tasks to the best available model.

    Use [bold cyan]switchboard COMMAND --help[/] for command-specific help.
    """


__all__ = ["app", "main"]
