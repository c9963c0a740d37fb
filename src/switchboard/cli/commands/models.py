"""Registry inspection commands: models and recommend."""

from pathlib import Path
from typing import Annotated

from rich.markup import escape
import typer

from switchboard.cli.commands import load_or_exit
from switchboard.cli.formatters import console
from switchboard.cli.formatters.panels import print_warning
from switchboard.cli.formatters.tables import create_models_table, print_table
from switchboard.routing.service import RoutingService

ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", "-c", help="Path to config.yaml."),
]


def models(config: ConfigOption = None) -> None:
    """List configured models."""
    service = RoutingService.from_config(load_or_exit(config))
    stats = service.model_statistics()
    print_table(create_models_table(stats, title=f"Models ({len(stats)})"))


def recommend(
    task_type: Annotated[str, typer.Argument(help="Task type to rank models for.")],
    config: ConfigOption = None,
) -> None:
    """Show the ranked models a task type would be dispatched to."""
    service = RoutingService.from_config(load_or_exit(config))
    ranked = service.recommend(task_type)
    if not ranked:
        print_warning(f"No model serves task type '{task_type}'")
        raise typer.Exit(1)

    console.print(f"[highlight]Ranking for[/] {escape(task_type)}", highlight=False)
    for position, model_id in enumerate(ranked, start=1):
        label = "primary" if position == 1 else "fallback" if position == 2 else ""
        console.print(f"  {position}. {model_id} [muted]{label}[/]", highlight=False)


__all__ = ["models", "recommend"]
