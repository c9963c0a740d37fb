"""Config command group for Switchboard.

Create and inspect the YAML configuration file.
"""

from pathlib import Path
from typing import Annotated

import typer

from switchboard.cli.commands import load_or_exit
from switchboard.cli.formatters import console
from switchboard.cli.formatters.panels import print_error, print_success
from switchboard.cli.formatters.tables import create_key_value_table, print_table
from switchboard.config.loader import create_default_config, dump_config, resolve_config_path
from switchboard.core.errors import ConfigError

app = typer.Typer(
    name="config",
    help="Manage Switchboard configuration.",
    no_args_is_help=True,
)

ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", "-c", help="Path to config.yaml."),
]


@app.command()
def init(
    directory: Annotated[
        Path | None,
        typer.Option("--dir", "-d", help="Directory to write config.yaml into (default ~/.switchboard)."),
    ] = None,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Overwrite an existing config.yaml."),
    ] = False,
) -> None:
    """Write a default config.yaml with the stock model catalog."""
    try:
        path = create_default_config(directory, overwrite=force)
    except ConfigError as e:
        print_error(f"{e.message}\nUse --force to overwrite.", title="Configuration Exists")
        raise typer.Exit(1) from e
    print_success(f"Configuration written to {path}")


@app.command()
def show(
    config: ConfigOption = None,
    raw: Annotated[
        bool,
        typer.Option("--raw", help="Print the full configuration as YAML."),
    ] = False,
) -> None:
    """Display the effective configuration."""
    cfg = load_or_exit(config)
    if raw:
        console.print(dump_config(cfg), markup=False, highlight=False)
        return

    path = resolve_config_path(config)
    summary = {
        "config_path": f"{path}{'' if path.exists() else ' (not found, using defaults)'}",
        "models": ", ".join(spec.id for spec in cfg.models),
        "aliases": len(cfg.routing.aliases),
        "clearance_rules": len(cfg.routing.clearance_rules),
        "health_interval": f"{cfg.health.interval_seconds:g}s",
        "health_window": cfg.health.window_size,
        "server": f"{cfg.server.host}:{cfg.server.port}",
        "log_level": cfg.logging.level,
    }
    print_table(create_key_value_table(summary, "Current Configuration"))


__all__ = ["app"]
