"""CLI command modules for Switchboard."""

from pathlib import Path

import typer

from switchboard.cli.formatters.panels import print_error
from switchboard.config.loader import load_config_or_default
from switchboard.config.models import SwitchboardConfig
from switchboard.core.errors import ConfigError


def load_or_exit(config_path: Path | None) -> SwitchboardConfig:
    """Load configuration, or print the error and exit with status 1."""
    try:
        return load_config_or_default(config_path)
    except ConfigError as e:
        print_error(e.message, title="Configuration Error")
        raise typer.Exit(1) from e
