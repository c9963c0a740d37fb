"""Serve command: run the HTTP API with uvicorn."""

from pathlib import Path
from typing import Annotated

import typer
import uvicorn

from switchboard.cli.commands import load_or_exit
from switchboard.cli.formatters.panels import print_info, print_success
from switchboard.observability.logging import configure_logging


def serve(
    host: Annotated[
        str | None,
        typer.Option("--host", "-H", help="Host to bind to (default from config)."),
    ] = None,
    port: Annotated[
        int | None,
        typer.Option("--port", "-p", help="Port to bind to (default from config)."),
    ] = None,
    config: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Path to config.yaml."),
    ] = None,
    no_health: Annotated[
        bool,
        typer.Option("--no-health", help="Disable periodic health probes."),
    ] = False,
) -> None:
    """Start the routing HTTP API.

    Examples:

        switchboard serve

        switchboard serve --port 9000 --config ./config.yaml
    """
    from switchboard.api.app import create_app

    cfg = load_or_exit(config)
    if no_health:
        cfg = cfg.model_copy(update={"health": cfg.health.model_copy(update={"enabled": False})})
    configure_logging(cfg.logging.to_logging_config())

    bind_host = host or cfg.server.host
    bind_port = port or cfg.server.port

    print_success(f"Switchboard serving {len(cfg.models)} models")
    print_info(f"Listening on http://{bind_host}:{bind_port}")

    try:
        uvicorn.run(
            create_app(config=cfg),
            host=bind_host,
            port=bind_port,
            log_config=None,
        )
    except KeyboardInterrupt:
        print_info("Switchboard stopped")


__all__ = ["serve"]
