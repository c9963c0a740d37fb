"""Switchboard - model routing and fallback service.

Routes task requests to one of several interchangeable model backends based on
capability, cost, latency, load and reliability, falls back to the next-best
model on failure, and keeps model health current with periodic probes.

Example:
    # Using CLI
    switchboard serve --port 8080
    switchboard recommend medical

    # Using Python
    from switchboard.config import get_default_config
    from switchboard.routing import RoutingService, TaskRequest

    service = RoutingService.from_config(get_default_config())
    result = await service.route(TaskRequest(task_type="medical", payload="..."))
"""

__version__ = "0.4.0"

__all__ = ["__version__", "main"]


def main() -> None:
    """Main entry point for the Switchboard CLI.

    This function invokes the Typer app from switchboard.cli.main.
    """
    from switchboard.cli.main import app

    app()
