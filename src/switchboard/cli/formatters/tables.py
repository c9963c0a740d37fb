"""Rich tables for registry and configuration display."""

from typing import Any

from rich.table import Table

from switchboard.cli.formatters import console


def create_table(
    title: str | None = None,
    *,
    show_header: bool = True,
    border_style: str = "blue",
    header_style: str = "bold cyan",
) -> Table:
    """Create a Rich Table with consistent Switchboard styling.

    Example:
        table = create_table("Models")
        table.add_column("ID", style="cyan")
        table.add_row("gpt-4-turbo")
        print_table(table)
    """
    return Table(
        title=title,
        show_header=show_header,
        border_style=border_style,
        header_style=header_style,
        row_styles=["", "dim"],
    )


def create_key_value_table(
    data: dict[str, Any],
    title: str | None = None,
    *,
    key_style: str = "cyan",
) -> Table:
    """Create a two-column table for key-value data."""
    table = create_table(title, show_header=False)
    table.add_column("Key", style=key_style, no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(str(key), str(value))

    return table


def create_models_table(stats: dict[str, dict[str, Any]], title: str = "Models") -> Table:
    """Registry statistics, one row per model."""
    table = create_table(title)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Provider")
    table.add_column("Capabilities")
    table.add_column("Load", justify="right")
    table.add_column("Reliability", justify="right")
    table.add_column("Latency (s)", justify="right")
    table.add_column("Cost/unit", justify="right")
    table.add_column("Available", justify="center")

    for model_id, row in stats.items():
        available = "[success]yes[/]" if row["available"] else "[error]no[/]"
        table.add_row(
            model_id,
            row["provider"],
            ", ".join(row["capabilities"]),
            f"{row['currentLoad']}/{row['maxCapacity']}",
            f"{row['reliability']:.2f}",
            f"{row['averageLatency']:.2f}",
            f"{row['costPerUnit']:g}",
            available,
        )

    return table


def print_table(table: Table) -> None:
    console.print(table)


__all__ = [
    "create_table",
    "create_key_value_table",
    "create_models_table",
    "print_table",
]
