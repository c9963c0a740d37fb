"""Rich formatters for CLI output.

Shared Console instance and semantic colors for the Switchboard CLI:
- green: success
- yellow: warning
- red: error
- blue: info
"""

from rich.console import Console
from rich.theme import Theme

SWITCHBOARD_THEME = Theme(
    {
        "success": "green",
        "warning": "yellow",
        "error": "red",
        "info": "blue",
        "muted": "dim",
        "highlight": "bold cyan",
    }
)

console = Console(theme=SWITCHBOARD_THEME)

__all__ = ["console", "SWITCHBOARD_THEME"]
