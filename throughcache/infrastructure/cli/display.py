import json
import logging
from typing import Any, Mapping, Optional

from rich.console import Console
from rich.json import JSON
from rich.panel import Panel
from rich.box import ROUNDED, SIMPLE
from rich.table import Table

from throughcache.domain.interfaces.user_interface import UserInterface

logger = logging.getLogger(__name__)

class ConsoleDisplay(UserInterface):
    """Concrete implementation of UserInterface using the rich library for console output."""

    def __init__(self, console: Optional[Console] = None):
        """Initializes the rich Console."""
        self.console = console or Console()

    def display_output(self, output: Any, **kwargs: Any) -> None:
        """Displays a value, pretty-printing JSON-compatible structures.

        Args:
            output: The value to display.
            **kwargs: Additional arguments including:
                - title: Panel title (default: "Result")
        """
        title = kwargs.get("title", "Result")
        if isinstance(output, (dict, list)):
            try:
                body = JSON(json.dumps(output))
            except (TypeError, ValueError) as e:
                logger.debug(f"Value is not JSON serializable, printing repr: {e}")
                body = repr(output)
        else:
            body = str(output)
        self.console.print(Panel(body, title=f"[bold white]{title}[/bold white]", title_align="left",
                                 border_style="blue", box=ROUNDED, padding=(0, 1)))

    def display_error(self, error_message: str, **kwargs: Any) -> None:
        self.console.print(f"[bold red]Error:[/bold red] {error_message}")

    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        self.console.print(f"[bold yellow]Warning:[/bold yellow] {warning_message}")

    def display_info(self, info_message: str, **kwargs: Any) -> None:
        self.console.print(f"[blue]Info:[/blue] {info_message}")

    def display_stats(self, stats: Mapping[str, Any], **kwargs: Any) -> None:
        """Renders cache statistics as a two-column table."""
        table = Table(title=kwargs.get("title", "Cache statistics"), box=SIMPLE, show_header=True)
        table.add_column("Metric", style="cyan")
        table.add_column("Value", justify="right", style="bold")
        for name, value in stats.items():
            rendered = f"{value:.2%}" if name == "hit_ratio" else str(value)
            table.add_row(name, rendered)
        self.console.print(table)

    def get_prompt(self, prompt_message: str = "> ") -> str:
        return self.console.input(f"[bold green]{prompt_message}[/bold green]")
