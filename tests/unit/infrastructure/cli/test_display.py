import pytest
from unittest.mock import MagicMock

from rich.panel import Panel
from rich.table import Table

from throughcache.infrastructure.cli.display import ConsoleDisplay

@pytest.fixture
def mock_console():
    """Fixture to create a mock rich Console object."""
    return MagicMock()

@pytest.fixture
def console_display(mock_console: MagicMock):
    """Fixture to create a ConsoleDisplay instance with a mocked console."""
    return ConsoleDisplay(console=mock_console)

def test_display_output_wraps_value_in_panel(console_display: ConsoleDisplay, mock_console: MagicMock):
    console_display.display_output({"name": "Ada"}, title="Record 1")
    mock_console.print.assert_called_once()
    args, _ = mock_console.print.call_args
    assert isinstance(args[0], Panel)
    assert "Record 1" in args[0].title

def test_display_output_plain_text(console_display: ConsoleDisplay, mock_console: MagicMock):
    console_display.display_output("hello")
    panel = mock_console.print.call_args.args[0]
    assert panel.renderable == "hello"

def test_display_output_unserializable_structure_falls_back_to_repr(console_display: ConsoleDisplay, mock_console: MagicMock):
    value = {"when": object()}
    console_display.display_output(value)
    panel = mock_console.print.call_args.args[0]
    assert panel.renderable == repr(value)

def test_display_stats_prints_table(console_display: ConsoleDisplay, mock_console: MagicMock):
    console_display.display_stats({"hits": 3, "hit_ratio": 0.75})
    table = mock_console.print.call_args.args[0]
    assert isinstance(table, Table)
    assert table.row_count == 2

def test_get_prompt(console_display: ConsoleDisplay, mock_console: MagicMock):
    """Test that get_prompt calls console.input and returns the result."""
    mock_console.input.return_value = "get 1"
    assert console_display.get_prompt("> ") == "get 1"
    mock_console.input.assert_called_once_with("[bold green]> [/bold green]")

def test_display_error(console_display: ConsoleDisplay, mock_console: MagicMock):
    console_display.display_error("Something went wrong")
    mock_console.print.assert_called_once_with("[bold red]Error:[/bold red] Something went wrong")

def test_display_warning(console_display: ConsoleDisplay, mock_console: MagicMock):
    console_display.display_warning("Careful")
    mock_console.print.assert_called_once_with("[bold yellow]Warning:[/bold yellow] Careful")

def test_display_info(console_display: ConsoleDisplay, mock_console: MagicMock):
    console_display.display_info("Process completed")
    mock_console.print.assert_called_once_with("[blue]Info:[/blue] Process completed")
