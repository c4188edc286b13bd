import json
from pathlib import Path
from typing import Dict, List
from unittest.mock import MagicMock

import pytest
from typer.testing import CliRunner

# Import the app instance from main
from throughcache.main import app

# These fixtures are defined in tests/conftest.py:
# runner: CliRunner
# mock_console_display: MagicMock (patches ConsoleDisplay)
# cli_env: isolated store and config paths

def invoke(runner: CliRunner, cli_env: Dict[str, Path], *args: str, global_opts: List[str] = ()):
    return runner.invoke(app, [
        "--store", str(cli_env["store"]),
        "--config", str(cli_env["config"]),
        "--log-level", "CRITICAL",
        *global_opts,
        *args,
    ])

def test_put_get_delete_flow(runner: CliRunner, cli_env: Dict[str, Path], mock_console_display: MagicMock):
    """Full flow over a real JSON store file with a mocked display."""
    result = invoke(runner, cli_env, "put", "42", '{"name": "Ada", "langs": ["en"]}')
    assert result.exit_code == 0, f"CLI command failed: {result.stdout}"
    stored = json.loads(cli_env["store"].read_text(encoding="utf-8"))
    assert stored == {"42": {"name": "Ada", "langs": ["en"]}}
    mock_console_display.display_info.assert_called_with("Saved record '42'.")

    result = invoke(runner, cli_env, "get", "42")
    assert result.exit_code == 0, f"CLI command failed: {result.stdout}"
    mock_console_display.display_output.assert_called_once_with({"name": "Ada", "langs": ["en"]}, title="Record 42")

    result = invoke(runner, cli_env, "delete", "42")
    assert result.exit_code == 0, f"CLI command failed: {result.stdout}"
    assert json.loads(cli_env["store"].read_text(encoding="utf-8")) == {}
    mock_console_display.display_error.assert_not_called()

def test_get_missing_record_exits_with_error(runner: CliRunner, cli_env: Dict[str, Path], mock_console_display: MagicMock):
    result = invoke(runner, cli_env, "get", "nope")
    assert result.exit_code == 1
    mock_console_display.display_warning.assert_called_once_with("Record 'nope' not found.")
    mock_console_display.display_output.assert_not_called()

def test_delete_missing_record_is_idempotent(runner: CliRunner, cli_env: Dict[str, Path], mock_console_display: MagicMock):
    result = invoke(runner, cli_env, "delete", "ghost")
    assert result.exit_code == 0, f"CLI command failed: {result.stdout}"
    mock_console_display.display_info.assert_called_once_with("Deleted record 'ghost'.")

def test_corrupt_store_reports_error(runner: CliRunner, cli_env: Dict[str, Path], mock_console_display: MagicMock):
    cli_env["config"].write_text("store:\n  retry:\n    max_retries: 0\n", encoding="utf-8")
    cli_env["store"].write_text("{not json", encoding="utf-8")
    result = invoke(runner, cli_env, "get", "1")
    assert result.exit_code == 1
    mock_console_display.display_error.assert_called_once()
    assert mock_console_display.display_error.call_args.args[0].startswith("Get failed:")

def test_replay_script_uses_one_cache(runner: CliRunner, cli_env: Dict[str, Path], tmp_path: Path, mock_console_display: MagicMock):
    cli_env["store"].write_text(json.dumps({"a": 1, "b": 2, "c": 3}), encoding="utf-8")
    script = tmp_path / "workload.txt"
    script.write_text(
        "# LRU with capacity 2\n"
        "get a\n"
        "get b\n"
        "get a\n"
        "get c\n"
        "get b\n"
        "get a\n",
        encoding="utf-8",
    )
    result = invoke(runner, cli_env, "replay", str(script), global_opts=["--capacity", "2"])
    assert result.exit_code == 0, f"CLI command failed: {result.stdout}"

    stats = mock_console_display.display_stats.call_args.args[0]
    # a, b miss; a hits; c evicts b; b evicts a; a evicts c
    assert stats["hits"] == 1
    assert stats["misses"] == 5
    assert stats["evictions"] == 3
    assert stats["size"] == 2
    assert stats["capacity"] == 2

def test_show_config_merges_options_and_yaml(runner: CliRunner, cli_env: Dict[str, Path], mock_console_display: MagicMock):
    cli_env["config"].write_text("cache:\n  capacity: 10\n  eviction_policy: lfu\n", encoding="utf-8")
    result = invoke(runner, cli_env, "show-config", global_opts=["--ttl", "5"])
    assert result.exit_code == 0, f"CLI command failed: {result.stdout}"

    shown = mock_console_display.display_output.call_args.args[0]
    assert shown["store"] == str(cli_env["store"])
    assert shown["capacity"] == 10
    assert shown["eviction_policy"] == "lfu"
    assert shown["ttl_seconds"] == 5.0
    assert shown["retry"]["max_retries"] == 3

@pytest.mark.parametrize("global_opts", [["--capacity", "0"], ["--policy", "fifo"], ["--ttl=-1"]])
def test_invalid_options_exit_with_code_2(runner: CliRunner, cli_env: Dict[str, Path], mock_console_display: MagicMock, global_opts):
    result = invoke(runner, cli_env, "get", "1", global_opts=global_opts)
    assert result.exit_code == 2
    assert mock_console_display.display_error.call_args.args[0].startswith("Invalid configuration:")

def test_invalid_retry_configuration_exits_with_code_2(runner: CliRunner, cli_env: Dict[str, Path], mock_console_display: MagicMock, monkeypatch):
    monkeypatch.setenv("THROUGHCACHE_STORE_RETRY_MAX_RETRIES", "lots")
    result = invoke(runner, cli_env, "get", "x")
    assert result.exit_code == 2
    assert "store.retry.max_retries" in mock_console_display.display_error.call_args.args[0]

@pytest.mark.parametrize("global_opts", [["--capacity", "0"], ["--policy", "fifo"], ["--ttl=-1"]])
def test_show_config_rejects_invalid_overrides(runner: CliRunner, cli_env: Dict[str, Path], mock_console_display: MagicMock, global_opts):
    result = invoke(runner, cli_env, "show-config", global_opts=global_opts)
    assert result.exit_code == 2
    assert mock_console_display.display_error.call_args.args[0].startswith("Invalid configuration:")
    mock_console_display.display_output.assert_not_called()

def test_show_config_normalizes_policy_override(runner: CliRunner, cli_env: Dict[str, Path], mock_console_display: MagicMock):
    result = invoke(runner, cli_env, "show-config", global_opts=["--policy", "LFU"])
    assert result.exit_code == 0, f"CLI command failed: {result.stdout}"
    assert mock_console_display.display_output.call_args.args[0]["eviction_policy"] == "lfu"
