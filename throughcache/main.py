"""Main entry point for the throughcache CLI.

Sets up the Typer CLI application, performs dependency injection (Composition Root),
defines CLI commands, and delegates execution to the CommandHandler.
Every command builds its own CacheManager; nothing is held globally.
"""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import typer
from typing_extensions import Annotated

# --- Core Layer ---
from throughcache.core.cache_manager import CacheManager
from throughcache.core.command_handler import CommandHandler
from throughcache.core.services.record_service import RecordService

# --- Domain Layer ---
from throughcache.domain.exceptions import CacheError

# --- Infrastructure Layer ---
# Config
from throughcache.infrastructure.config.settings import (
    DEFAULT_CONFIG_FILE, CacheSettings, get_cache_settings, get_logging_settings, get_retry_settings,
    get_store_path, load_configuration, validate_cache_settings,
)
# UI
from throughcache.infrastructure.cli.display import ConsoleDisplay
# Backing source
from throughcache.infrastructure.backing.json_file_source import JsonFileBackingSource
from throughcache.infrastructure.resilience.retrying_source import RetryingBackingSource
# Monitoring
from throughcache.infrastructure.monitoring.logger_setup import setup_logging

logger = logging.getLogger(__name__)


@dataclass
class CliOptions:
    """Global options collected by the callback, shared with every command."""
    store: Optional[Path] = None
    capacity: Optional[int] = None
    policy: Optional[str] = None
    ttl: Optional[float] = None


def effective_cache_settings(options: CliOptions) -> CacheSettings:
    """Merges CLI overrides over configured cache settings and validates the result.

    Raises:
        ConfigurationError: If a configured or overridden value is invalid.
    """
    configured = get_cache_settings()
    return validate_cache_settings(
        options.capacity if options.capacity is not None else configured.capacity,
        options.policy if options.policy is not None else configured.eviction_policy,
        options.ttl if options.ttl is not None else configured.ttl_seconds,
    )


# --- Dependency Injection (Manual) ---

def create_dependencies(options: CliOptions) -> Dict[str, Any]:
    """Creates and wires up all dependencies for one command.

    This acts as the Composition Root. CLI options override configuration.

    Raises:
        CacheError: If the resulting cache configuration is invalid.
    """
    dependencies: Dict[str, Any] = {}
    dependencies['ui'] = ConsoleDisplay()

    settings = effective_cache_settings(options)
    store_path = options.store or get_store_path()

    source = JsonFileBackingSource(store_path)
    dependencies['backing_source'] = RetryingBackingSource.from_policy(source, get_retry_settings())
    dependencies['cache_manager'] = CacheManager(
        source=dependencies['backing_source'],
        capacity=settings.capacity,
        eviction_policy=settings.eviction_policy,
        ttl=settings.ttl_seconds,
    )
    dependencies['record_service'] = RecordService(dependencies['cache_manager'])
    dependencies['command_handler'] = CommandHandler(
        record_service=dependencies['record_service'],
        ui=dependencies['ui'],
    )
    logger.info("All dependencies initialized successfully.")
    return dependencies


def _handler(ctx: typer.Context) -> CommandHandler:
    options: CliOptions = ctx.obj or CliOptions()
    try:
        return create_dependencies(options)['command_handler']
    except CacheError as e:
        logger.error(f"Fatal error during initialization: {e}")
        ConsoleDisplay().display_error(f"Invalid configuration: {e}")
        raise typer.Exit(code=2)


def _finish(succeeded: bool) -> None:
    if not succeeded:
        raise typer.Exit(code=1)


# --- Typer App Definition ---
app = typer.Typer(
    name="throughcache",
    help="throughcache: read-through / write-through cache in front of a JSON record store.",
    add_completion=False,
)


@app.callback()
def main_callback(
    ctx: typer.Context,
    store: Annotated[Optional[Path], typer.Option("--store", "-s", help="Path to the JSON record store.")] = None,
    capacity: Annotated[Optional[int], typer.Option("--capacity", "-c", help="Maximum cached entries.")] = None,
    policy: Annotated[Optional[str], typer.Option("--policy", "-p", help="Eviction policy: 'lru' or 'lfu'.")] = None,
    ttl: Annotated[Optional[float], typer.Option("--ttl", help="Entry time-to-live in seconds.")] = None,
    config: Annotated[Optional[Path], typer.Option("--config", help="YAML configuration file.")] = None,
    log_level: Annotated[Optional[str], typer.Option("--log-level", help="Logging level (e.g. DEBUG).")] = None,
):
    """Global options, configuration and logging."""
    load_configuration(config_file=config or DEFAULT_CONFIG_FILE, force=True)
    log_settings = get_logging_settings()
    setup_logging(
        log_level=log_level or log_settings['level'],
        log_format=log_settings['format'],
        log_file=log_settings['file'],
    )
    ctx.obj = CliOptions(store=store, capacity=capacity, policy=policy, ttl=ttl)


# --- CLI Commands ---

@app.command()
def get(
    ctx: typer.Context,
    record_id: Annotated[str, typer.Argument(help="Id of the record to read.")],
):
    """Read a record through the cache."""
    handler = _handler(ctx)
    _finish(asyncio.run(handler.handle_get(record_id)))


@app.command()
def put(
    ctx: typer.Context,
    record_id: Annotated[str, typer.Argument(help="Id of the record to write.")],
    value: Annotated[str, typer.Argument(help="Record value (JSON, or plain text).")],
):
    """Write a record through to the store and the cache."""
    handler = _handler(ctx)
    _finish(asyncio.run(handler.handle_put(record_id, value)))


@app.command()
def delete(
    ctx: typer.Context,
    record_id: Annotated[str, typer.Argument(help="Id of the record to delete.")],
):
    """Delete a record from the store and the cache."""
    handler = _handler(ctx)
    _finish(asyncio.run(handler.handle_delete(record_id)))


@app.command()
def replay(
    ctx: typer.Context,
    script: Annotated[Path, typer.Argument(exists=True, file_okay=True, dir_okay=False,
                                           readable=True, resolve_path=True,
                                           help="File with one shell command per line.")],
):
    """Run a command script against one cache instance and print statistics."""
    handler = _handler(ctx)
    lines = script.read_text(encoding='utf-8').splitlines()
    asyncio.run(handler.run_script(lines))


@app.command()
def shell(ctx: typer.Context):
    """Start an interactive cache shell."""
    handler = _handler(ctx)
    asyncio.run(handler.run_shell())


@app.command(name="show-config")
def show_config(ctx: typer.Context):
    """Show the effective cache configuration."""
    options: CliOptions = ctx.obj or CliOptions()
    ui = ConsoleDisplay()
    try:
        settings = effective_cache_settings(options)
        retry = get_retry_settings()
    except CacheError as e:
        ui.display_error(f"Invalid configuration: {e}")
        raise typer.Exit(code=2)
    ui.display_output({
        "store": str(options.store or get_store_path()),
        "capacity": settings.capacity,
        "eviction_policy": settings.eviction_policy,
        "ttl_seconds": settings.ttl_seconds,
        "retry": dict(retry),
    }, title="Configuration")


# --- Main Execution Guard ---

def cli_entry_point():
    """Function to be called by the script entry point in pyproject.toml."""
    app()

if __name__ == "__main__":
    cli_entry_point()
