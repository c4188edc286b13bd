"""Command Handler: Orchestrates CLI command execution.

Receives commands from the main entry point (main.py) or from the
interactive shell and delegates the work to the RecordService. Errors are
reported on the UserInterface and never escape a command.
"""

import asyncio
import json
import logging
import shlex
from typing import Any, Iterable

# Core Services Imports
from throughcache.core.services.record_service import RecordService

# Domain Layer Imports
from throughcache.domain.exceptions import CacheError, NotFoundError, StoreError
from throughcache.domain.interfaces.user_interface import UserInterface

logger = logging.getLogger(__name__)

EXIT_COMMANDS = ("exit", "quit")

SHELL_HELP = """Commands:
  get <id>             read a record (through the cache)
  put <id> <value>     write a record; value is parsed as JSON (single-quote it), else kept as text
  del <id>             delete a record from the store and the cache
  evict <id>           drop a record from the cache only
  stats                show cache statistics
  clear                drop every cached entry
  help                 show this message
  exit | quit          leave the shell"""

def parse_value(raw: str) -> Any:
    """Parses a command-line value as JSON, falling back to the raw text."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw

class CommandHandler:
    """Handles incoming commands and delegates to the record service."""

    def __init__(self, record_service: RecordService, ui: UserInterface):
        """Initializes the CommandHandler with required services."""
        self.record_service = record_service
        self.ui = ui

    async def _guard(self, action: str, coro) -> bool:
        try:
            await coro
            return True
        except NotFoundError as e:
            self.ui.display_warning(f"Record {e.key!r} not found.")
        except StoreError as e:
            logger.warning(f"{action} failed: {e}")
            self.ui.display_error(f"{action} failed: {e}")
        except (CacheError, ValueError) as e:
            self.ui.display_error(f"{action} failed: {e}")
        except Exception as e:
            logger.error(f"Unexpected error during {action.lower()}: {e}", exc_info=True)
            self.ui.display_error(f"{action} failed: {e}")
        return False

    async def handle_get(self, record_id: str) -> bool:
        """Handles the 'get' command."""
        async def _run():
            value = await self.record_service.get_record(record_id)
            self.ui.display_output(value, title=f"Record {record_id}")
        return await self._guard("Get", _run())

    async def handle_put(self, record_id: str, raw_value: str) -> bool:
        """Handles the 'put' command."""
        async def _run():
            await self.record_service.save_record(record_id, parse_value(raw_value))
            self.ui.display_info(f"Saved record '{record_id}'.")
        return await self._guard("Put", _run())

    async def handle_delete(self, record_id: str) -> bool:
        """Handles the 'delete' command."""
        async def _run():
            await self.record_service.delete_record(record_id)
            self.ui.display_info(f"Deleted record '{record_id}'.")
        return await self._guard("Delete", _run())

    async def handle_evict(self, record_id: str) -> bool:
        async def _run():
            removed = await self.record_service.evict_record(record_id)
            if removed:
                self.ui.display_info(f"Evicted '{record_id}' from the cache.")
            else:
                self.ui.display_info(f"'{record_id}' was not cached.")
        return await self._guard("Evict", _run())

    async def handle_clear(self) -> bool:
        async def _run():
            count = await self.record_service.clear_cache()
            self.ui.display_info(f"Cleared {count} cached entries.")
        return await self._guard("Clear", _run())

    def handle_stats(self) -> None:
        self.ui.display_stats(self.record_service.cache_stats())

    async def execute_line(self, line: str) -> bool:
        """Runs one shell/script line.

        Returns:
            False when the line asks to leave the shell, True otherwise.
        """
        try:
            parts = shlex.split(line)
        except ValueError as e:
            self.ui.display_error(f"Could not parse command: {e}")
            return True
        if not parts or parts[0].startswith('#'):
            return True

        command, args = parts[0].lower(), parts[1:]
        if command in EXIT_COMMANDS:
            return False
        if command == "help":
            self.ui.display_info(SHELL_HELP)
        elif command == "stats":
            self.handle_stats()
        elif command == "clear":
            await self.handle_clear()
        elif command in ("get", "del", "delete", "evict") and len(args) == 1:
            handlers = {
                "get": self.handle_get,
                "del": self.handle_delete,
                "delete": self.handle_delete,
                "evict": self.handle_evict,
            }
            await handlers[command](args[0])
        elif command == "put" and len(args) >= 2:
            await self.handle_put(args[0], " ".join(args[1:]))
        else:
            self.ui.display_error(f"Unknown or malformed command: '{line.strip()}'. Type 'help' for usage.")
        return True

    async def run_script(self, lines: Iterable[str]) -> int:
        """Executes script lines in order and reports statistics.

        Returns:
            The number of lines that were executed.
        """
        executed = 0
        for line in lines:
            if not line.strip():
                continue
            executed += 1
            if not await self.execute_line(line):
                break
        self.handle_stats()
        return executed

    async def run_shell(self) -> None:
        """Interactive loop; the prompt is read off the event loop thread."""
        logger.info("Starting interactive cache shell.")
        self.ui.display_info("Interactive cache shell. Type 'help' for commands, 'exit' to leave.")
        while True:
            try:
                line = await asyncio.to_thread(self.ui.get_prompt, "cache> ")
            except (EOFError, KeyboardInterrupt):
                break
            if not await self.execute_line(line):
                break
        self.ui.display_info("Leaving cache shell.")
