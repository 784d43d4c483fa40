"""Console output for the ghopac command."""

import json
import threading
from typing import Any

from rich.console import Console
from rich.json import JSON
from rich.markup import escape


class OutputFormatter:
    """Writes operator-facing lines to the terminal.

    Informational output goes to stdout and is suppressed by ``quiet``.
    Warnings and errors go to stderr and are always shown. Workers share
    one formatter, so every write holds a lock to keep lines whole.
    """

    def __init__(self, quiet: bool = False, no_color: bool = False):
        self.quiet = quiet
        self.console = Console(no_color=no_color, highlight=False)
        self.err_console = Console(stderr=True, no_color=no_color, highlight=False)
        self._lock = threading.Lock()

    def print(self, message: str = "") -> None:
        """Print a plain line unless quiet."""
        if self.quiet:
            return
        with self._lock:
            self.console.print(escape(message), soft_wrap=True)

    def info(self, message: str) -> None:
        if self.quiet:
            return
        with self._lock:
            self.console.print(escape(message), soft_wrap=True)

    def success(self, message: str) -> None:
        if self.quiet:
            return
        with self._lock:
            self.console.print(f"[green]{escape(message)}[/green]", soft_wrap=True)

    def warning(self, message: str) -> None:
        with self._lock:
            self.err_console.print(
                f"[yellow]{escape(message)}[/yellow]", soft_wrap=True
            )

    def error(self, message: str) -> None:
        with self._lock:
            self.err_console.print(f"[red]{escape(message)}[/red]", soft_wrap=True)

    def print_json(self, data: Any) -> None:
        """Print data as indented JSON, regardless of quiet."""
        with self._lock:
            self.console.print(JSON(json.dumps(data, default=str)), soft_wrap=True)
