"""Shared CLI output helpers.

``console`` writes to stdout for interactive commands; ``err_console`` writes
to stderr and is the only console the server may use, because stdout
carries the protocol.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from fmcp.tools.definitions import ToolDefinition  # noqa: TC001

console = Console()
err_console = Console(stderr=True)


def configure_logging(level: str) -> None:
    """Send all log records to stderr through rich."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False, rich_tracebacks=True)],
        force=True,
    )


def print_tools_table(tools: Sequence[ToolDefinition], *, title: str = "Tools") -> None:
    """Pretty-print tool definitions as a table."""
    table = Table(title=title)
    table.add_column("Name", style="cyan")
    table.add_column("Required")
    table.add_column("Description")

    for tool in tools:
        table.add_row(
            tool.name,
            ", ".join(tool.required_inputs) or "-",
            _truncate(tool.description),
        )

    console.print(table)


def _truncate(text: str, max_len: int = 80) -> str:
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."
