"""
Terminal utilities for structured logging.

Provides:
- A shared rich Console (stderr)
- setup_logging(): stdlib logging routed through rich
- print_summary(): startup banner as a two-column table
"""

import logging
from typing import Iterable, Tuple

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table


console = Console(stderr=True)

LOG_LEVELS = {
    'debug': logging.DEBUG,
    'info': logging.INFO,
    'warning': logging.WARNING,
    'warn': logging.WARNING,
    'error': logging.ERROR,
}


def parse_log_level(level: str | int) -> int:
    """
    Convert a level name to a logging level.

    Args:
        level: Name (case insensitive) or numeric level

    Returns:
        logging level

    Raises:
        ValueError: If name is unknown
    """
    if isinstance(level, int):
        return level
    try:
        return LOG_LEVELS[level.strip().lower()]
    except KeyError:
        raise ValueError(f"unknown log level '{level}', expected one of {sorted(LOG_LEVELS)}") from None


def setup_logging(level: str | int = "info") -> None:
    """
    Route root logger through a RichHandler.

    Safe to call more than once: the previous rich handler is replaced.

    Args:
        level: Log level name or number
    """
    root = logging.getLogger()
    for handler in list(root.handlers):
        if isinstance(handler, RichHandler):
            root.removeHandler(handler)

    handler = RichHandler(console=console, show_path=False, rich_tracebacks=True)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    root.addHandler(handler)
    root.setLevel(parse_log_level(level))


def print_summary(title: str, rows: Iterable[Tuple[str, object]]) -> None:
    """
    Print a startup banner.

    Args:
        title: Banner title
        rows: (label, value) pairs
    """
    table = Table.grid(padding=(0, 2))
    table.add_column(style="cyan", no_wrap=True)
    table.add_column(style="magenta")
    for label, value in rows:
        table.add_row(f"[bold]{label}[/bold]", str(value))

    console.rule(title)
    console.print(table)
    console.rule()
