"""
Global logging configuration with Rich integration.

Modules log through ``logging.getLogger(__name__)``; the CLI calls
``setup_logging`` once to route every record through a single RichHandler on
the root logger.
"""

import logging
import threading

from rich.console import Console
from rich.logging import RichHandler

from .rich_cli import GOCOVGEN_THEME

_setup_lock = threading.Lock()


def setup_logging(
    level: int = logging.WARNING, console: Console | None = None
) -> RichHandler:
    """
    Install (or reconfigure) the Rich handler on the root logger.

    Idempotent: calling it again only adjusts the level and console.

    Args:
        level: Root logger level
        console: Console receiving log output (stderr console when None)

    Returns:
        The installed handler
    """
    with _setup_lock:
        root_logger = logging.getLogger()
        console = console or Console(theme=GOCOVGEN_THEME, stderr=True)

        # Remove any existing RichHandlers, keep other handlers
        for handler in list(root_logger.handlers):
            if isinstance(handler, RichHandler):
                root_logger.removeHandler(handler)

        rich_handler = RichHandler(
            console=console,
            show_time=level <= logging.DEBUG,
            show_path=False,
            markup=False,
            rich_tracebacks=True,
        )
        rich_handler.setFormatter(logging.Formatter(fmt="%(message)s"))

        root_logger.addHandler(rich_handler)
        root_logger.setLevel(level)
        return rich_handler
