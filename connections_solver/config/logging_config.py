"""Logging configuration for Connections Solver."""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

# Track if logging has been set up to prevent duplicate handlers
_logging_configured = False


def setup_logging(level: int = logging.WARNING, console: Optional[Console] = None) -> logging.Logger:
    """
    Configure the root logger with a rich console handler.

    Library modules only create loggers; the CLI calls this once.

    Args:
        level: Logging level
        console: Console to write to (defaults to stderr)

    Returns:
        Configured root logger
    """
    global _logging_configured

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Prevent adding duplicate handlers on repeated calls
    if _logging_configured:
        return root_logger

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    root_logger.addHandler(handler)

    _logging_configured = True
    return root_logger
