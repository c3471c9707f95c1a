"""Console logging using Rich.

Modules log through ``logging.getLogger(__name__)`` and stay silent
until an application opts in. Credentials are never passed to a logger.
"""

import logging
from typing import Union

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "s3spaces"


def enable_console_logging(
    level: Union[int, str] = logging.INFO,
    console: Union[Console, None] = None,
) -> RichHandler:
    """Attach a Rich handler to the package logger.

    Calling it again replaces the previously attached handler.

    Args:
        level: Log level for the package logger.
        console: Console to write to (defaults to stderr).

    Returns:
        The attached handler.
    """
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    # Use legacy_windows=True for ASCII-safe output on Windows consoles
    handler = RichHandler(
        console=console or Console(stderr=True, legacy_windows=True),
        show_path=False,
    )
    logger.addHandler(handler)
    logger.setLevel(level)
    return handler
