"""Console logging for the watch loop, rendered through Rich."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

_HANDLER_NAME = "reloadforge-rich"


def configure_logging(level: str = "INFO", *, console: Console | None = None) -> logging.Logger:
    """Attach a RichHandler to the ``reloadforge`` logger.

    Safe to call repeatedly: an existing handler installed by a previous
    call is replaced rather than duplicated.
    """
    logger = logging.getLogger("reloadforge")
    logger.setLevel(level.upper())

    for handler in list(logger.handlers):
        if handler.get_name() == _HANDLER_NAME:
            logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    return logger
