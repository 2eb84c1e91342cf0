"""Logging setup for the ``repocache`` command line.

Library modules only call ``logging.getLogger(__name__)``; handlers are
installed here, once, by the CLI.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

_HANDLER_NAME = "repocache-rich"


def configure_logging(level: str = "INFO", console: Console | None = None) -> logging.Logger:
    """Attach a RichHandler to the ``repocache`` logger at *level*.

    Calling again only updates the level.
    """
    logger = logging.getLogger("repocache")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    if not any(h.get_name() == _HANDLER_NAME for h in logger.handlers):
        handler = RichHandler(
            console=console or Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
        )
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)
    return logger
