"""Package logger for matchwidgets.

Every module does ``logger = get_logger(__name__)`` and nothing else; the
records end up wherever the host application routes the ``matchwidgets``
logger. The package installs a NullHandler on import and never writes files.

``configure_logging`` exists for the demo under ``examples/`` and for quick
debugging sessions: it attaches one stderr handler to the package logger.
The level comes from the argument or from ``MATCHWIDGETS_LOG_LEVEL``::

    MATCHWIDGETS_LOG_LEVEL=DEBUG python examples/matching_editor_demo.py
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional, Union

LOGGER_NAME = "matchwidgets"
LOG_LEVEL_ENV = "MATCHWIDGETS_LOG_LEVEL"

DEFAULT_FMT = "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d:%(funcName)s: %(message)s"
DEFAULT_DATEFMT = "%Y-%m-%d %H:%M:%S"


def _resolve_level(level: Optional[Union[str, int]]) -> int:
    if level is None:
        level = os.environ.get(LOG_LEVEL_ENV, "INFO")
    if isinstance(level, str):
        return getattr(logging, level.upper(), logging.INFO)
    return level


def _stderr_handlers(logger: logging.Logger) -> list[logging.Handler]:
    return [
        h for h in logger.handlers
        if isinstance(h, logging.StreamHandler) and h.stream is sys.stderr
    ]


def configure_logging(
    level: Optional[Union[str, int]] = None,
    *,
    fmt: Optional[str] = None,
    datefmt: Optional[str] = None,
    force: bool = False,
) -> None:
    """Send matchwidgets records to stderr. The root logger is left alone.

    Parameters
    ----------
    level:
        Name or number of the level. Without it, MATCHWIDGETS_LOG_LEVEL is
        read, then "INFO".
    fmt, datefmt:
        Formatter strings; DEFAULT_FMT and DEFAULT_DATEFMT otherwise.
    force:
        Drop the handlers already on the package logger and start over.
        Without it a second call only changes the level.
    """
    resolved = _resolve_level(level)
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(resolved)

    if force:
        for h in logger.handlers[:]:
            h.close()
            logger.removeHandler(h)

    existing = _stderr_handlers(logger)
    if existing:
        for h in existing:
            h.setLevel(resolved)
        return

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(resolved)
    console.setFormatter(
        logging.Formatter(fmt=fmt or DEFAULT_FMT, datefmt=datefmt or DEFAULT_DATEFMT)
    )
    logger.addHandler(console)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Logger `name`, or the package logger when no name is given."""
    return logging.getLogger(name or LOGGER_NAME)
