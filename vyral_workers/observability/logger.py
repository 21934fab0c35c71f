"""Loguru-based logging configuration shared by all runtime layers.

Call sites import the shared `logger` and attach structured fields with
`logger.bind(...)`. Sinks are installed once by
`observability_configure_logging`; until then loguru's default stderr sink is used.
"""

from __future__ import annotations

import logging
import sys

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{message}</cyan> | {extra}"
)


def observability_configure_logging(level: str = "INFO", serialize: bool = False) -> None:
    """Install the process-wide log sink.

    Args:
        level: Minimum log level name.
        serialize: Emit one JSON document per line instead of formatted text.

    Returns:
        None: Sinks are replaced as a side effect.

    Raises:
        ValueError: Raised when level is not a known loguru level.
    """

    normalized_level = level.strip().upper()
    if not normalized_level:
        raise ValueError("level must not be blank")

    logger.remove()
    if serialize:
        logger.add(sys.stdout, level=normalized_level, serialize=True, backtrace=False, diagnose=False)
    else:
        logger.add(sys.stdout, level=normalized_level, format=CONSOLE_FORMAT, colorize=sys.stdout.isatty())

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


__all__ = ["logger", "observability_configure_logging"]
