"""Logging setup: rich output on stderr plus a TRACE level below DEBUG."""

from __future__ import annotations

import logging
import os

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

# Third-party loggers that flood DEBUG output with per-request lines.
NOISY_LOGGERS = ("web3", "urllib3")

_THEME = Theme({"logging.level.trace": "bright_black"})


def resolve_level(level: str | int | None) -> int:
    """Map a level name (or number) to a logging level, defaulting to INFO."""
    if isinstance(level, int):
        return level
    name = (level or os.getenv("LOG_LEVEL") or "INFO").strip().upper()
    if name == "TRACE":
        return TRACE
    value = logging.getLevelName(name)
    return value if isinstance(value, int) else logging.INFO


def build_handler(console: Console | None = None) -> RichHandler:
    """Rich handler writing to stderr, so ``--json`` output on stdout stays clean."""
    console = console or Console(stderr=True, theme=_THEME)
    return RichHandler(
        console=console,
        show_path=False,
        rich_tracebacks=True,
        log_time_format="[%Y-%m-%d %H:%M:%S]",
    )


def setup_logging(
    level: str | int | None = None, console: Console | None = None
) -> int:
    """Configure root logging and return the numeric level in effect.

    At DEBUG the ``web3``/``urllib3`` loggers are held at WARNING; at TRACE
    they are opened up. At any other level they follow the root logger.
    """
    numeric_level = resolve_level(level)

    logging.basicConfig(
        level=numeric_level,
        format="%(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[build_handler(console)],
        force=True,
    )

    if numeric_level <= TRACE:
        noisy_level = TRACE
    elif numeric_level <= logging.DEBUG:
        noisy_level = logging.WARNING
    else:
        noisy_level = logging.NOTSET
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(noisy_level)

    return numeric_level


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for a module.

    Args:
        name: Usually __name__ of the calling module

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)
