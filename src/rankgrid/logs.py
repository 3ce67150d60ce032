# Copyright (c) Syntropy Systems
"""Logging setup for the rankgrid command line."""
from __future__ import annotations

import logging
from typing import cast

from rich.console import Console
from rich.logging import RichHandler

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def parse_level(name: str) -> int:
    """Convert a level name such as ``info`` to a logging level."""
    level = name.upper()
    if level not in LOG_LEVELS:
        msg = f"Invalid logging level '{name}', expected one of {', '.join(LOG_LEVELS)}"
        raise ValueError(msg)
    return cast("int", getattr(logging, level))


def configure_logging(level: str = "ERROR") -> logging.Logger:
    """Send rankgrid log records to stderr through rich.

    Returns the package logger.
    """
    logger = logging.getLogger("rankgrid")
    logger.setLevel(parse_level(level))
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)
    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        log_time_format="%Y-%m-%d %H:%M:%S",
    )
    logger.addHandler(handler)
    return logger
