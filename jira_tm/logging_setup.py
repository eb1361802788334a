"""Loguru sink configuration for command line use."""

from __future__ import annotations

import sys
from typing import Any, Optional

from loguru import logger


LINE_FORMAT = "{message}"
VERBOSE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{line} - {message}"


def configure_logging(sink: Any = None, level: str = "INFO", verbose: bool = False) -> int:
    """
    Replace loguru's default handler with a single line-oriented sink.

    Args:
        sink: Stream, path or callable receiving log lines (default: stderr).
        level: Minimum level to emit.
        verbose: Prefix lines with time, level and source location.

    Returns:
        The loguru handler id.
    """
    logger.remove()
    return logger.add(
        sink if sink is not None else sys.stderr,
        level=level,
        format=VERBOSE_FORMAT if verbose else LINE_FORMAT,
        backtrace=False,
        diagnose=False,
    )


def level_for(verbose: bool, quiet: Optional[bool] = False) -> str:
    if quiet:
        return "WARNING"
    return "DEBUG" if verbose else "INFO"
