"""Centralized logging configuration for pipewatch using Loguru.

Provides consistent logging across the package with support for:
- Multiple output formats (console, JSON, structured, rich)
- Environment-based defaults
- Idempotent configuration

Examples
--------
Basic usage:

>>> from pipewatch.kernel.logging import get_logger
>>> logger = get_logger(__name__)
>>> logger.info("Poller started", interval_ms=5000)

Configure logging globally::

    from pipewatch.kernel.logging import configure_logging
    configure_logging(level="DEBUG", format="json")
"""

from __future__ import annotations

import os
import sys
from contextlib import suppress
from functools import lru_cache
from pathlib import Path
from typing import TYPE_CHECKING, Literal

from loguru import logger
from rich.logging import RichHandler

if TYPE_CHECKING:
    from loguru import Logger

LogLevel = Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
LogFormat = Literal["console", "json", "structured", "rich"]

_CURRENT_CONFIG: dict | None = None
_HANDLER_IDS: list[int] = []


def configure_logging(
    level: LogLevel = "INFO",
    format: LogFormat = "structured",
    output_file: str | Path | None = None,
    use_color: bool = True,
    include_timestamp: bool = True,
    force_reconfigure: bool = False,
) -> None:
    """Configure global logging for pipewatch.

    Calling it again with the same configuration is a no-op, so handlers
    are never duplicated.

    Parameters
    ----------
    level : LogLevel, default="INFO"
        Minimum log level to output
    format : LogFormat, default="structured"
        Output format:
        - "console": Simple console output (no colors, basic format)
        - "json": JSON format for log aggregation
        - "structured": Enhanced structured format with colors (Loguru native)
        - "rich": Rich console handler
    output_file : str | Path | None, default=None
        Optional file path to write JSON logs to (in addition to stderr)
    use_color : bool, default=True
        Use ANSI color codes in structured format (auto-disabled for non-TTY)
    include_timestamp : bool, default=True
        Include timestamp in log output
    force_reconfigure : bool, default=False
        Force reconfiguration even if already configured with same settings
    """
    global _CURRENT_CONFIG

    current_config = {
        "level": level,
        "format": format,
        "output_file": str(output_file) if output_file else None,
        "use_color": use_color,
        "include_timestamp": include_timestamp,
    }

    if not force_reconfigure and current_config == _CURRENT_CONFIG:
        return

    # Only remove handlers we added ourselves (pytest may have its own)
    for handler_id in _HANDLER_IDS:
        with suppress(ValueError):
            logger.remove(handler_id)
    _HANDLER_IDS.clear()

    if format == "rich":
        rich_handler = RichHandler(
            rich_tracebacks=True,
            markup=False,
            show_time=include_timestamp,
            show_level=True,
            show_path=True,
        )
        _HANDLER_IDS.append(logger.add(sink=rich_handler, level=level, format="{message}"))

    elif format == "json":
        _HANDLER_IDS.append(logger.add(sink=sys.stderr, level=level, serialize=True))

    elif format == "structured":
        timestamp_fmt = "<green>{time:YYYY-MM-DD HH:mm:ss}</green> " if include_timestamp else ""
        colorize = use_color and sys.stderr.isatty()
        color_level = "<level>{level: <8}</level>" if colorize else "{level: <8}"
        structured_format = (
            f"{timestamp_fmt}[{color_level}]"
            "<cyan>{name}:{function}:{line}</cyan> | <level>{message}</level>"
        )
        _HANDLER_IDS.append(
            logger.add(
                sink=sys.stderr,
                level=level,
                format=structured_format,
                colorize=colorize,
            )
        )

    else:  # console
        timestamp_fmt = "{time:YYYY-MM-DD HH:mm:ss} " if include_timestamp else ""
        console_format = f"{timestamp_fmt}{{level: <8}} | {{name}} | {{message}}"
        _HANDLER_IDS.append(
            logger.add(sink=sys.stderr, level=level, format=console_format, colorize=False)
        )

    if output_file:
        output_path = Path(output_file)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        # File output always uses JSON for easier parsing
        _HANDLER_IDS.append(
            logger.add(
                sink=output_path,
                level=level,
                serialize=True,
                rotation="10 MB",
                retention="1 week",
            )
        )

    _CURRENT_CONFIG = current_config


@lru_cache(maxsize=256)
def get_logger(name: str) -> Logger:
    """Get a logger instance bound with the given module name.

    Parameters
    ----------
    name : str
        Logger name, typically __name__ from the calling module

    Returns
    -------
    loguru.Logger
        Logger instance bound with ``module=name``
    """
    _ensure_configured()
    return logger.bind(module=name)


def _ensure_configured() -> None:
    """Apply default configuration if configure_logging() was never called."""
    if _CURRENT_CONFIG is None:
        level = os.getenv("PIPEWATCH_LOG_LEVEL", "WARNING").upper()
        format_type = os.getenv("PIPEWATCH_LOG_FORMAT", "structured").lower()
        configure_logging(level=level, format=format_type)  # type: ignore[arg-type]
