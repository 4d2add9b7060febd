"""Install chunkcode's log handlers on the root logger.

configure_logging() may be called more than once (the CLI calls it once per
invocation, tests call it repeatedly). Each call replaces the handlers the
previous call installed and leaves handlers owned by anyone else alone.
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING

from chunkcode.logging.context import WorkerContextFilter
from chunkcode.logging.handlers import JSONFormatter, SlotTextFormatter

if TYPE_CHECKING:
    from chunkcode.config.models import LoggingConfig

# Handlers installed by the last configure_logging() call
_installed: list[logging.Handler] = []


def build_formatter(format_name: str) -> logging.Formatter:
    """Return the formatter for a LoggingConfig.format value."""
    if format_name.casefold() == "json":
        return JSONFormatter()
    return SlotTextFormatter()


def _open_log_file(config: LoggingConfig) -> logging.Handler | None:
    """Open the rotating log file, or report why not and return None."""
    path = Path(config.file).expanduser()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        return RotatingFileHandler(
            path,
            maxBytes=config.max_bytes,
            backupCount=config.backup_count,
            encoding="utf-8",
        )
    except OSError as e:
        # Logging is not set up yet, so this cannot go through a logger
        sys.stderr.write(f"chunkcode: cannot open log file {path} ({e}), ")
        sys.stderr.write("logging to stderr instead\n")
        return None


def configure_logging(config: LoggingConfig) -> list[logging.Handler]:
    """Route chunkcode's log output as described by a LoggingConfig.

    Output goes to the rotating log file when one is configured and can be
    opened, and to stderr when include_stderr is set or there is no file.
    Every installed handler carries the slot context filter, so lines logged
    from pool slot threads are tagged with their slot, job and segment.

    Args:
        config: Logging configuration.

    Returns:
        The handlers now attached to the root logger.
    """
    level = logging.getLevelName(config.level.upper())

    handlers: list[logging.Handler] = []
    file_handler = _open_log_file(config) if config.file else None
    if file_handler is not None:
        handlers.append(file_handler)
    if config.include_stderr or file_handler is None:
        handlers.append(logging.StreamHandler(sys.stderr))

    formatter = build_formatter(config.format)
    context_filter = WorkerContextFilter()
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        handler.addFilter(context_filter)

    root = logging.getLogger()
    for old in _installed:
        root.removeHandler(old)
        old.close()
    _installed[:] = handlers
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)
    return handlers
