"""Handler setup for the ``trackmix`` logger."""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING

from trackmix.logging.context import MixContextFilter
from trackmix.logging.handlers import JSONFormatter

if TYPE_CHECKING:
    from trackmix.config.models import LoggingConfig

TEXT_FORMAT = "%(asctime)s - %(output_tag)s%(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"


def _open_log_file(config: LoggingConfig) -> logging.Handler | None:
    """Open the rotating log file; None (with a note on stderr) on failure."""
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
        sys.stderr.write(f"Warning: Could not open log file {config.file}: {e}\n")
        return None


def configure_logging(config: LoggingConfig) -> None:
    """Replace the handlers of the ``trackmix`` logger.

    Records go to a rotating log file when ``config.file`` is set, and to
    stderr when there is no usable file or ``include_stderr`` is on. The
    logger stops propagating so records are not written twice.
    """
    level = logging.getLevelName(config.level.upper())

    package_logger = logging.getLogger("trackmix")
    package_logger.handlers.clear()
    package_logger.setLevel(level)
    package_logger.propagate = False

    formatter = (
        JSONFormatter()
        if config.format.lower() == "json"
        else logging.Formatter(TEXT_FORMAT, datefmt=DATE_FORMAT)
    )

    handlers: list[logging.Handler] = []
    if config.file:
        file_handler = _open_log_file(config)
        if file_handler is not None:
            handlers.append(file_handler)
    if config.include_stderr or not handlers:
        handlers.append(logging.StreamHandler(sys.stderr))

    context_filter = MixContextFilter()
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        handler.addFilter(context_filter)
        package_logger.addHandler(handler)
