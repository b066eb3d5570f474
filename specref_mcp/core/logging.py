"""Logging setup for the specref package.

Diagnostics always go to stderr: stdout carries the MCP stdio transport.
"""

import logging
import os
import sys

from ..constants import LOG_LEVEL_ENV

PACKAGE_LOGGER = "specref_mcp"
LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def configure_logging(level: str | int | None = None) -> logging.Logger:
    """Attach a single stderr handler to the package logger.

    Args:
        level: Log level name or number. Defaults to $SPECREF_LOG_LEVEL, then INFO.

    Returns:
        The configured package logger
    """
    if level is None:
        level = os.environ.get(LOG_LEVEL_ENV, "INFO")
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(level)

    # Idempotent: replace our own handler, leave foreign ones alone
    for handler in list(package_logger.handlers):
        if getattr(handler, "_specref_handler", False):
            package_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._specref_handler = True  # type: ignore[attr-defined]
    package_logger.addHandler(handler)

    return package_logger
