# ==============================================
# Logging helpers
# ==============================================
#
# PURPOSE:
#   Package-wide logger setup. Library modules only ever log;
#   the CLI decides where records go by calling configure_logging().
#
# FUNCTIONS:
# ----------
# - get_logger(name) -> logging.Logger
# - configure_logging(level, stream, fmt) -> logging.Logger
#
# ==============================================

import logging
import sys
from typing import Optional, Union

PACKAGE_LOGGER_NAME = "collection_etl"
DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Importing the package must not emit "no handler" warnings.
logging.getLogger(PACKAGE_LOGGER_NAME).addHandler(logging.NullHandler())


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger scoped under the package logger."""
    return logging.getLogger(name or PACKAGE_LOGGER_NAME)


def configure_logging(
    level: Union[int, str] = logging.INFO,
    stream=None,
    fmt: Optional[str] = None,
) -> logging.Logger:
    """
    Attach a stream handler to the package logger.

    Calling it again replaces the handler installed by a previous call
    instead of stacking a second one.

    Args:
        level: Logging level or level name (e.g. "DEBUG")
        stream: Target stream, defaults to sys.stderr
        fmt: Log format string

    Returns:
        The configured package logger
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    for handler in list(logger.handlers):
        if getattr(handler, "_collection_etl_handler", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(fmt or DEFAULT_FORMAT))
    handler._collection_etl_handler = True
    logger.addHandler(handler)
    logger.setLevel(level)
    return logger
