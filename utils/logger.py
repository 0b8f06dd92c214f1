"""
utils/logger.py
Simple logging wrapper for LanSweep
"""

import logging
import sys

ROOT_LOGGER = "lansweep"


def get_logger(name: str, level: int = logging.INFO) -> logging.Logger:
    """
    Get a configured logger instance.

    Names outside the ``lansweep`` namespace are nested under it, so
    ``get_logger("core.session")`` returns ``lansweep.core.session``.

    Args:
        name: Logger name (usually module name)
        level: Logging level (default: INFO)

    Returns:
        Configured logger instance
    """
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    logger = logging.getLogger(name)

    # Child loggers propagate to the root handler
    if name != ROOT_LOGGER:
        get_logger(ROOT_LOGGER, level)
        return logger

    # Avoid duplicate handlers
    if logger.handlers:
        return logger

    logger.setLevel(level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logging.DEBUG)

    # Format: LEVEL - message
    formatter = logging.Formatter(
        '%(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    return logger


def set_level(level: int) -> None:
    """Adjust verbosity of every LanSweep logger at once."""
    get_logger(ROOT_LOGGER).setLevel(level)


# Default logger instance
log = get_logger(ROOT_LOGGER)


__all__ = ["get_logger", "set_level", "log"]
