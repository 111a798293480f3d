"""Logging setup for the command line front-end."""

import logging
import sys


def setup_logging(level: str | int = "WARNING") -> logging.Logger:
    """Configure the root logger to write to stderr.

    Calling it again only updates the level; no second handler is added.

    Args:
        level: Level name (``"DEBUG"``, ``"INFO"`` ...) or number.

    Returns:
        The root logger.
    """
    root_logger = logging.getLogger()
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING
    root_logger.setLevel(level)

    if not root_logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        formatter = logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    return root_logger
