"""Logging setup.

Log records go to stderr: stdout may be carrying protocol or command output.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def configure_logging(level: int | str = "WARNING") -> None:
    """Send package log records to stderr at the given level."""
    if isinstance(level, str):
        level = getattr(logging, level.upper())

    logging.basicConfig(
        level=level,
        handlers=[logging.StreamHandler(sys.stderr)],
        format=LOG_FORMAT,
        force=True,
    )
