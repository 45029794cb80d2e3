"""Logging configuration for studydoc."""

import logging
import sys


def setup_logging(level: str = "INFO") -> None:
    """Configure root logging once for the CLI or a hosting service.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def get_logger(name: str) -> logging.Logger:
    """Return a module logger (pass `__name__`)."""
    return logging.getLogger(name)
