"""Logging setup for the shelf CLI."""

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(*, level: int = logging.WARNING, force: bool = False) -> None:
    """Send log records to stderr with time, level and logger name.

    The CLI calls this on every invocation with ``force=True`` so that a new
    level, or a stderr swapped by a test runner, takes effect.
    """
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt="%H:%M:%S", force=force)
