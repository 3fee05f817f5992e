"""Logging setup for shellbench.

Benchmark results go to stdout, so diagnostics are routed to stderr.
An optional file handler always records at DEBUG level, which is useful
to audit run counts and calibration values after the fact.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

_LOGGER_NAME = "shellbench"
_FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
_CONSOLE_FORMAT = "%(levelname)-8s %(message)s"


def console_level(*, verbose: bool = False, quiet: bool = False) -> int:
    """Map the ``-v``/``-q`` flags to a console log level.

    *verbose* wins when both are given.
    """
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.ERROR
    return logging.WARNING


def setup_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    log_file: Path | None = None,
) -> logging.Logger:
    """Configure and return the root shellbench logger.

    Args:
        verbose: Show DEBUG messages (phase transitions, planned run
            counts, calibration values) on the console.
        quiet: Only show errors on the console.
        log_file: If provided, also log everything at DEBUG to this path.

    Returns:
        The configured ``shellbench`` logger.
    """
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    # Allow reconfiguration (tests invoke the CLI repeatedly).
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level(verbose=verbose, quiet=quiet))
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is not None:
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(fh)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Return a child logger such as ``shellbench.cli``."""
    return logging.getLogger(f"{_LOGGER_NAME}.{name}")
