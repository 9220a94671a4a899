"""Logging setup shared by dockstage commands."""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
ROOT_LOGGER = "dockstage"


def get_logger(name: str) -> logging.Logger:
    """Return a logger for the given module name."""
    return logging.getLogger(name)


def setup_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Configure the dockstage logger hierarchy.

    Args:
        verbose: Emit DEBUG messages
        quiet: Only emit warnings and errors (takes precedence over verbose)
    """
    if quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)

    # Re-running setup (e.g. several CLI invocations in one process) must not
    # stack handlers.
    for handler in list(logger.handlers):
        if getattr(handler, "_dockstage", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._dockstage = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
