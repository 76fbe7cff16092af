"""Logging helpers shared across photoshelf."""

from __future__ import annotations

import logging
from typing import Optional

from rich.logging import RichHandler

_ROOT_LOGGER_NAME = "photoshelf"


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return the package logger, or a child of it when *name* is given."""

    if not name or name == _ROOT_LOGGER_NAME:
        return logging.getLogger(_ROOT_LOGGER_NAME)
    if name.startswith(f"{_ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{_ROOT_LOGGER_NAME}.{name}")


def configure_logging(level: int = logging.INFO) -> logging.Logger:
    """Install a single rich console handler on the package logger.

    Calling this more than once only adjusts the level; the handler is not
    duplicated.
    """

    logger = get_logger()
    logger.setLevel(level)
    if not any(isinstance(handler, RichHandler) for handler in logger.handlers):
        handler = RichHandler(show_path=False, rich_tracebacks=True)
        handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
        logger.addHandler(handler)
    return logger


__all__ = ["configure_logging", "get_logger"]
