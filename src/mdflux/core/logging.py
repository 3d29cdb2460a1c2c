"""Logging setup shared by the CLI and library entry points."""

from __future__ import annotations

import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler


_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def parse_level(value: str | None) -> int | None:
    """Return the logging level for a name, or ``None`` when it is unknown."""
    if not value:
        return None
    return _LEVELS.get(value.strip().lower())


def setup_logging(level: str | None = "info", log_file: str | Path | None = None) -> logging.Logger:
    """Configure the ``mdflux`` logger hierarchy and return its root logger."""
    logger = logging.getLogger("mdflux")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    handler: logging.Handler
    if log_file:
        handler = logging.FileHandler(Path(log_file), mode="a", encoding="utf-8")
        handler.setFormatter(logging.Formatter(_FILE_FORMAT))
    else:
        handler = RichHandler(
            console=Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.propagate = False

    resolved = parse_level(level)
    if resolved is None:
        logger.setLevel(logging.INFO)
        logger.error("Invalid log level %r, defaulting to info", level)
    else:
        logger.setLevel(resolved)
    return logger


__all__ = ["parse_level", "setup_logging"]
