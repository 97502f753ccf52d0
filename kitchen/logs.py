"""File logging setup; the terminal belongs to the Textual app."""

from __future__ import annotations

import logging
from pathlib import Path

from kitchen.config import LOG_PATH

_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(path: str | Path = LOG_PATH, level: int = logging.INFO) -> None:
    """Route `kitchen.*` loggers to a file; never raise."""
    logger = logging.getLogger("kitchen")
    logger.setLevel(level)
    try:
        log_file = Path(path)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(log_file, encoding="utf-8")
    except OSError:
        # Logging must never interfere with app flow.
        handler = logging.NullHandler()
    handler.setFormatter(logging.Formatter(_FORMAT))
    for existing in list(logger.handlers):
        logger.removeHandler(existing)
        existing.close()
    logger.addHandler(handler)
    logger.propagate = False
