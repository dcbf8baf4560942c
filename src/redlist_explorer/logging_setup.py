"""Logging configuration shared by the CLI and the web app."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def configure_logging(level: str | int = "INFO") -> logging.Logger:
    """Attach a single stream handler to the package logger.

    Safe to call more than once; later calls only adjust the level.
    """
    logger = logging.getLogger("redlist_explorer")
    logger.setLevel(level.upper() if isinstance(level, str) else level)
    if not any(getattr(h, "_redlist_explorer", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._redlist_explorer = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
    return logger
