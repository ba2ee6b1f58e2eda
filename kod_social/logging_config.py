"""Process-wide logging setup."""
from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_configured = False


def configure_logging(level: str | int = "INFO") -> None:
    """Install the root handler once; later calls only adjust the level."""

    global _configured
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    if not _configured:
        logging.basicConfig(level=level, format=LOG_FORMAT)
        _configured = True
    logging.getLogger().setLevel(level)


__all__ = ["configure_logging", "LOG_FORMAT"]
