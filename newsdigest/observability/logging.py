"""
Logging setup for NewsDigest.

All package loggers live under the ``newsdigest`` namespace; the one stream
handler is attached there so uvicorn's own logging config is left alone.
"""

from __future__ import annotations

import logging
import os
from typing import Final

_PACKAGE_LOGGER: Final[str] = "newsdigest"
_FORMAT: Final[str] = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"

# Per-request chatter from these drowns out the digest job logs at INFO
_NOISY_LOGGERS: Final[tuple[str, ...]] = ("httpx", "httpcore", "apscheduler.executors")

_configured: bool = False


def _level_from_env() -> int:
    name = os.getenv("NEWSDIGEST_LOG_LEVEL", "INFO").upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def configure_logging() -> None:
    """Attach the package handler once and apply NEWSDIGEST_LOG_LEVEL."""
    global _configured

    level = _level_from_env()
    package_logger = logging.getLogger(_PACKAGE_LOGGER)
    package_logger.setLevel(level)

    if _configured:
        return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    package_logger.addHandler(handler)

    for noisy in _NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(max(level, logging.WARNING))

    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Module logger; names outside the package are nested under it."""
    configure_logging()
    if name != _PACKAGE_LOGGER and not name.startswith(f"{_PACKAGE_LOGGER}."):
        name = f"{_PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)
