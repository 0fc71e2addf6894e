"""Logging setup for the vehicle registration OCR service.

The API server and the CLI share one stdout handler on the root logger.
Client libraries that log every HTTP exchange (Google auth, urllib3)
and the image plugins stay at WARNING unless the service runs quieter.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

NOISY_LOGGERS = ("PIL", "urllib3", "google.auth", "google.api_core", "multipart")


def resolve_level(level: str | int) -> int:
    """Translate a level name such as ``"debug"`` into its numeric value.

    Unknown names fall back to INFO.
    """
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.strip().upper())
    return value if isinstance(value, int) else logging.INFO


def setup_logging(level: str | int = "INFO") -> None:
    """Attach the service handler to the root logger and set levels.

    Repeated calls keep the existing handler and only update levels.

    Args:
        level: Level name (DEBUG, INFO, WARNING, ERROR, CRITICAL) or number.
    """
    numeric_level = resolve_level(level)
    root = logging.getLogger()

    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        root.addHandler(handler)
    root.setLevel(numeric_level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))


def get_logger(name: str) -> logging.Logger:
    """Return the logger for a module, usually called with ``__name__``."""
    return logging.getLogger(name)
