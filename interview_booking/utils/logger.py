"""
Logging helpers.

Every module obtains its logger through get_logger(__name__); the package root
logger is configured once from Config.LOG_LEVEL / Config.LOG_FORMAT.
"""

import logging
import sys

from interview_booking.config import get_config

_ROOT_LOGGER = "interview_booking"
_configured = False


def _configure_root() -> None:
    global _configured
    if _configured:
        return
    config = get_config()
    root = logging.getLogger(_ROOT_LOGGER)
    root.setLevel(config.LOG_LEVEL)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(config.LOG_FORMAT))
        root.addHandler(handler)
    # Uvicorn installs its own root handlers; avoid double logging
    root.propagate = False
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Get a logger that writes through the package's configured handler."""
    _configure_root()
    if not name.startswith(_ROOT_LOGGER):
        name = f"{_ROOT_LOGGER}.{name}"
    return logging.getLogger(name)
