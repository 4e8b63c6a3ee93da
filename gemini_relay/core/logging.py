"""Logging setup for gemini-relay.

Modules log through ``logging.getLogger(__name__)``; this installs one
stream handler on the ``gemini_relay`` logger so those records reach stdout
alongside uvicorn's own logs.  Prompt text and API keys are never logged.
"""

from __future__ import annotations

import logging
import sys

DEFAULT_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_HANDLER_NAME = "gemini_relay"


def configure_logging(level: str = "INFO", log_format: str = DEFAULT_LOG_FORMAT) -> logging.Logger:
    """Configure the ``gemini_relay`` logger.  Safe to call more than once."""
    logger = logging.getLogger("gemini_relay")
    logger.setLevel(level.upper())

    for handler in logger.handlers[:]:
        if handler.get_name() == _HANDLER_NAME:
            logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(log_format, datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(handler)
    return logger
