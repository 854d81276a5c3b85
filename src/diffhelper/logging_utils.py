"""Logging configuration utilities for diffhelper."""

import logging
import os
from typing import Optional

_LOG_FORMAT = (
    "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
)


def configure_logging(level: Optional[str] = None, default: str = "INFO") -> None:
    """Configure application-wide logging once.

    Records go to stderr so stdout carries only rendered diff output.
    """
    if logging.getLogger().handlers:
        return

    log_level = level or os.getenv("LOG_LEVEL", default)
    logging.basicConfig(level=log_level.upper(), format=_LOG_FORMAT)
