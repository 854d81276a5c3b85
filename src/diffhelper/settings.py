"""Application-wide settings and environment loading."""

import logging
import os
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

load_dotenv()
logger.debug("Environment variables loaded from .env if present")

DEFAULT_GIT_TIMEOUT = 30


@lru_cache(maxsize=1)
def get_git_settings() -> tuple[Optional[str], int]:
    """Return the object repository location and git timeout from the environment."""
    git_dir = os.getenv("DIFFHELPER_GIT_DIR") or None
    raw_timeout = os.getenv("DIFFHELPER_GIT_TIMEOUT")
    timeout = DEFAULT_GIT_TIMEOUT
    if raw_timeout:
        try:
            timeout = int(raw_timeout)
        except ValueError:
            logger.warning(
                "Ignoring invalid DIFFHELPER_GIT_TIMEOUT",
                extra={"value": raw_timeout},
            )
    logger.debug("Git settings resolved", extra={"git_dir": git_dir, "timeout": timeout})
    return git_dir, timeout
