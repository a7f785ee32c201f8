"""
Logging setup.

Configures the loguru logger: stderr always, plus a rotating file sink
when ``log_file`` is set.
"""

import sys
from typing import Optional

from loguru import logger

from referral_awards.config.settings import AwardEngineSettings, get_settings


def setup_logging(settings: Optional[AwardEngineSettings] = None) -> None:
    """Configure logger sinks from settings (defaults to ``get_settings()``)."""
    settings = settings or get_settings()

    logger.remove()
    logger.add(sys.stderr, level=settings.log_level)

    if settings.log_file:
        logger.add(
            settings.log_file,
            rotation=settings.log_rotation,
            retention=settings.log_retention,
            level=settings.log_level,
            encoding="utf-8",
        )

    logger.debug(f"Logging configured at {settings.log_level}")
