"""Settings and logging setup."""

from referral_awards.config.logging import setup_logging
from referral_awards.config.settings import AwardEngineSettings, get_settings

__all__ = [
    "AwardEngineSettings",
    "get_settings",
    "setup_logging",
]
