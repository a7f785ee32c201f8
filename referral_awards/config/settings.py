"""
Award engine settings.

Loaded from environment variables prefixed with ``REFERRAL_AWARDS_``
(or a ``.env`` file). Only logging setup reads these; computations
never do.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


class AwardEngineSettings(BaseSettings):
    """Award engine settings loaded from environment variables."""

    log_level: str = Field(default="INFO", description="Minimum loguru level")
    log_file: Optional[str] = Field(
        default=None, description="Optional log file path; stderr only when unset"
    )
    log_rotation: str = Field(default="1 day", description="Log file rotation policy")
    log_retention: str = Field(default="7 days", description="Log file retention policy")

    model_config = SettingsConfigDict(
        env_prefix="REFERRAL_AWARDS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level against loguru's built-in levels."""
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}, got {v!r}")
        return level


@lru_cache(maxsize=1)
def get_settings() -> AwardEngineSettings:
    """Return the process-wide settings instance."""
    return AwardEngineSettings()
