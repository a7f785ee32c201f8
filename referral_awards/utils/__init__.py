"""Display helpers for the award engine."""

from referral_awards.utils.formatters import (
    format_award_share,
    format_duration_years,
    format_price,
)

__all__ = [
    "format_price",
    "format_award_share",
    "format_duration_years",
]
