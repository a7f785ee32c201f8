"""Pie-split award model."""

from referral_awards.pie_split.aggregations import AggregatedReferrerMetricsPieSplit
from referral_awards.pie_split.leaderboard import (
    ReferrerLeaderboardPagePieSplit,
    ReferrerLeaderboardPieSplit,
    build_referrer_leaderboard_pie_split,
)
from referral_awards.pie_split.metrics import (
    AwardedReferrerMetricsPieSplit,
    UnrankedReferrerMetricsPieSplit,
)

__all__ = [
    "AggregatedReferrerMetricsPieSplit",
    "AwardedReferrerMetricsPieSplit",
    "ReferrerLeaderboardPagePieSplit",
    "ReferrerLeaderboardPieSplit",
    "UnrankedReferrerMetricsPieSplit",
    "build_referrer_leaderboard_pie_split",
]
