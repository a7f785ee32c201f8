"""Rev-share-limit award model."""

from referral_awards.rev_share_limit.aggregations import AggregatedReferrerMetricsRevShareLimit
from referral_awards.rev_share_limit.leaderboard import (
    ReferrerLeaderboardPageRevShareLimit,
    ReferrerLeaderboardRevShareLimit,
    build_referrer_leaderboard_rev_share_limit,
)
from referral_awards.rev_share_limit.metrics import (
    AwardedReferrerMetricsRevShareLimit,
    UnrankedReferrerMetricsRevShareLimit,
)

__all__ = [
    "AggregatedReferrerMetricsRevShareLimit",
    "AwardedReferrerMetricsRevShareLimit",
    "ReferrerLeaderboardPageRevShareLimit",
    "ReferrerLeaderboardRevShareLimit",
    "UnrankedReferrerMetricsRevShareLimit",
    "build_referrer_leaderboard_rev_share_limit",
]
