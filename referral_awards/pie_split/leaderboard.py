"""
Pie-split leaderboard assembly.

Pipeline: validate -> sort -> score -> rank -> aggregate -> award.
The input must be the complete set of referrers for the program;
pagination only ever happens on the finished leaderboard.
"""

from collections.abc import Sequence
from typing import Literal

from loguru import logger
from pydantic import Field, model_validator

from referral_awards.core.base import EngineModel
from referral_awards.core.models import ReferrerMetrics
from referral_awards.core.pagination import ReferrerLeaderboardPageContext
from referral_awards.core.ranking import (
    assign_ranks,
    sort_referrers_by_duration,
    validate_ranked_mapping,
)
from referral_awards.core.rules import (
    ReferralProgramAwardModel,
    ReferralProgramRulesPieSplit,
)
from referral_awards.core.status import ReferralProgramStatus
from referral_awards.pie_split.aggregations import (
    AggregatedReferrerMetricsPieSplit,
    build_aggregated_referrer_metrics_pie_split,
)
from referral_awards.pie_split.metrics import (
    AwardedReferrerMetricsPieSplit,
    UnrankedReferrerMetricsPieSplit,
    build_awarded_referrer_metrics_pie_split,
    build_ranked_referrer_metrics_pie_split,
    build_scored_referrer_metrics_pie_split,
)
from referral_awards.types import Address, UnixTimestamp
from referral_awards.utils.formatters import (
    format_award_share,
    format_duration_years,
    format_price,
)


class ReferrerLeaderboardPieSplit(EngineModel):
    """Complete pie-split leaderboard, referrers ordered by ascending rank."""

    award_model: Literal[ReferralProgramAwardModel.PIE_SPLIT] = (
        ReferralProgramAwardModel.PIE_SPLIT
    )
    rules: ReferralProgramRulesPieSplit
    referrers: dict[Address, AwardedReferrerMetricsPieSplit]
    aggregated_metrics: AggregatedReferrerMetricsPieSplit
    accurate_as_of: UnixTimestamp

    @model_validator(mode="after")
    def validate_referrers(self) -> "ReferrerLeaderboardPieSplit":
        validate_ranked_mapping(self.referrers)
        return self


def build_referrer_leaderboard_pie_split(
    all_referrers: Sequence[ReferrerMetrics],
    rules: ReferralProgramRulesPieSplit,
    accurate_as_of: int,
) -> ReferrerLeaderboardPieSplit:
    """
    Build the pie-split leaderboard.

    Args:
        all_referrers: Complete per-referrer metrics for the program window
        rules: Pie-split rules
        accurate_as_of: Unix timestamp the metrics are accurate as of

    Returns:
        Leaderboard with every referrer that has at least one referral

    Raises:
        DuplicateReferrer: If a referrer appears twice in ``all_referrers``
        InternalInvariantViolation: If aggregation reaches an impossible state
    """
    active = [r for r in all_referrers if r.total_referrals > 0]
    if len(active) != len(all_referrers):
        logger.debug(
            f"Skipping {len(all_referrers) - len(active)} referrers without referrals"
        )

    sorted_referrers = sort_referrers_by_duration(active)

    ranked = [
        build_ranked_referrer_metrics_pie_split(
            build_scored_referrer_metrics_pie_split(referrer),
            rank,
            rules,
        )
        for rank, referrer in assign_ranks(sorted_referrers)
    ]

    aggregated_metrics = build_aggregated_referrer_metrics_pie_split(ranked, rules)

    referrers = {
        referrer.referrer: build_awarded_referrer_metrics_pie_split(
            referrer, aggregated_metrics, rules
        )
        for referrer in ranked
    }

    qualified_count = sum(1 for r in referrers.values() if r.is_qualified)
    logger.debug(
        f"Built pie-split leaderboard: {len(referrers)} referrers, "
        f"{qualified_count} qualified, pool {format_price(rules.total_award_pool_value)}"
    )
    if referrers:
        top = next(iter(referrers.values()))
        logger.debug(
            f"Rank 1: {top.referrer} with {format_duration_years(top.total_incremental_duration)}, "
            f"share {format_award_share(top.award_pool_share)}"
        )

    return ReferrerLeaderboardPieSplit(
        rules=rules,
        referrers=referrers,
        aggregated_metrics=aggregated_metrics,
        accurate_as_of=accurate_as_of,
    )


class ReferrerLeaderboardPagePieSplit(EngineModel):
    """One page of a pie-split leaderboard."""

    award_model: Literal[ReferralProgramAwardModel.PIE_SPLIT] = (
        ReferralProgramAwardModel.PIE_SPLIT
    )
    rules: ReferralProgramRulesPieSplit
    referrers: list[AwardedReferrerMetricsPieSplit]
    aggregated_metrics: AggregatedReferrerMetricsPieSplit = Field(
        ..., description="Aggregated over the complete leaderboard, not this page"
    )
    page_context: ReferrerLeaderboardPageContext
    status: ReferralProgramStatus
    accurate_as_of: UnixTimestamp


class ReferrerDetailRankedPieSplit(EngineModel):
    """Detail for a referrer on the pie-split leaderboard."""

    type: Literal["ranked"] = "ranked"
    award_model: Literal[ReferralProgramAwardModel.PIE_SPLIT] = (
        ReferralProgramAwardModel.PIE_SPLIT
    )
    rules: ReferralProgramRulesPieSplit
    referrer: AwardedReferrerMetricsPieSplit
    aggregated_metrics: AggregatedReferrerMetricsPieSplit
    status: ReferralProgramStatus
    accurate_as_of: UnixTimestamp


class ReferrerDetailUnrankedPieSplit(EngineModel):
    """Detail for a referrer absent from the pie-split leaderboard."""

    type: Literal["unranked"] = "unranked"
    award_model: Literal[ReferralProgramAwardModel.PIE_SPLIT] = (
        ReferralProgramAwardModel.PIE_SPLIT
    )
    rules: ReferralProgramRulesPieSplit
    referrer: UnrankedReferrerMetricsPieSplit
    aggregated_metrics: AggregatedReferrerMetricsPieSplit
    status: ReferralProgramStatus
    accurate_as_of: UnixTimestamp
