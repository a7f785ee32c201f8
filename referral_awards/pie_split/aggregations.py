"""Aggregated metrics over a complete pie-split ranking."""

from collections.abc import Sequence

from pydantic import Field, field_validator

from referral_awards.constants import UNREACHABLE_FINAL_SCORE
from referral_awards.core.base import EngineModel
from referral_awards.core.currency import CurrencyId, Price, price_eth
from referral_awards.core.ranking import ensure_complete_ranking
from referral_awards.core.rules import ReferralProgramRulesPieSplit
from referral_awards.exceptions import InternalInvariantViolation
from referral_awards.pie_split.metrics import RankedReferrerMetricsPieSplit
from referral_awards.types import Duration, ReferrerScore


class AggregatedReferrerMetricsPieSplit(EngineModel):
    """
    Totals over every ranked referrer of one pie-split leaderboard.

    ``min_final_score_to_qualify`` is UNREACHABLE_FINAL_SCORE when the
    rules let nobody qualify, and 0 when nobody is ranked yet.
    """

    grand_total_referrals: int = Field(..., ge=0, strict=True)
    grand_total_incremental_duration: Duration
    grand_total_revenue_contribution: Price = Field(..., description="ETH")
    grand_total_qualified_referrers_final_score: ReferrerScore
    min_final_score_to_qualify: ReferrerScore

    @field_validator("grand_total_revenue_contribution")
    @classmethod
    def revenue_in_eth(cls, value: Price) -> Price:
        if value.currency != CurrencyId.ETH:
            raise ValueError(
                f"grand_total_revenue_contribution must be in ETH, got {value.currency.value}"
            )
        return value


def build_aggregated_referrer_metrics_pie_split(
    referrers: Sequence[RankedReferrerMetricsPieSplit],
    rules: ReferralProgramRulesPieSplit,
) -> AggregatedReferrerMetricsPieSplit:
    """
    Aggregate a complete, globally ranked list of referrers.

    Must never be called with a page of the ranking: aggregate the full
    ranking first, then paginate.

    Args:
        referrers: Every ranked referrer, ranks 1..N in order
        rules: Pie-split rules

    Returns:
        Aggregated metrics

    Raises:
        ValidationError: If ``referrers`` is not a complete ranking
        InternalInvariantViolation: If referrers exist and rules allow
            qualification but nobody qualified
    """
    ensure_complete_ranking(referrers)

    grand_total_referrals = 0
    grand_total_incremental_duration = 0
    grand_total_revenue_contribution = 0
    grand_total_qualified_final_score = 0.0
    min_final_score_to_qualify: float | None = None

    for referrer in referrers:
        grand_total_referrals += referrer.total_referrals
        grand_total_incremental_duration += referrer.total_incremental_duration
        grand_total_revenue_contribution += referrer.total_revenue_contribution.amount
        if referrer.is_qualified:
            grand_total_qualified_final_score += referrer.final_score
            if min_final_score_to_qualify is None or referrer.final_score < min_final_score_to_qualify:
                min_final_score_to_qualify = referrer.final_score

    if min_final_score_to_qualify is None:
        if rules.max_qualified_referrers == 0:
            # nobody can ever qualify
            min_final_score_to_qualify = UNREACHABLE_FINAL_SCORE
        elif not referrers:
            # anyone would qualify
            min_final_score_to_qualify = 0.0
        else:
            raise InternalInvariantViolation(
                "AggregatedReferrerMetricsPieSplit: there are referrers on the leaderboard "
                "and the rules allow qualified referrers, but none qualified"
            )

    return AggregatedReferrerMetricsPieSplit(
        grand_total_referrals=grand_total_referrals,
        grand_total_incremental_duration=grand_total_incremental_duration,
        grand_total_revenue_contribution=price_eth(grand_total_revenue_contribution),
        grand_total_qualified_referrers_final_score=grand_total_qualified_final_score,
        min_final_score_to_qualify=min_final_score_to_qualify,
    )
