"""
Pie-split referrer metrics.

Each stage enriches the previous one and is built by a pure function:

    ReferrerMetrics -> Scored -> Ranked -> Awarded

Score is years of incremental duration. The top ``max_qualified_referrers``
qualify; their scores are boosted linearly by rank (rank 1 doubles, the
last qualified rank is not boosted) and the pool is split in proportion
to the boosted final scores.
"""

from typing import TYPE_CHECKING

from pydantic import Field, field_validator, model_validator

from referral_awards.constants import SECONDS_PER_YEAR
from referral_awards.core.currency import CurrencyId, Price, price_usdc, scale_price
from referral_awards.core.models import ReferrerMetrics, build_zero_referrer_metrics
from referral_awards.core.rules import (
    ReferralProgramRulesPieSplit,
    is_referrer_qualified_pie_split,
)
from referral_awards.exceptions import ValidationError
from referral_awards.types import Fraction, ReferrerRank, ReferrerScore


if TYPE_CHECKING:
    from referral_awards.pie_split.aggregations import AggregatedReferrerMetricsPieSplit


def calc_referrer_score_pie_split(total_incremental_duration: int) -> float:
    """
    Score = incremental duration in years.

    Example:
        >>> calc_referrer_score_pie_split(SECONDS_PER_YEAR * 2)
        2.0
    """
    return total_incremental_duration / SECONDS_PER_YEAR


def calc_referrer_final_score_boost_pie_split(
    rank: int,
    rules: ReferralProgramRulesPieSplit,
) -> float:
    """
    Boost in [0, 1] for a ranked referrer.

    Formula: 1 - (rank - 1) / (max_qualified_referrers - 1) when qualified,
    0 otherwise. With a single qualifying slot the qualified referrer gets
    the full boost.
    """
    if not is_referrer_qualified_pie_split(rank, rules):
        return 0.0

    if rules.max_qualified_referrers == 1:
        return 1.0

    return 1 - (rank - 1) / (rules.max_qualified_referrers - 1)


def calc_referrer_final_score_pie_split(
    rank: int,
    total_incremental_duration: int,
    rules: ReferralProgramRulesPieSplit,
) -> float:
    """Final score = score * (1 + boost)."""
    score = calc_referrer_score_pie_split(total_incremental_duration)
    return score * (1 + calc_referrer_final_score_boost_pie_split(rank, rules))


class ScoredReferrerMetricsPieSplit(ReferrerMetrics):
    """Referrer metrics with a score independent of other referrers."""

    score: ReferrerScore = Field(..., description="Years of incremental duration")

    @model_validator(mode="after")
    def validate_score(self) -> "ScoredReferrerMetricsPieSplit":
        expected = calc_referrer_score_pie_split(self.total_incremental_duration)
        if self.score != expected:
            raise ValueError(f"Invalid score: {self.score}, expected: {expected}")
        return self


def build_scored_referrer_metrics_pie_split(
    referrer: ReferrerMetrics,
) -> ScoredReferrerMetricsPieSplit:
    return ScoredReferrerMetricsPieSplit(
        **referrer.model_dump(),
        score=calc_referrer_score_pie_split(referrer.total_incremental_duration),
    )


class RankedReferrerMetricsPieSplit(ScoredReferrerMetricsPieSplit):
    """Scored metrics placed relative to every other referrer."""

    rank: ReferrerRank
    is_qualified: bool = Field(..., description="rank <= max_qualified_referrers")
    final_score_boost: Fraction
    final_score: ReferrerScore


def validate_ranked_referrer_metrics_pie_split(
    metrics: RankedReferrerMetricsPieSplit,
    rules: ReferralProgramRulesPieSplit,
) -> None:
    """
    Check rank-dependent fields against the rules.

    Raises:
        ValidationError: If qualification, boost or final score disagree
            with what rank and rules imply
    """
    expected_is_qualified = is_referrer_qualified_pie_split(metrics.rank, rules)
    if metrics.is_qualified != expected_is_qualified:
        raise ValidationError(
            f"RankedReferrerMetricsPieSplit: Invalid is_qualified: {metrics.is_qualified}, "
            f"expected: {expected_is_qualified}"
        )

    expected_boost = calc_referrer_final_score_boost_pie_split(metrics.rank, rules)
    if metrics.final_score_boost != expected_boost:
        raise ValidationError(
            f"RankedReferrerMetricsPieSplit: Invalid final_score_boost: "
            f"{metrics.final_score_boost}, expected: {expected_boost}"
        )

    expected_final_score = calc_referrer_final_score_pie_split(
        metrics.rank,
        metrics.total_incremental_duration,
        rules,
    )
    if metrics.final_score != expected_final_score:
        raise ValidationError(
            f"RankedReferrerMetricsPieSplit: Invalid final_score: {metrics.final_score}, "
            f"expected: {expected_final_score}"
        )


def build_ranked_referrer_metrics_pie_split(
    referrer: ScoredReferrerMetricsPieSplit,
    rank: int,
    rules: ReferralProgramRulesPieSplit,
) -> RankedReferrerMetricsPieSplit:
    result = RankedReferrerMetricsPieSplit(
        **referrer.model_dump(),
        rank=rank,
        is_qualified=is_referrer_qualified_pie_split(rank, rules),
        final_score_boost=calc_referrer_final_score_boost_pie_split(rank, rules),
        final_score=calc_referrer_final_score_pie_split(
            rank, referrer.total_incremental_duration, rules
        ),
    )
    validate_ranked_referrer_metrics_pie_split(result, rules)
    return result


def calc_referrer_award_pool_share_pie_split(
    referrer: RankedReferrerMetricsPieSplit,
    aggregated_metrics: "AggregatedReferrerMetricsPieSplit",
) -> float:
    """
    Share of the award pool in [0, 1].

    finalScore / sum of qualified final scores, or 0 for unqualified
    referrers and when that sum is 0. Being float quotients, the qualified
    shares may sum to 1 plus a few ulps; award values are floored and stay
    within the pool.
    """
    if not referrer.is_qualified:
        return 0.0

    if aggregated_metrics.grand_total_qualified_referrers_final_score == 0:
        return 0.0

    return referrer.final_score / aggregated_metrics.grand_total_qualified_referrers_final_score


class AwardedReferrerMetricsPieSplit(RankedReferrerMetricsPieSplit):
    """Ranked metrics with the referrer's slice of the award pool."""

    award_pool_share: Fraction
    award_pool_approx_value: Price = Field(..., description="USDC value of the share")

    @field_validator("award_pool_approx_value")
    @classmethod
    def value_in_usdc(cls, value: Price) -> Price:
        if value.currency != CurrencyId.USDC:
            raise ValueError(f"award_pool_approx_value must be in USDC, got {value.currency.value}")
        return value


def validate_awarded_referrer_metrics_pie_split(
    referrer: AwardedReferrerMetricsPieSplit,
    rules: ReferralProgramRulesPieSplit,
) -> None:
    """
    Check rank-dependent fields and the award bound.

    Raises:
        ValidationError: If the award exceeds the pool or ranking fields
            are inconsistent
    """
    validate_ranked_referrer_metrics_pie_split(referrer, rules)

    if not referrer.is_qualified and referrer.award_pool_share != 0:
        raise ValidationError(
            f"AwardedReferrerMetricsPieSplit: unqualified referrer has "
            f"award_pool_share {referrer.award_pool_share}"
        )

    if referrer.award_pool_approx_value.amount > rules.total_award_pool_value.amount:
        raise ValidationError(
            f"AwardedReferrerMetricsPieSplit: award_pool_approx_value "
            f"{referrer.award_pool_approx_value.amount} exceeds total_award_pool_value "
            f"{rules.total_award_pool_value.amount}"
        )


def build_awarded_referrer_metrics_pie_split(
    referrer: RankedReferrerMetricsPieSplit,
    aggregated_metrics: "AggregatedReferrerMetricsPieSplit",
    rules: ReferralProgramRulesPieSplit,
) -> AwardedReferrerMetricsPieSplit:
    award_pool_share = calc_referrer_award_pool_share_pie_split(referrer, aggregated_metrics)

    result = AwardedReferrerMetricsPieSplit(
        **referrer.model_dump(),
        award_pool_share=award_pool_share,
        award_pool_approx_value=scale_price(rules.total_award_pool_value, award_pool_share),
    )
    validate_awarded_referrer_metrics_pie_split(result, rules)
    return result


class UnrankedReferrerMetricsPieSplit(ScoredReferrerMetricsPieSplit):
    """
    A referrer who is not on the leaderboard.

    Zero activity, no rank, never qualified, nothing awarded.
    """

    rank: None = None
    is_qualified: bool = False
    final_score_boost: float = 0.0
    final_score: float = 0.0
    award_pool_share: float = 0.0
    award_pool_approx_value: Price = Field(default_factory=lambda: price_usdc(0))

    @model_validator(mode="after")
    def validate_all_zero(self) -> "UnrankedReferrerMetricsPieSplit":
        if self.is_qualified:
            raise ValueError("is_qualified must be False for an unranked referrer")
        if (
            self.total_referrals != 0
            or self.total_incremental_duration != 0
            or self.total_revenue_contribution.amount != 0
        ):
            raise ValueError("An unranked referrer must have zero activity")
        if (
            self.score != 0
            or self.final_score_boost != 0
            or self.final_score != 0
            or self.award_pool_share != 0
        ):
            raise ValueError("An unranked referrer must have zero scores and share")
        if self.award_pool_approx_value != price_usdc(0):
            raise ValueError("award_pool_approx_value must be 0 USDC for an unranked referrer")
        return self


def build_unranked_referrer_metrics_pie_split(referrer: str) -> UnrankedReferrerMetricsPieSplit:
    """
    Build the zero record for a referrer absent from the leaderboard.

    Example:
        >>> build_unranked_referrer_metrics_pie_split("0x" + "ab" * 20).rank is None
        True
    """
    scored = build_scored_referrer_metrics_pie_split(build_zero_referrer_metrics(referrer))
    return UnrankedReferrerMetricsPieSplit(**scored.model_dump())
