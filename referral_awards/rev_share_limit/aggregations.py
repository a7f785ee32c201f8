"""Aggregated metrics over a complete rev-share-limit ranking."""

from collections.abc import Sequence

from pydantic import Field, field_validator

from referral_awards.core.base import EngineModel
from referral_awards.core.currency import CurrencyId, Price, price_eth
from referral_awards.core.ranking import ensure_complete_ranking
from referral_awards.core.rules import ReferralProgramRulesRevShareLimit
from referral_awards.exceptions import InternalInvariantViolation
from referral_awards.rev_share_limit.metrics import AwardedReferrerMetricsRevShareLimit
from referral_awards.types import Duration


class AggregatedReferrerMetricsRevShareLimit(EngineModel):
    """Totals over every ranked referrer plus what is left in the pool."""

    grand_total_referrals: int = Field(..., ge=0, strict=True)
    grand_total_incremental_duration: Duration
    grand_total_revenue_contribution: Price = Field(..., description="ETH")
    award_pool_remaining: Price = Field(..., description="Unclaimed pool (USDC)")

    @field_validator("grand_total_revenue_contribution")
    @classmethod
    def revenue_in_eth(cls, value: Price) -> Price:
        if value.currency != CurrencyId.ETH:
            raise ValueError(
                f"grand_total_revenue_contribution must be in ETH, got {value.currency.value}"
            )
        return value

    @field_validator("award_pool_remaining")
    @classmethod
    def remaining_in_usdc(cls, value: Price) -> Price:
        if value.currency != CurrencyId.USDC:
            raise ValueError(f"award_pool_remaining must be in USDC, got {value.currency.value}")
        return value


def build_aggregated_referrer_metrics_rev_share_limit(
    referrers: Sequence[AwardedReferrerMetricsRevShareLimit],
    rules: ReferralProgramRulesRevShareLimit,
    award_pool_remaining: Price,
) -> AggregatedReferrerMetricsRevShareLimit:
    """
    Aggregate a complete, globally ranked list of awarded referrers.

    Args:
        referrers: Every ranked referrer, ranks 1..N in order
        rules: Rev-share-limit rules
        award_pool_remaining: Pool left over after the race

    Returns:
        Aggregated metrics

    Raises:
        ValidationError: If ``referrers`` is not a complete ranking
        InternalInvariantViolation: If claims plus the remainder do not add
            up to the pool
    """
    ensure_complete_ranking(referrers)

    grand_total_referrals = 0
    grand_total_incremental_duration = 0
    grand_total_revenue_contribution = 0
    total_claimed = 0

    for referrer in referrers:
        grand_total_referrals += referrer.total_referrals
        grand_total_incremental_duration += referrer.total_incremental_duration
        grand_total_revenue_contribution += referrer.total_revenue_contribution.amount
        total_claimed += referrer.award_pool_approx_value.amount

    if total_claimed + award_pool_remaining.amount != rules.total_award_pool_value.amount:
        raise InternalInvariantViolation(
            f"AggregatedReferrerMetricsRevShareLimit: claimed {total_claimed} + remaining "
            f"{award_pool_remaining.amount} != pool {rules.total_award_pool_value.amount}"
        )

    return AggregatedReferrerMetricsRevShareLimit(
        grand_total_referrals=grand_total_referrals,
        grand_total_incremental_duration=grand_total_incremental_duration,
        grand_total_revenue_contribution=price_eth(grand_total_revenue_contribution),
        award_pool_remaining=award_pool_remaining,
    )
