"""
Rev-share-limit referrer metrics.

Base revenue is $5 (USDC) per year of incremental duration, computed
with a single integer division over the aggregated duration. A
referrer's standard award is ``qualified_revenue_share`` of that base
revenue; what they actually receive is whatever they claimed from the
shared pool before it ran dry.
"""

from pydantic import Field, field_validator, model_validator

from referral_awards.constants import (
    BASE_REVENUE_CONTRIBUTION_PER_YEAR_AMOUNT,
    SECONDS_PER_YEAR,
)
from referral_awards.core.currency import CurrencyId, Price, price_usdc, scale_price
from referral_awards.core.models import ReferrerMetrics, build_zero_referrer_metrics
from referral_awards.core.rules import (
    ReferralProgramRulesRevShareLimit,
    is_referrer_qualified_rev_share_limit,
)
from referral_awards.exceptions import ValidationError
from referral_awards.types import ReferrerRank


BASE_REVENUE_CONTRIBUTION_PER_YEAR = price_usdc(BASE_REVENUE_CONTRIBUTION_PER_YEAR_AMOUNT)


def _usdc_only(value: Price, field_name: str) -> Price:
    if value.currency != CurrencyId.USDC:
        raise ValueError(f"{field_name} must be in USDC, got {value.currency.value}")
    return value


def calc_base_revenue_contribution(total_incremental_duration: int) -> Price:
    """
    Base revenue for an aggregated duration, rounded down.

    Example:
        >>> calc_base_revenue_contribution(SECONDS_PER_YEAR).amount
        5000000
    """
    return price_usdc(
        BASE_REVENUE_CONTRIBUTION_PER_YEAR.amount * total_incremental_duration // SECONDS_PER_YEAR
    )


def calc_standard_award_value(
    total_base_revenue_contribution: Price,
    rules: ReferralProgramRulesRevShareLimit,
) -> Price:
    """Uncapped award: qualified_revenue_share x base revenue."""
    return scale_price(total_base_revenue_contribution, rules.qualified_revenue_share)


class ReferrerMetricsRevShareLimit(ReferrerMetrics):
    """Referrer metrics with base revenue contribution."""

    total_base_revenue_contribution: Price = Field(..., description="USDC")

    @field_validator("total_base_revenue_contribution")
    @classmethod
    def base_revenue_in_usdc(cls, value: Price) -> Price:
        return _usdc_only(value, "total_base_revenue_contribution")

    @model_validator(mode="after")
    def validate_base_revenue(self) -> "ReferrerMetricsRevShareLimit":
        expected = calc_base_revenue_contribution(self.total_incremental_duration)
        if self.total_base_revenue_contribution != expected:
            raise ValueError(
                f"Invalid total_base_revenue_contribution: "
                f"{self.total_base_revenue_contribution.amount}, expected: {expected.amount}"
            )
        return self


def build_referrer_metrics_rev_share_limit(
    metrics: ReferrerMetrics,
) -> ReferrerMetricsRevShareLimit:
    return ReferrerMetricsRevShareLimit(
        **metrics.model_dump(),
        total_base_revenue_contribution=calc_base_revenue_contribution(
            metrics.total_incremental_duration
        ),
    )


class RankedReferrerMetricsRevShareLimit(ReferrerMetricsRevShareLimit):
    """Base-revenue metrics with rank and qualification."""

    rank: ReferrerRank
    is_qualified: bool = Field(
        ..., description="total_base_revenue_contribution >= min_qualified_revenue_contribution"
    )


def validate_ranked_referrer_metrics_rev_share_limit(
    metrics: RankedReferrerMetricsRevShareLimit,
    rules: ReferralProgramRulesRevShareLimit,
) -> None:
    """
    Raises:
        ValidationError: If qualification disagrees with the revenue threshold
    """
    expected = is_referrer_qualified_rev_share_limit(
        metrics.total_base_revenue_contribution, rules
    )
    if metrics.is_qualified != expected:
        raise ValidationError(
            f"RankedReferrerMetricsRevShareLimit: Invalid is_qualified: "
            f"{metrics.is_qualified}, expected: {expected}"
        )


def build_ranked_referrer_metrics_rev_share_limit(
    referrer: ReferrerMetricsRevShareLimit,
    rank: int,
    rules: ReferralProgramRulesRevShareLimit,
) -> RankedReferrerMetricsRevShareLimit:
    result = RankedReferrerMetricsRevShareLimit(
        **referrer.model_dump(),
        rank=rank,
        is_qualified=is_referrer_qualified_rev_share_limit(
            referrer.total_base_revenue_contribution, rules
        ),
    )
    validate_ranked_referrer_metrics_rev_share_limit(result, rules)
    return result


class AwardedReferrerMetricsRevShareLimit(RankedReferrerMetricsRevShareLimit):
    """
    Ranked metrics with the standard (uncapped) award and the amount
    actually claimed from the pool.
    """

    standard_award_value: Price = Field(..., description="Uncapped entitlement (USDC)")
    award_pool_approx_value: Price = Field(..., description="Claimed from the pool (USDC)")

    @field_validator("standard_award_value", "award_pool_approx_value")
    @classmethod
    def awards_in_usdc(cls, value: Price) -> Price:
        return _usdc_only(value, "award value")

    @model_validator(mode="after")
    def validate_claim_bound(self) -> "AwardedReferrerMetricsRevShareLimit":
        if self.award_pool_approx_value.amount > self.standard_award_value.amount:
            raise ValueError(
                f"award_pool_approx_value {self.award_pool_approx_value.amount} exceeds "
                f"standard_award_value {self.standard_award_value.amount}"
            )
        return self


def validate_awarded_referrer_metrics_rev_share_limit(
    referrer: AwardedReferrerMetricsRevShareLimit,
    rules: ReferralProgramRulesRevShareLimit,
) -> None:
    """
    Check the awarded record against the rules.

    Raises:
        ValidationError: If the standard award is miscomputed, an
            unqualified referrer claimed anything, or a claim exceeds the pool
    """
    validate_ranked_referrer_metrics_rev_share_limit(referrer, rules)

    expected_standard = calc_standard_award_value(
        referrer.total_base_revenue_contribution, rules
    )
    if referrer.standard_award_value != expected_standard:
        raise ValidationError(
            f"AwardedReferrerMetricsRevShareLimit: Invalid standard_award_value: "
            f"{referrer.standard_award_value.amount}, expected: {expected_standard.amount}"
        )

    if not referrer.is_qualified and referrer.award_pool_approx_value.amount != 0:
        raise ValidationError(
            f"AwardedReferrerMetricsRevShareLimit: unqualified referrer {referrer.referrer} "
            f"claimed {referrer.award_pool_approx_value.amount}"
        )

    if referrer.award_pool_approx_value.amount > rules.total_award_pool_value.amount:
        raise ValidationError(
            f"AwardedReferrerMetricsRevShareLimit: award_pool_approx_value "
            f"{referrer.award_pool_approx_value.amount} exceeds total_award_pool_value "
            f"{rules.total_award_pool_value.amount}"
        )


def build_awarded_referrer_metrics_rev_share_limit(
    referrer: RankedReferrerMetricsRevShareLimit,
    award_pool_approx_value: Price,
    rules: ReferralProgramRulesRevShareLimit,
) -> AwardedReferrerMetricsRevShareLimit:
    result = AwardedReferrerMetricsRevShareLimit(
        **referrer.model_dump(),
        standard_award_value=calc_standard_award_value(
            referrer.total_base_revenue_contribution, rules
        ),
        award_pool_approx_value=award_pool_approx_value,
    )
    validate_awarded_referrer_metrics_rev_share_limit(result, rules)
    return result


class UnrankedReferrerMetricsRevShareLimit(ReferrerMetricsRevShareLimit):
    """A referrer who is not on the leaderboard: zero everything, no rank."""

    rank: None = None
    is_qualified: bool = False
    standard_award_value: Price = Field(default_factory=lambda: price_usdc(0))
    award_pool_approx_value: Price = Field(default_factory=lambda: price_usdc(0))

    @model_validator(mode="after")
    def validate_all_zero(self) -> "UnrankedReferrerMetricsRevShareLimit":
        if self.is_qualified:
            raise ValueError("is_qualified must be False for an unranked referrer")
        if (
            self.total_referrals != 0
            or self.total_incremental_duration != 0
            or self.total_revenue_contribution.amount != 0
        ):
            raise ValueError("An unranked referrer must have zero activity")
        zero = price_usdc(0)
        if self.standard_award_value != zero or self.award_pool_approx_value != zero:
            raise ValueError("An unranked referrer must have zero award values")
        return self


def build_unranked_referrer_metrics_rev_share_limit(
    referrer: str,
) -> UnrankedReferrerMetricsRevShareLimit:
    metrics = build_referrer_metrics_rev_share_limit(build_zero_referrer_metrics(referrer))
    return UnrankedReferrerMetricsRevShareLimit(**metrics.model_dump())
