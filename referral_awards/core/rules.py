"""
Referral program rules.

A program runs under exactly one award model. The rules value is a
closed tagged union keyed by ``award_model``; the ``unrecognized``
variant only exists for forward compatibility and is rejected before
any computation.
"""

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import Field, HttpUrl, ValidationInfo, field_validator, model_validator

from referral_awards.core.base import EngineModel
from referral_awards.core.currency import CurrencyId, Price
from referral_awards.core.models import AccountId
from referral_awards.exceptions import UnsupportedAwardModel
from referral_awards.types import Fraction, ReferrerRank, UnixTimestamp


class ReferralProgramAwardModel(str, Enum):
    """Award model discriminant."""

    PIE_SPLIT = "pie-split"
    REV_SHARE_LIMIT = "rev-share-limit"
    UNRECOGNIZED = "unrecognized"


class BaseReferralProgramRules(EngineModel):
    """Fields shared by every award model."""

    start_time: UnixTimestamp = Field(..., description="Program start (inclusive)")
    end_time: UnixTimestamp = Field(..., description="Program end (inclusive)")
    subregistry_id: AccountId = Field(
        ..., description="Chain and contract scoping which on-chain activity counts"
    )
    rules_url: HttpUrl = Field(..., description="Human-readable rules document")

    @model_validator(mode="after")
    def validate_window(self) -> "BaseReferralProgramRules":
        """End time must not precede start time."""
        if self.end_time < self.start_time:
            raise ValueError(
                f"start_time {self.start_time} is after end_time {self.end_time}"
            )
        return self


def _require_usdc(value: Price, field_name: str) -> Price:
    if value.currency != CurrencyId.USDC:
        raise ValueError(f"{field_name} must be in USDC, got {value.currency.value}")
    return value


class ReferralProgramRulesPieSplit(BaseReferralProgramRules):
    """
    Pie-split: the top ``max_qualified_referrers`` by score split the pool
    proportionally to their boosted final scores.
    """

    award_model: Literal[ReferralProgramAwardModel.PIE_SPLIT] = (
        ReferralProgramAwardModel.PIE_SPLIT
    )
    total_award_pool_value: Price = Field(..., description="Award pool (USDC)")
    max_qualified_referrers: int = Field(
        ..., ge=0, strict=True, description="How many top-ranked referrers qualify"
    )

    @field_validator("total_award_pool_value")
    @classmethod
    def pool_in_usdc(cls, value: Price) -> Price:
        return _require_usdc(value, "total_award_pool_value")


class ReferralProgramRulesRevShareLimit(BaseReferralProgramRules):
    """
    Rev-share-limit: each qualified referrer claims a share of their base
    revenue from a shared pool, first come first served, until it runs dry.
    """

    award_model: Literal[ReferralProgramAwardModel.REV_SHARE_LIMIT] = (
        ReferralProgramAwardModel.REV_SHARE_LIMIT
    )
    total_award_pool_value: Price = Field(..., description="Award pool cap (USDC)")
    min_qualified_revenue_contribution: Price = Field(
        ..., description="Base revenue required to qualify (USDC)"
    )
    qualified_revenue_share: Fraction = Field(
        ..., description="Fraction of base revenue awarded to qualified referrers"
    )

    @field_validator("total_award_pool_value", "min_qualified_revenue_contribution")
    @classmethod
    def amounts_in_usdc(cls, value: Price, info: ValidationInfo) -> Price:
        return _require_usdc(value, info.field_name)


class ReferralProgramRulesUnrecognized(BaseReferralProgramRules):
    """Rules of an award model this version of the engine does not know."""

    award_model: Literal[ReferralProgramAwardModel.UNRECOGNIZED] = (
        ReferralProgramAwardModel.UNRECOGNIZED
    )
    original_award_model: str = Field(
        ..., min_length=1, description="Award model name as received"
    )


ReferralProgramRules = Annotated[
    Union[
        ReferralProgramRulesPieSplit,
        ReferralProgramRulesRevShareLimit,
        ReferralProgramRulesUnrecognized,
    ],
    Field(discriminator="award_model"),
]

SupportedReferralProgramRules = Union[
    ReferralProgramRulesPieSplit,
    ReferralProgramRulesRevShareLimit,
]


def build_referral_program_rules_pie_split(
    total_award_pool_value: Price,
    max_qualified_referrers: int,
    start_time: int,
    end_time: int,
    subregistry_id: AccountId,
    rules_url: str,
) -> ReferralProgramRulesPieSplit:
    """Build validated pie-split rules."""
    return ReferralProgramRulesPieSplit(
        total_award_pool_value=total_award_pool_value,
        max_qualified_referrers=max_qualified_referrers,
        start_time=start_time,
        end_time=end_time,
        subregistry_id=subregistry_id,
        rules_url=rules_url,
    )


def build_referral_program_rules_rev_share_limit(
    total_award_pool_value: Price,
    min_qualified_revenue_contribution: Price,
    qualified_revenue_share: float,
    start_time: int,
    end_time: int,
    subregistry_id: AccountId,
    rules_url: str,
) -> ReferralProgramRulesRevShareLimit:
    """Build validated rev-share-limit rules."""
    return ReferralProgramRulesRevShareLimit(
        total_award_pool_value=total_award_pool_value,
        min_qualified_revenue_contribution=min_qualified_revenue_contribution,
        qualified_revenue_share=qualified_revenue_share,
        start_time=start_time,
        end_time=end_time,
        subregistry_id=subregistry_id,
        rules_url=rules_url,
    )


def build_referral_program_rules_unrecognized(
    original_award_model: str,
    start_time: int,
    end_time: int,
    subregistry_id: AccountId,
    rules_url: str,
) -> ReferralProgramRulesUnrecognized:
    """Build a placeholder for rules of an unknown award model."""
    return ReferralProgramRulesUnrecognized(
        original_award_model=original_award_model,
        start_time=start_time,
        end_time=end_time,
        subregistry_id=subregistry_id,
        rules_url=rules_url,
    )


def ensure_supported_rules(rules: ReferralProgramRules) -> SupportedReferralProgramRules:
    """
    Reject rules the engine cannot compute on.

    Raises:
        UnsupportedAwardModel: For the unrecognized variant
    """
    if isinstance(rules, ReferralProgramRulesUnrecognized):
        raise UnsupportedAwardModel(rules.original_award_model)
    return rules


def is_referrer_qualified_pie_split(
    rank: ReferrerRank,
    rules: ReferralProgramRulesPieSplit,
) -> bool:
    """A pie-split referrer qualifies iff rank <= max_qualified_referrers."""
    return rank <= rules.max_qualified_referrers


def is_referrer_qualified_rev_share_limit(
    total_base_revenue_contribution: Price,
    rules: ReferralProgramRulesRevShareLimit,
) -> bool:
    """A rev-share-limit referrer qualifies once base revenue meets the threshold."""
    return (
        total_base_revenue_contribution.amount
        >= rules.min_qualified_revenue_contribution.amount
    )
