"""
Shared pydantic models for referral activity.

These are the engine inputs: pre-aggregated referrer metrics (pie-split)
and raw referral events (rev-share-limit).
"""

from pydantic import Field, field_validator

from referral_awards.core.base import EngineModel
from referral_awards.core.currency import CurrencyId, Price, price_eth
from referral_awards.types import Address, Duration, TransactionHash, UnixTimestamp


class AccountId(EngineModel):
    """A contract or account scoped to one chain."""

    chain_id: int = Field(..., gt=0, strict=True, description="EIP-155 chain id")
    address: Address = Field(..., description="Account address on that chain")


class ReferrerMetrics(EngineModel):
    """
    Activity of one referrer over a program window.

    One record per referrer, already aggregated. Never duplicated per
    referrer within a single input batch.
    """

    referrer: Address = Field(..., description="Referrer account address")
    total_referrals: int = Field(..., ge=0, strict=True, description="Number of referrals")
    total_incremental_duration: Duration = Field(
        ..., description="Sum of incremental registration duration (seconds)"
    )
    total_revenue_contribution: Price = Field(
        ..., description="Revenue contributed by the referrals (ETH)"
    )

    @field_validator("total_revenue_contribution")
    @classmethod
    def revenue_in_eth(cls, value: Price) -> Price:
        """Revenue contributions are always denominated in ETH."""
        if value.currency != CurrencyId.ETH:
            raise ValueError(
                f"total_revenue_contribution must be in ETH, got {value.currency.value}"
            )
        return value


def build_referrer_metrics(
    referrer: str,
    total_referrals: int,
    total_incremental_duration: int,
    total_revenue_contribution: Price,
) -> ReferrerMetrics:
    """Build validated referrer metrics."""
    return ReferrerMetrics(
        referrer=referrer,
        total_referrals=total_referrals,
        total_incremental_duration=total_incremental_duration,
        total_revenue_contribution=total_revenue_contribution,
    )


def build_zero_referrer_metrics(referrer: str) -> ReferrerMetrics:
    """Build metrics for a referrer without any activity."""
    return build_referrer_metrics(referrer, 0, 0, price_eth(0))


class ReferralEvent(EngineModel):
    """A single referral, as produced by the activity source."""

    id: str = Field(..., min_length=1, description="Unique event id")
    referrer: Address = Field(..., description="Referrer account address")
    timestamp: UnixTimestamp = Field(..., description="Block timestamp of the event")
    block_number: int = Field(..., ge=0, strict=True, description="Block number of the event")
    transaction_hash: TransactionHash = Field(..., description="Transaction hash of the event")
    incremental_duration: Duration = Field(
        ..., description="Registration duration added by this referral (seconds)"
    )
    incremental_revenue_contribution: Price = Field(
        ..., description="Revenue added by this referral (ETH)"
    )

    @field_validator("incremental_revenue_contribution")
    @classmethod
    def revenue_in_eth(cls, value: Price) -> Price:
        """Revenue contributions are always denominated in ETH."""
        if value.currency != CurrencyId.ETH:
            raise ValueError(
                f"incremental_revenue_contribution must be in ETH, got {value.currency.value}"
            )
        return value


def referral_event_order_key(event: ReferralEvent) -> tuple[int, int, str, str]:
    """
    Sort key establishing who claims first.

    Order: timestamp, block number, transaction hash, event id (all ascending).
    """
    return (event.timestamp, event.block_number, event.transaction_hash, event.id)
