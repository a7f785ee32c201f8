"""Pytest configuration and shared fixtures for all tests."""

import itertools
from typing import Callable, Optional

import pytest

from referral_awards.constants import SECONDS_PER_YEAR
from referral_awards.core.currency import Price, price_eth, price_usdc
from referral_awards.core.models import (
    AccountId,
    ReferralEvent,
    ReferrerMetrics,
    build_referrer_metrics,
)
from referral_awards.core.rules import (
    ReferralProgramRulesPieSplit,
    ReferralProgramRulesRevShareLimit,
    build_referral_program_rules_pie_split,
    build_referral_program_rules_rev_share_limit,
)


PROGRAM_START = 1_735_689_600  # 2025-01-01T00:00:00Z
PROGRAM_END = PROGRAM_START + 30 * 24 * 3600
AS_OF = PROGRAM_START + 24 * 3600

ADDR_A = "0x" + "aa" * 20
ADDR_B = "0x" + "bb" * 20
ADDR_C = "0x" + "cc" * 20
ADDR_D = "0x" + "dd" * 20


def tx_hash(n: int) -> str:
    """Deterministic 32-byte transaction hash."""
    return "0x" + f"{n:064x}"


@pytest.fixture
def subregistry_id() -> AccountId:
    """Subregistry the test programs are scoped to."""
    return AccountId(chain_id=1, address="0x" + "57" * 20)


@pytest.fixture
def make_pie_split_rules(
    subregistry_id: AccountId,
) -> Callable[..., ReferralProgramRulesPieSplit]:
    """Factory for pie-split rules; defaults: 1000 USDC pool, 10 qualifiers."""

    def _make(
        max_qualified_referrers: int = 10,
        total_award_pool_value: Optional[Price] = None,
        start_time: int = PROGRAM_START,
        end_time: int = PROGRAM_END,
    ) -> ReferralProgramRulesPieSplit:
        return build_referral_program_rules_pie_split(
            total_award_pool_value=total_award_pool_value or price_usdc(1_000_000_000),
            max_qualified_referrers=max_qualified_referrers,
            start_time=start_time,
            end_time=end_time,
            subregistry_id=subregistry_id,
            rules_url="https://example.com/rules",
        )

    return _make


@pytest.fixture
def make_rev_share_rules(
    subregistry_id: AccountId,
) -> Callable[..., ReferralProgramRulesRevShareLimit]:
    """
    Factory for rev-share-limit rules.

    Defaults: 2.50 USDC pool, 5 USDC qualifying threshold (one year of
    duration), half of base revenue awarded.
    """

    def _make(
        total_award_pool_value: Optional[Price] = None,
        min_qualified_revenue_contribution: Optional[Price] = None,
        qualified_revenue_share: float = 0.5,
        start_time: int = PROGRAM_START,
        end_time: int = PROGRAM_END,
    ) -> ReferralProgramRulesRevShareLimit:
        return build_referral_program_rules_rev_share_limit(
            total_award_pool_value=total_award_pool_value or price_usdc(2_500_000),
            min_qualified_revenue_contribution=(
                min_qualified_revenue_contribution or price_usdc(5_000_000)
            ),
            qualified_revenue_share=qualified_revenue_share,
            start_time=start_time,
            end_time=end_time,
            subregistry_id=subregistry_id,
            rules_url="https://example.com/rules",
        )

    return _make


@pytest.fixture
def make_metrics() -> Callable[..., ReferrerMetrics]:
    """Factory for pie-split input metrics; duration is given in seconds."""

    def _make(
        referrer: str,
        total_incremental_duration: int,
        total_referrals: int = 1,
        total_revenue_contribution: int = 0,
    ) -> ReferrerMetrics:
        return build_referrer_metrics(
            referrer,
            total_referrals,
            total_incremental_duration,
            price_eth(total_revenue_contribution),
        )

    return _make


@pytest.fixture
def make_event() -> Callable[..., ReferralEvent]:
    """
    Factory for referral events.

    Event ids and transaction hashes are unique per test; timestamps
    default to increasing order of creation.
    """
    counter = itertools.count(1)

    def _make(
        referrer: str,
        incremental_duration: int = SECONDS_PER_YEAR,
        timestamp: Optional[int] = None,
        block_number: Optional[int] = None,
        transaction_hash: Optional[str] = None,
        event_id: Optional[str] = None,
        incremental_revenue_contribution: int = 0,
    ) -> ReferralEvent:
        n = next(counter)
        return ReferralEvent(
            id=event_id or f"event-{n:04d}",
            referrer=referrer,
            timestamp=PROGRAM_START + n if timestamp is None else timestamp,
            block_number=n if block_number is None else block_number,
            transaction_hash=transaction_hash or tx_hash(n),
            incremental_duration=incremental_duration,
            incremental_revenue_contribution=price_eth(incremental_revenue_contribution),
        )

    return _make
