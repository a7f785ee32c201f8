"""
Tests for the rev-share-limit award model.

Referrers claim half of their base revenue ($5 per year of duration)
from a shared pool in event order, as soon as they reach the $5
qualifying threshold, until the pool runs dry.
"""

import random

import pytest
from loguru import logger

from conftest import ADDR_A, ADDR_B, ADDR_C, ADDR_D, AS_OF, PROGRAM_START, tx_hash
from referral_awards.constants import SECONDS_PER_YEAR
from referral_awards.core.currency import price_eth, price_usdc
from referral_awards.exceptions import InternalInvariantViolation, ValidationError
from referral_awards.rev_share_limit.aggregations import (
    build_aggregated_referrer_metrics_rev_share_limit,
)
from referral_awards.rev_share_limit.leaderboard import (
    build_referrer_leaderboard_rev_share_limit,
    run_award_pool_race,
)
from referral_awards.rev_share_limit.metrics import (
    AwardedReferrerMetricsRevShareLimit,
    build_unranked_referrer_metrics_rev_share_limit,
    calc_base_revenue_contribution,
    calc_standard_award_value,
    validate_awarded_referrer_metrics_rev_share_limit,
)


HALF_YEAR = SECONDS_PER_YEAR // 2


def claims(leaderboard) -> dict[str, int]:
    return {
        address: record.award_pool_approx_value.amount
        for address, record in leaderboard.referrers.items()
    }


def standard_award_amount(duration: int, rules) -> int:
    return calc_standard_award_value(calc_base_revenue_contribution(duration), rules).amount


def interleaved_events(make_event) -> list:
    """Forty events round-robin over four referrers with uneven durations."""
    referrers = [ADDR_A, ADDR_B, ADDR_C, ADDR_D]
    return [
        make_event(referrers[i % 4], incremental_duration=(i * 7_919_123) % SECONDS_PER_YEAR)
        for i in range(40)
    ]


class TestBaseRevenue:
    """Tests for base revenue and standard award calculations."""

    def test_one_year_is_five_usdc(self) -> None:
        assert calc_base_revenue_contribution(SECONDS_PER_YEAR) == price_usdc(5_000_000)

    def test_rounds_down(self) -> None:
        """Test 7 seconds is worth 1 smallest unit, rounded down."""
        assert calc_base_revenue_contribution(7).amount == 1
        assert calc_base_revenue_contribution(1).amount == 0

    def test_standard_award_is_share_of_base(self, make_rev_share_rules) -> None:
        rules = make_rev_share_rules(qualified_revenue_share=0.5)
        assert calc_standard_award_value(price_usdc(5_000_000), rules) == price_usdc(2_500_000)


class TestAwardPoolRace:
    """Tests for the sequential first-come-first-served race."""

    # === Scenarios ===

    def test_pool_funds_only_the_first(self, make_event, make_rev_share_rules) -> None:
        """Test pool of $2.50, two one-year referrers: the earlier takes it all."""
        rules = make_rev_share_rules()
        events = [make_event(ADDR_A), make_event(ADDR_B)]

        leaderboard = build_referrer_leaderboard_rev_share_limit(events, rules, AS_OF)

        assert claims(leaderboard) == {ADDR_A: 2_500_000, ADDR_B: 0}
        assert leaderboard.referrers[ADDR_A].standard_award_value == price_usdc(2_500_000)
        assert leaderboard.referrers[ADDR_B].is_qualified
        assert leaderboard.aggregated_metrics.award_pool_remaining == price_usdc(0)

    def test_event_order_not_input_order(self, make_event, make_rev_share_rules) -> None:
        """Test claims follow timestamps, not the order events are passed in."""
        rules = make_rev_share_rules()
        early = make_event(ADDR_B, timestamp=PROGRAM_START + 10)
        late = make_event(ADDR_A, timestamp=PROGRAM_START + 20)

        leaderboard = build_referrer_leaderboard_rev_share_limit([late, early], rules, AS_OF)

        assert claims(leaderboard) == {ADDR_B: 2_500_000, ADDR_A: 0}

    def test_single_partial_claim(self, make_event, make_rev_share_rules) -> None:
        """Test only the claim that empties the pool is truncated."""
        rules = make_rev_share_rules(total_award_pool_value=price_usdc(3_000_000))
        events = [make_event(ADDR_A), make_event(ADDR_B), make_event(ADDR_C)]

        leaderboard = build_referrer_leaderboard_rev_share_limit(events, rules, AS_OF)

        assert claims(leaderboard) == {ADDR_A: 2_500_000, ADDR_B: 500_000, ADDR_C: 0}
        partial = [
            r for r in leaderboard.referrers.values()
            if 0 < r.award_pool_approx_value.amount < r.standard_award_value.amount
        ]
        assert [r.referrer for r in partial] == [ADDR_B]

    def test_claim_on_crossing_threshold(self, make_event, make_rev_share_rules) -> None:
        """Test nothing is claimed below the threshold, then the full accrued award."""
        rules = make_rev_share_rules(total_award_pool_value=price_usdc(100_000_000))
        events = [
            make_event(ADDR_A, incremental_duration=HALF_YEAR),
            make_event(ADDR_B, incremental_duration=HALF_YEAR),
            make_event(ADDR_A, incremental_duration=SECONDS_PER_YEAR - HALF_YEAR),
        ]

        leaderboard = build_referrer_leaderboard_rev_share_limit(events, rules, AS_OF)

        assert leaderboard.referrers[ADDR_A].is_qualified
        assert leaderboard.referrers[ADDR_A].award_pool_approx_value == price_usdc(2_500_000)
        assert not leaderboard.referrers[ADDR_B].is_qualified
        assert leaderboard.referrers[ADDR_B].award_pool_approx_value == price_usdc(0)

    def test_qualified_referrer_keeps_claiming(self, make_event, make_rev_share_rules) -> None:
        """Test later events of a qualified referrer claim their increment."""
        rules = make_rev_share_rules(total_award_pool_value=price_usdc(100_000_000))
        events = [
            make_event(ADDR_A),
            make_event(ADDR_A, incremental_duration=HALF_YEAR),
            make_event(ADDR_A, incremental_duration=SECONDS_PER_YEAR - HALF_YEAR),
        ]

        leaderboard = build_referrer_leaderboard_rev_share_limit(events, rules, AS_OF)
        record = leaderboard.referrers[ADDR_A]

        assert record.total_referrals == 3
        assert record.award_pool_approx_value == price_usdc(5_000_000)
        assert record.award_pool_approx_value == record.standard_award_value
        assert leaderboard.aggregated_metrics.award_pool_remaining == price_usdc(95_000_000)

    def test_base_revenue_uses_aggregated_duration(self, make_event, make_rev_share_rules) -> None:
        """Test truncation happens once over the total, not per event."""
        rules = make_rev_share_rules(total_award_pool_value=price_usdc(100_000_000))
        events = [
            make_event(ADDR_A, incremental_duration=7),
            make_event(ADDR_A, incremental_duration=SECONDS_PER_YEAR - 7),
        ]

        leaderboard = build_referrer_leaderboard_rev_share_limit(events, rules, AS_OF)
        record = leaderboard.referrers[ADDR_A]

        # Per-event truncation would give 1 + 4_999_998 and miss the threshold
        assert record.total_base_revenue_contribution == price_usdc(5_000_000)
        assert record.is_qualified
        assert record.award_pool_approx_value == price_usdc(2_500_000)

    def test_pool_exhaustion_is_logged(self, make_event, make_rev_share_rules) -> None:
        messages: list[str] = []
        handler_id = logger.add(messages.append, level="WARNING", format="{message}")
        try:
            build_referrer_leaderboard_rev_share_limit(
                [make_event(ADDR_A), make_event(ADDR_B)], make_rev_share_rules(), AS_OF
            )
        finally:
            logger.remove(handler_id)

        assert len(messages) == 1
        assert "exhausted" in messages[0]

    # === Claim order tie-breaks ===

    def test_block_number_breaks_timestamp_tie(self, make_event, make_rev_share_rules) -> None:
        rules = make_rev_share_rules()
        events = [
            make_event(ADDR_A, timestamp=PROGRAM_START, block_number=11),
            make_event(ADDR_B, timestamp=PROGRAM_START, block_number=10),
        ]
        leaderboard = build_referrer_leaderboard_rev_share_limit(events, rules, AS_OF)
        assert claims(leaderboard) == {ADDR_B: 2_500_000, ADDR_A: 0}

    def test_transaction_hash_breaks_block_tie(self, make_event, make_rev_share_rules) -> None:
        rules = make_rev_share_rules()
        events = [
            make_event(ADDR_A, timestamp=PROGRAM_START, block_number=10, transaction_hash=tx_hash(9)),
            make_event(ADDR_B, timestamp=PROGRAM_START, block_number=10, transaction_hash=tx_hash(3)),
        ]
        leaderboard = build_referrer_leaderboard_rev_share_limit(events, rules, AS_OF)
        assert claims(leaderboard) == {ADDR_B: 2_500_000, ADDR_A: 0}

    def test_event_id_breaks_transaction_tie(self, make_event, make_rev_share_rules) -> None:
        rules = make_rev_share_rules()
        common = {"timestamp": PROGRAM_START, "block_number": 10, "transaction_hash": tx_hash(1)}
        events = [
            make_event(ADDR_A, event_id="evt-2", **common),
            make_event(ADDR_B, event_id="evt-1", **common),
        ]
        leaderboard = build_referrer_leaderboard_rev_share_limit(events, rules, AS_OF)
        assert claims(leaderboard) == {ADDR_B: 2_500_000, ADDR_A: 0}

    def test_duplicate_event_id_rejected(self, make_event, make_rev_share_rules) -> None:
        events = [make_event(ADDR_A, event_id="same"), make_event(ADDR_B, event_id="same")]
        with pytest.raises(ValidationError):
            run_award_pool_race(events, make_rev_share_rules())


class TestRevShareLimitRanking:
    """Tests for ranking after the race."""

    def test_ranked_by_claim_then_duration_then_address(
        self, make_event, make_rev_share_rules
    ) -> None:
        rules = make_rev_share_rules(total_award_pool_value=price_usdc(2_500_000))
        events = [
            make_event(ADDR_A, incremental_duration=HALF_YEAR),
            make_event(ADDR_B, incremental_duration=HALF_YEAR),
            make_event(ADDR_C, incremental_duration=SECONDS_PER_YEAR),
            make_event(ADDR_D, incremental_duration=3 * SECONDS_PER_YEAR),
        ]

        leaderboard = build_referrer_leaderboard_rev_share_limit(events, rules, AS_OF)

        # C claims the pool; D has the longest duration but claims nothing;
        # A and B tie on both and fall back to address
        assert list(leaderboard.referrers) == [ADDR_C, ADDR_D, ADDR_B, ADDR_A]
        assert [r.rank for r in leaderboard.referrers.values()] == [1, 2, 3, 4]

    def test_deterministic(self, make_event, make_rev_share_rules) -> None:
        """Test shuffled event lists build identical leaderboards."""
        rules = make_rev_share_rules(
            total_award_pool_value=price_usdc(7_777_777),
            min_qualified_revenue_contribution=price_usdc(1_000_000),
        )
        events = interleaved_events(make_event)
        shuffled = list(events)
        random.Random(20240101).shuffle(shuffled)

        first = build_referrer_leaderboard_rev_share_limit(events, rules, AS_OF)
        second = build_referrer_leaderboard_rev_share_limit(shuffled, rules, AS_OF)
        third = build_referrer_leaderboard_rev_share_limit(events[::-1], rules, AS_OF)

        assert first == second == third
        assert list(first.referrers) == list(second.referrers) == list(third.referrers)
        assert first.model_dump_json() == second.model_dump_json()

    def test_empty_events(self, make_rev_share_rules) -> None:
        rules = make_rev_share_rules()
        leaderboard = build_referrer_leaderboard_rev_share_limit([], rules, AS_OF)

        assert leaderboard.referrers == {}
        assert leaderboard.aggregated_metrics.award_pool_remaining == rules.total_award_pool_value
        assert leaderboard.aggregated_metrics.grand_total_referrals == 0


class TestRevShareLimitAggregation:
    """Tests for totals and pool conservation."""

    def test_conservation(self, make_event, make_rev_share_rules) -> None:
        """Test claims plus the remainder always equal the pool."""
        rules = make_rev_share_rules(
            total_award_pool_value=price_usdc(7_777_777),
            min_qualified_revenue_contribution=price_usdc(1_000_000),
            qualified_revenue_share=1 / 3,
        )
        events = interleaved_events(make_event)

        leaderboard = build_referrer_leaderboard_rev_share_limit(events, rules, AS_OF)

        total_claimed = sum(claims(leaderboard).values())
        remaining = leaderboard.aggregated_metrics.award_pool_remaining.amount
        assert total_claimed + remaining == rules.total_award_pool_value.amount
        for record in leaderboard.referrers.values():
            if not record.is_qualified:
                assert record.award_pool_approx_value == price_usdc(0)

    def test_at_most_one_partial_claim(self, make_event, make_rev_share_rules) -> None:
        """
        Test one claim at most is cut short, and every claim after it is 0.

        Several referrers can still end below their standard award: a
        referrer funded in full early on gets nothing for events that
        arrive once the pool is empty.
        """
        rules = make_rev_share_rules(
            total_award_pool_value=price_usdc(7_777_777),
            min_qualified_revenue_contribution=price_usdc(1_000_000),
            qualified_revenue_share=1 / 3,
        )

        race = run_award_pool_race(interleaved_events(make_event), rules)

        assert race.remaining == 0
        assert len([c for c in race.claims if c.is_partial]) <= 1

        first_truncated = next(i for i, c in enumerate(race.claims) if c.is_truncated)
        assert all(c.claimed == 0 for c in race.claims[first_truncated + 1:])
        assert all(not c.is_truncated for c in race.claims[:first_truncated])
        assert sum(c.claimed for c in race.claims) == rules.total_award_pool_value.amount

        below_standard = [
            e for e in race.entries
            if 0 < e.claimed < standard_award_amount(e.total_incremental_duration, rules)
        ]
        assert len(below_standard) > 1

    def test_revenue_totals(self, make_event, make_rev_share_rules) -> None:
        events = [
            make_event(ADDR_A, incremental_revenue_contribution=10**17),
            make_event(ADDR_A, incremental_revenue_contribution=2 * 10**17),
            make_event(ADDR_B, incremental_revenue_contribution=5),
        ]
        leaderboard = build_referrer_leaderboard_rev_share_limit(
            events, make_rev_share_rules(), AS_OF
        )
        aggregated = leaderboard.aggregated_metrics

        assert aggregated.grand_total_referrals == 3
        assert aggregated.grand_total_incremental_duration == 3 * SECONDS_PER_YEAR
        assert aggregated.grand_total_revenue_contribution == price_eth(3 * 10**17 + 5)
        assert leaderboard.referrers[ADDR_A].total_revenue_contribution == price_eth(3 * 10**17)

    def test_unbalanced_pool_is_an_invariant_violation(
        self, make_event, make_rev_share_rules
    ) -> None:
        rules = make_rev_share_rules()
        leaderboard = build_referrer_leaderboard_rev_share_limit(
            [make_event(ADDR_A)], rules, AS_OF
        )
        with pytest.raises(InternalInvariantViolation):
            build_aggregated_referrer_metrics_rev_share_limit(
                list(leaderboard.referrers.values()), rules, price_usdc(1)
            )


class TestUnrankedRevShareLimit:
    def test_unranked_is_all_zero(self) -> None:
        unranked = build_unranked_referrer_metrics_rev_share_limit(ADDR_C)
        assert unranked.rank is None
        assert not unranked.is_qualified
        assert unranked.total_base_revenue_contribution == price_usdc(0)
        assert unranked.standard_award_value == price_usdc(0)
        assert unranked.award_pool_approx_value == price_usdc(0)


class TestAwardedRecordValidation:
    """Tests for validate_awarded_referrer_metrics_rev_share_limit."""

    @pytest.fixture
    def leaderboard(self, make_event, make_rev_share_rules):
        """A claims the whole $2.50 pool over three years; B is not qualified."""
        return build_referrer_leaderboard_rev_share_limit(
            [
                make_event(ADDR_A, incremental_duration=3 * SECONDS_PER_YEAR),
                make_event(ADDR_B, incremental_duration=HALF_YEAR),
            ],
            make_rev_share_rules(),
            AS_OF,
        )

    def test_built_records_pass(self, leaderboard) -> None:
        for record in leaderboard.referrers.values():
            validate_awarded_referrer_metrics_rev_share_limit(record, leaderboard.rules)

    def test_rejects_wrong_standard_award(self, leaderboard) -> None:
        record = leaderboard.referrers[ADDR_A]
        tampered = AwardedReferrerMetricsRevShareLimit(
            **{**record.model_dump(), "standard_award_value": price_usdc(7_500_001)}
        )
        with pytest.raises(ValidationError):
            validate_awarded_referrer_metrics_rev_share_limit(tampered, leaderboard.rules)

    def test_rejects_claim_by_unqualified_referrer(self, leaderboard) -> None:
        record = leaderboard.referrers[ADDR_B]
        assert not record.is_qualified
        tampered = AwardedReferrerMetricsRevShareLimit(
            **{**record.model_dump(), "award_pool_approx_value": price_usdc(1)}
        )
        with pytest.raises(ValidationError):
            validate_awarded_referrer_metrics_rev_share_limit(tampered, leaderboard.rules)

    def test_rejects_claim_above_pool(self, leaderboard) -> None:
        """Test a claim within the standard award but above the pool is rejected."""
        record = leaderboard.referrers[ADDR_A]
        assert record.standard_award_value == price_usdc(7_500_000)
        tampered = AwardedReferrerMetricsRevShareLimit(
            **{**record.model_dump(), "award_pool_approx_value": price_usdc(3_000_000)}
        )
        with pytest.raises(ValidationError):
            validate_awarded_referrer_metrics_rev_share_limit(tampered, leaderboard.rules)

    def test_rejects_wrong_qualification(self, leaderboard) -> None:
        record = leaderboard.referrers[ADDR_B]
        tampered = AwardedReferrerMetricsRevShareLimit(
            **{**record.model_dump(), "is_qualified": True}
        )
        with pytest.raises(ValidationError):
            validate_awarded_referrer_metrics_rev_share_limit(tampered, leaderboard.rules)

    def test_claim_above_standard_rejected_on_construction(self, leaderboard) -> None:
        record = leaderboard.referrers[ADDR_B]
        with pytest.raises(ValidationError):
            AwardedReferrerMetricsRevShareLimit(
                **{**record.model_dump(), "award_pool_approx_value": price_usdc(1_250_001)}
            )
