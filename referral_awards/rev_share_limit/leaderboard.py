"""
Rev-share-limit leaderboard assembly.

The pool is handed out in a single chronological race over referral
events. A referrer claims from the pool the moment their base revenue
reaches the qualifying threshold, and keeps claiming on every later
event, until the pool is empty. Claims are never revisited, so at most
one claim in a run is partially funded; every claim after it gets 0.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Literal

from loguru import logger
from pydantic import Field, model_validator

from referral_awards.core.base import EngineModel
from referral_awards.core.currency import price_eth, price_usdc
from referral_awards.core.models import (
    ReferralEvent,
    build_referrer_metrics,
    referral_event_order_key,
)
from referral_awards.core.pagination import ReferrerLeaderboardPageContext
from referral_awards.core.ranking import assign_ranks, validate_ranked_mapping
from referral_awards.core.rules import (
    ReferralProgramAwardModel,
    ReferralProgramRulesRevShareLimit,
    is_referrer_qualified_rev_share_limit,
)
from referral_awards.core.status import ReferralProgramStatus
from referral_awards.exceptions import InternalInvariantViolation, ValidationError
from referral_awards.rev_share_limit.aggregations import (
    AggregatedReferrerMetricsRevShareLimit,
    build_aggregated_referrer_metrics_rev_share_limit,
)
from referral_awards.rev_share_limit.metrics import (
    AwardedReferrerMetricsRevShareLimit,
    UnrankedReferrerMetricsRevShareLimit,
    build_awarded_referrer_metrics_rev_share_limit,
    build_ranked_referrer_metrics_rev_share_limit,
    build_referrer_metrics_rev_share_limit,
    calc_base_revenue_contribution,
    calc_standard_award_value,
)
from referral_awards.types import Address, UnixTimestamp
from referral_awards.utils.formatters import format_price


class ReferrerLeaderboardRevShareLimit(EngineModel):
    """Complete rev-share-limit leaderboard, referrers ordered by ascending rank."""

    award_model: Literal[ReferralProgramAwardModel.REV_SHARE_LIMIT] = (
        ReferralProgramAwardModel.REV_SHARE_LIMIT
    )
    rules: ReferralProgramRulesRevShareLimit
    referrers: dict[Address, AwardedReferrerMetricsRevShareLimit]
    aggregated_metrics: AggregatedReferrerMetricsRevShareLimit
    accurate_as_of: UnixTimestamp

    @model_validator(mode="after")
    def validate_referrers(self) -> "ReferrerLeaderboardRevShareLimit":
        validate_ranked_mapping(self.referrers)
        return self


@dataclass
class AwardPoolRaceEntry:
    """Running totals of one referrer during the race."""

    referrer: str
    total_referrals: int = 0
    total_incremental_duration: int = 0
    total_revenue_contribution: int = 0
    is_qualified: bool = False
    claimed: int = 0


@dataclass(frozen=True)
class AwardPoolClaim:
    """One claim against the pool, made by a qualified referrer's event."""

    event_id: str
    referrer: str
    requested: int
    claimed: int

    @property
    def is_truncated(self) -> bool:
        return self.claimed < self.requested

    @property
    def is_partial(self) -> bool:
        return 0 < self.claimed < self.requested


@dataclass
class AwardPoolRace:
    """Outcome of a race: entries in first-seen order and claims in event order."""

    entries: list[AwardPoolRaceEntry]
    claims: list[AwardPoolClaim]
    remaining: int


def _standard_award_amount(
    total_incremental_duration: int,
    rules: ReferralProgramRulesRevShareLimit,
) -> int:
    base = calc_base_revenue_contribution(total_incremental_duration)
    return calc_standard_award_value(base, rules).amount


def _ensure_unique_event_ids(events: Iterable[ReferralEvent]) -> None:
    seen: set[str] = set()
    for event in events:
        if event.id in seen:
            raise ValidationError(f"Duplicate referral event id: {event.id}")
        seen.add(event.id)


def run_award_pool_race(
    events: Iterable[ReferralEvent],
    rules: ReferralProgramRulesRevShareLimit,
) -> AwardPoolRace:
    """
    Replay events in claim order and hand out the pool.

    Args:
        events: Every referral event of the program, in any order
        rules: Rev-share-limit rules

    Returns:
        Per-referrer entries, every claim made, and the pool remaining

    Raises:
        ValidationError: If two events share an id
    """
    ordered = sorted(events, key=referral_event_order_key)
    _ensure_unique_event_ids(ordered)

    entries: dict[str, AwardPoolRaceEntry] = {}
    claims: list[AwardPoolClaim] = []
    remaining = rules.total_award_pool_value.amount
    exhausted_logged = False

    for event in ordered:
        entry = entries.get(event.referrer)
        if entry is None:
            entry = entries[event.referrer] = AwardPoolRaceEntry(referrer=event.referrer)

        standard_before = _standard_award_amount(entry.total_incremental_duration, rules)

        entry.total_referrals += 1
        entry.total_incremental_duration += event.incremental_duration
        entry.total_revenue_contribution += event.incremental_revenue_contribution.amount

        standard_after = _standard_award_amount(entry.total_incremental_duration, rules)

        if entry.is_qualified:
            requested = standard_after - standard_before
        elif is_referrer_qualified_rev_share_limit(
            calc_base_revenue_contribution(entry.total_incremental_duration), rules
        ):
            entry.is_qualified = True
            requested = standard_after
        else:
            continue

        claim = min(requested, remaining)
        entry.claimed += claim
        remaining -= claim
        pool_claim = AwardPoolClaim(event.id, event.referrer, requested, claim)
        claims.append(pool_claim)

        if pool_claim.is_truncated and not exhausted_logged:
            logger.warning(
                f"Award pool exhausted at event {event.id}: {event.referrer} "
                f"claimed {claim} of {requested}"
            )
            exhausted_logged = True

    return AwardPoolRace(list(entries.values()), claims, remaining)


def _race_rank_key(entry: AwardPoolRaceEntry) -> tuple[int, int, str]:
    return (entry.claimed, entry.total_incremental_duration, entry.referrer)


def build_referrer_leaderboard_rev_share_limit(
    events: Iterable[ReferralEvent],
    rules: ReferralProgramRulesRevShareLimit,
    accurate_as_of: int,
) -> ReferrerLeaderboardRevShareLimit:
    """
    Build the rev-share-limit leaderboard.

    Referrers are ranked by amount claimed, then aggregated duration,
    then address (all descending).

    Args:
        events: Complete, unordered referral events for the program window
        rules: Rev-share-limit rules
        accurate_as_of: Unix timestamp the events are accurate as of

    Returns:
        Leaderboard with every referrer that has at least one event

    Raises:
        ValidationError: If event ids repeat
        InternalInvariantViolation: If a claim exceeds its standard award
            or the pool does not balance
    """
    race = run_award_pool_race(events, rules)
    entries = sorted(race.entries, key=_race_rank_key, reverse=True)
    remaining = race.remaining

    awarded: list[AwardedReferrerMetricsRevShareLimit] = []
    for rank, entry in assign_ranks(entries):
        metrics = build_referrer_metrics_rev_share_limit(
            build_referrer_metrics(
                entry.referrer,
                entry.total_referrals,
                entry.total_incremental_duration,
                price_eth(entry.total_revenue_contribution),
            )
        )
        ranked = build_ranked_referrer_metrics_rev_share_limit(metrics, rank, rules)

        standard = _standard_award_amount(entry.total_incremental_duration, rules)
        if entry.claimed > standard:
            raise InternalInvariantViolation(
                f"Referrer {entry.referrer} claimed {entry.claimed}, "
                f"more than the standard award {standard}"
            )

        awarded.append(
            build_awarded_referrer_metrics_rev_share_limit(
                ranked, price_usdc(entry.claimed), rules
            )
        )

    aggregated_metrics = build_aggregated_referrer_metrics_rev_share_limit(
        awarded, rules, price_usdc(remaining)
    )

    logger.debug(
        f"Built rev-share-limit leaderboard: {len(awarded)} referrers, "
        f"{sum(1 for r in awarded if r.is_qualified)} qualified, "
        f"pool remaining {format_price(aggregated_metrics.award_pool_remaining)}"
    )

    return ReferrerLeaderboardRevShareLimit(
        rules=rules,
        referrers={referrer.referrer: referrer for referrer in awarded},
        aggregated_metrics=aggregated_metrics,
        accurate_as_of=accurate_as_of,
    )


class ReferrerLeaderboardPageRevShareLimit(EngineModel):
    """One page of a rev-share-limit leaderboard."""

    award_model: Literal[ReferralProgramAwardModel.REV_SHARE_LIMIT] = (
        ReferralProgramAwardModel.REV_SHARE_LIMIT
    )
    rules: ReferralProgramRulesRevShareLimit
    referrers: list[AwardedReferrerMetricsRevShareLimit]
    aggregated_metrics: AggregatedReferrerMetricsRevShareLimit = Field(
        ..., description="Aggregated over the complete leaderboard, not this page"
    )
    page_context: ReferrerLeaderboardPageContext
    status: ReferralProgramStatus
    accurate_as_of: UnixTimestamp


class ReferrerDetailRankedRevShareLimit(EngineModel):
    type: Literal["ranked"] = "ranked"
    award_model: Literal[ReferralProgramAwardModel.REV_SHARE_LIMIT] = (
        ReferralProgramAwardModel.REV_SHARE_LIMIT
    )
    rules: ReferralProgramRulesRevShareLimit
    referrer: AwardedReferrerMetricsRevShareLimit
    aggregated_metrics: AggregatedReferrerMetricsRevShareLimit
    status: ReferralProgramStatus
    accurate_as_of: UnixTimestamp


class ReferrerDetailUnrankedRevShareLimit(EngineModel):
    type: Literal["unranked"] = "unranked"
    award_model: Literal[ReferralProgramAwardModel.REV_SHARE_LIMIT] = (
        ReferralProgramAwardModel.REV_SHARE_LIMIT
    )
    rules: ReferralProgramRulesRevShareLimit
    referrer: UnrankedReferrerMetricsRevShareLimit
    aggregated_metrics: AggregatedReferrerMetricsRevShareLimit
    status: ReferralProgramStatus
    accurate_as_of: UnixTimestamp
