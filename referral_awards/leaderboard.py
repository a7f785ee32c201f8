"""
Award-model dispatch.

Entry points that accept any supported rules or leaderboard and route to
the pie-split or rev-share-limit engine. Rules of an unrecognized award
model are rejected here, before any computation.
"""

from collections.abc import Sequence
from typing import Annotated, Optional, Union

from loguru import logger
from pydantic import Field

from referral_awards.core.models import ReferralEvent, ReferrerMetrics
from referral_awards.core.pagination import (
    build_referrer_leaderboard_page_context,
    build_referrer_leaderboard_page_params,
    slice_referrers,
)
from referral_awards.core.rules import (
    ReferralProgramRules,
    ReferralProgramRulesPieSplit,
    ReferralProgramRulesRevShareLimit,
    ensure_supported_rules,
)
from referral_awards.core.status import calc_referral_program_status
from referral_awards.exceptions import UnsupportedAwardModel, ValidationError
from referral_awards.pie_split.leaderboard import (
    ReferrerDetailRankedPieSplit,
    ReferrerDetailUnrankedPieSplit,
    ReferrerLeaderboardPagePieSplit,
    ReferrerLeaderboardPieSplit,
    build_referrer_leaderboard_pie_split,
)
from referral_awards.pie_split.metrics import build_unranked_referrer_metrics_pie_split
from referral_awards.rev_share_limit.leaderboard import (
    ReferrerDetailRankedRevShareLimit,
    ReferrerDetailUnrankedRevShareLimit,
    ReferrerLeaderboardPageRevShareLimit,
    ReferrerLeaderboardRevShareLimit,
    build_referrer_leaderboard_rev_share_limit,
)
from referral_awards.rev_share_limit.metrics import (
    build_unranked_referrer_metrics_rev_share_limit,
)
from referral_awards.types import normalize_address


ReferrerLeaderboard = Annotated[
    Union[ReferrerLeaderboardPieSplit, ReferrerLeaderboardRevShareLimit],
    Field(discriminator="award_model"),
]

ReferrerLeaderboardPage = Annotated[
    Union[ReferrerLeaderboardPagePieSplit, ReferrerLeaderboardPageRevShareLimit],
    Field(discriminator="award_model"),
]

ReferrerDetail = Union[
    ReferrerDetailRankedPieSplit,
    ReferrerDetailUnrankedPieSplit,
    ReferrerDetailRankedRevShareLimit,
    ReferrerDetailUnrankedRevShareLimit,
]


def build_referrer_leaderboard(
    rules: ReferralProgramRules,
    activity: Union[Sequence[ReferrerMetrics], Sequence[ReferralEvent]],
    accurate_as_of: int,
) -> Union[ReferrerLeaderboardPieSplit, ReferrerLeaderboardRevShareLimit]:
    """
    Build the complete leaderboard for a program.

    Args:
        rules: Program rules
        activity: Per-referrer metrics (pie-split) or referral events
            (rev-share-limit), complete for the program window
        accurate_as_of: Unix timestamp the activity is accurate as of

    Returns:
        Leaderboard of the rules' award model

    Raises:
        UnsupportedAwardModel: For rules of an unrecognized award model
        ValidationError: If ``activity`` does not match the award model
    """
    try:
        supported = ensure_supported_rules(rules)
    except UnsupportedAwardModel as e:
        logger.warning(f"Rejecting referral program rules: {e}")
        raise

    if isinstance(supported, ReferralProgramRulesPieSplit):
        if not all(isinstance(item, ReferrerMetrics) for item in activity):
            raise ValidationError("Pie-split leaderboards are built from ReferrerMetrics")
        return build_referrer_leaderboard_pie_split(activity, supported, accurate_as_of)

    if isinstance(supported, ReferralProgramRulesRevShareLimit):
        if not all(isinstance(item, ReferralEvent) for item in activity):
            raise ValidationError("Rev-share-limit leaderboards are built from ReferralEvents")
        return build_referrer_leaderboard_rev_share_limit(activity, supported, accurate_as_of)

    raise UnsupportedAwardModel(str(supported.award_model))


def get_referrer_leaderboard_page(
    leaderboard: Union[ReferrerLeaderboardPieSplit, ReferrerLeaderboardRevShareLimit],
    page: Optional[int] = None,
    records_per_page: Optional[int] = None,
) -> Union[ReferrerLeaderboardPagePieSplit, ReferrerLeaderboardPageRevShareLimit]:
    """
    Extract one page of a complete leaderboard.

    Aggregated metrics are carried over from the complete leaderboard.

    Raises:
        ValidationError: If page or records_per_page is out of range
        PageOutOfRange: If the page is beyond the last page

    Example:
        >>> page = get_referrer_leaderboard_page(leaderboard, page=2, records_per_page=10)
        >>> page.referrers[0].rank
        11
    """
    params = build_referrer_leaderboard_page_params(page, records_per_page)
    page_context = build_referrer_leaderboard_page_context(params, len(leaderboard.referrers))
    status = calc_referral_program_status(leaderboard.rules, leaderboard.accurate_as_of)

    page_cls = (
        ReferrerLeaderboardPagePieSplit
        if isinstance(leaderboard, ReferrerLeaderboardPieSplit)
        else ReferrerLeaderboardPageRevShareLimit
    )
    return page_cls(
        rules=leaderboard.rules,
        referrers=slice_referrers(leaderboard.referrers, page_context),
        aggregated_metrics=leaderboard.aggregated_metrics,
        page_context=page_context,
        status=status,
        accurate_as_of=leaderboard.accurate_as_of,
    )


def get_referrer_detail(
    referrer: str,
    leaderboard: Union[ReferrerLeaderboardPieSplit, ReferrerLeaderboardRevShareLimit],
) -> ReferrerDetail:
    """
    Look up one referrer on a leaderboard.

    Args:
        referrer: Account address, any case
        leaderboard: Complete leaderboard

    Returns:
        Ranked detail with the leaderboard record, or unranked detail with
        zero metrics when the referrer has no activity

    Raises:
        ValidationError: If ``referrer`` is not a valid address
    """
    try:
        address = normalize_address(referrer)
    except ValueError as e:
        raise ValidationError(str(e)) from e

    status = calc_referral_program_status(leaderboard.rules, leaderboard.accurate_as_of)
    record = leaderboard.referrers.get(address)
    common = {
        "rules": leaderboard.rules,
        "aggregated_metrics": leaderboard.aggregated_metrics,
        "status": status,
        "accurate_as_of": leaderboard.accurate_as_of,
    }

    if isinstance(leaderboard, ReferrerLeaderboardPieSplit):
        if record is not None:
            return ReferrerDetailRankedPieSplit(referrer=record, **common)
        return ReferrerDetailUnrankedPieSplit(
            referrer=build_unranked_referrer_metrics_pie_split(address), **common
        )

    if record is not None:
        return ReferrerDetailRankedRevShareLimit(referrer=record, **common)
    return ReferrerDetailUnrankedRevShareLimit(
        referrer=build_unranked_referrer_metrics_rev_share_limit(address), **common
    )
