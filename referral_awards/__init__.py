"""
Referral award engine.

Turns referral activity and program rules into a ranked, awarded
leaderboard with exact integer currency arithmetic.

Example:
    >>> from referral_awards import (
    ...     AccountId, build_referral_program_rules_pie_split,
    ...     build_referrer_leaderboard, build_referrer_metrics,
    ...     parse_eth, parse_usdc,
    ... )
    >>>
    >>> rules = build_referral_program_rules_pie_split(
    ...     total_award_pool_value=parse_usdc("1000"),
    ...     max_qualified_referrers=10,
    ...     start_time=1_735_689_600,
    ...     end_time=1_738_368_000,
    ...     subregistry_id=AccountId(chain_id=1, address="0x" + "57" * 20),
    ...     rules_url="https://example.com/rules",
    ... )
    >>> referrer = build_referrer_metrics("0x" + "ab" * 20, 3, 31_556_952, parse_eth("0.01"))
    >>> leaderboard = build_referrer_leaderboard(rules, [referrer], 1_736_000_000)
    >>> leaderboard.referrers[referrer.referrer].award_pool_approx_value.amount
    1000000000
"""

from referral_awards.constants import SECONDS_PER_YEAR
from referral_awards.core import (
    AccountId,
    CurrencyId,
    Price,
    ReferralEvent,
    ReferralProgramAwardModel,
    ReferralProgramRules,
    ReferralProgramRulesPieSplit,
    ReferralProgramRulesRevShareLimit,
    ReferralProgramRulesUnrecognized,
    ReferralProgramStatus,
    ReferrerMetrics,
    add_prices,
    build_referral_program_rules_pie_split,
    build_referral_program_rules_rev_share_limit,
    build_referral_program_rules_unrecognized,
    build_referrer_metrics,
    calc_referral_program_status,
    parse_dai,
    parse_eth,
    parse_usdc,
    price_dai,
    price_eth,
    price_usdc,
    scale_price,
)
from referral_awards.exceptions import (
    AwardEngineError,
    CurrencyMismatch,
    DuplicateReferrer,
    InternalInvariantViolation,
    InvalidScaleFactor,
    NegativeAmount,
    PageOutOfRange,
    UnsupportedAwardModel,
    ValidationError,
)
from referral_awards.leaderboard import (
    ReferrerDetail,
    ReferrerLeaderboard,
    ReferrerLeaderboardPage,
    build_referrer_leaderboard,
    get_referrer_detail,
    get_referrer_leaderboard_page,
)


__version__ = "1.0.0"
__all__ = [
    # Entry points
    "build_referrer_leaderboard",
    "get_referrer_leaderboard_page",
    "get_referrer_detail",
    "ReferrerLeaderboard",
    "ReferrerLeaderboardPage",
    "ReferrerDetail",
    # Currency
    "CurrencyId",
    "Price",
    "add_prices",
    "scale_price",
    "price_eth",
    "price_usdc",
    "price_dai",
    "parse_eth",
    "parse_usdc",
    "parse_dai",
    # Inputs
    "AccountId",
    "ReferrerMetrics",
    "ReferralEvent",
    "build_referrer_metrics",
    # Rules
    "ReferralProgramAwardModel",
    "ReferralProgramRules",
    "ReferralProgramRulesPieSplit",
    "ReferralProgramRulesRevShareLimit",
    "ReferralProgramRulesUnrecognized",
    "build_referral_program_rules_pie_split",
    "build_referral_program_rules_rev_share_limit",
    "build_referral_program_rules_unrecognized",
    "ReferralProgramStatus",
    "calc_referral_program_status",
    # Constants
    "SECONDS_PER_YEAR",
    # Errors
    "AwardEngineError",
    "ValidationError",
    "NegativeAmount",
    "DuplicateReferrer",
    "PageOutOfRange",
    "UnsupportedAwardModel",
    "CurrencyMismatch",
    "InvalidScaleFactor",
    "InternalInvariantViolation",
]
