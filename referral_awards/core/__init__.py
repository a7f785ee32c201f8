"""
Core building blocks shared by every award model.

Currency arithmetic, input records, rules, ranking, pagination and
program status.
"""

from referral_awards.core.currency import (
    CurrencyId,
    Price,
    add_prices,
    get_currency_info,
    is_price_currency_equal,
    is_price_equal,
    parse_dai,
    parse_eth,
    parse_usdc,
    price_dai,
    price_eth,
    price_usdc,
    scale_int_by_float,
    scale_price,
)
from referral_awards.core.models import (
    AccountId,
    ReferralEvent,
    ReferrerMetrics,
    build_referrer_metrics,
    build_zero_referrer_metrics,
)
from referral_awards.core.pagination import (
    ReferrerLeaderboardPageContext,
    ReferrerLeaderboardPageParams,
    build_referrer_leaderboard_page_context,
    build_referrer_leaderboard_page_params,
    validate_referrer_leaderboard_page_context,
)
from referral_awards.core.rules import (
    ReferralProgramAwardModel,
    ReferralProgramRules,
    ReferralProgramRulesPieSplit,
    ReferralProgramRulesRevShareLimit,
    ReferralProgramRulesUnrecognized,
    build_referral_program_rules_pie_split,
    build_referral_program_rules_rev_share_limit,
    build_referral_program_rules_unrecognized,
)
from referral_awards.core.status import ReferralProgramStatus, calc_referral_program_status

__all__ = [
    # Currency
    "CurrencyId",
    "Price",
    "add_prices",
    "get_currency_info",
    "is_price_currency_equal",
    "is_price_equal",
    "parse_dai",
    "parse_eth",
    "parse_usdc",
    "price_dai",
    "price_eth",
    "price_usdc",
    "scale_int_by_float",
    "scale_price",
    # Models
    "AccountId",
    "ReferralEvent",
    "ReferrerMetrics",
    "build_referrer_metrics",
    "build_zero_referrer_metrics",
    # Pagination
    "ReferrerLeaderboardPageContext",
    "ReferrerLeaderboardPageParams",
    "build_referrer_leaderboard_page_context",
    "build_referrer_leaderboard_page_params",
    "validate_referrer_leaderboard_page_context",
    # Rules
    "ReferralProgramAwardModel",
    "ReferralProgramRules",
    "ReferralProgramRulesPieSplit",
    "ReferralProgramRulesRevShareLimit",
    "ReferralProgramRulesUnrecognized",
    "build_referral_program_rules_pie_split",
    "build_referral_program_rules_rev_share_limit",
    "build_referral_program_rules_unrecognized",
    # Status
    "ReferralProgramStatus",
    "calc_referral_program_status",
]
