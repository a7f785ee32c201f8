"""
Formatting utilities for prices, shares and durations.

Display helpers for log messages and presentation layers. Computed
results never go through these functions.
"""

from decimal import ROUND_DOWN, Decimal, localcontext
from typing import Optional

from referral_awards.constants import SECONDS_PER_YEAR
from referral_awards.core.currency import Price, get_currency_info


def format_price(price: Price, decimals: Optional[int] = None) -> str:
    """
    Format a price in whole currency units.

    Args:
        price: Price to format
        decimals: Digits after the decimal point (default: 2 for
            stablecoins, 6 otherwise)

    Returns:
        Formatted string with the currency code, rounded down

    Example:
        >>> format_price(price_usdc(2_500_000))
        '2.50 USDC'
        >>> format_price(price_eth(10**18), decimals=0)
        '1 ETH'
    """
    info = get_currency_info(price.currency)
    if decimals is None:
        decimals = 2 if info.is_stablecoin else 6

    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, len(str(price.amount)) + decimals + 1)
        units = Decimal(price.amount).scaleb(-info.decimals)
        value = units.quantize(Decimal(1).scaleb(-decimals), rounding=ROUND_DOWN)
    return f"{value:,f} {info.id.value}"


def format_award_share(share: float, decimals: int = 2) -> str:
    """
    Format an award pool share (0..1) as a percentage.

    Example:
        >>> format_award_share(0.125)
        '12.50%'
    """
    return f"{share * 100:.{decimals}f}%"


def format_duration_years(seconds: int) -> str:
    """
    Format a duration in years.

    Example:
        >>> format_duration_years(SECONDS_PER_YEAR * 3 // 2)
        '1.50 years'
        >>> format_duration_years(SECONDS_PER_YEAR)
        '1.00 year'
    """
    years = seconds / SECONDS_PER_YEAR
    unit = "year" if f"{years:.2f}" == "1.00" else "years"
    return f"{years:.2f} {unit}"
