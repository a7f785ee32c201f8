"""
Currency amounts and exact price arithmetic.

Amounts are arbitrary-precision integers in the currency's smallest
unit. Floating point never touches an amount: scaling converts the
float factor into its exact binary fraction first.
"""

import math
from decimal import Decimal, InvalidOperation, localcontext
from enum import Enum
from typing import NamedTuple

from pydantic import Field

from referral_awards.core.base import EngineModel
from referral_awards.exceptions import (
    CurrencyMismatch,
    InvalidScaleFactor,
    NegativeAmount,
    ValidationError,
)


class CurrencyId(str, Enum):
    """Supported currencies."""

    ETH = "ETH"
    USDC = "USDC"
    DAI = "DAI"


class CurrencyInfo(NamedTuple):
    """Static currency description."""

    id: CurrencyId
    name: str
    decimals: int
    is_stablecoin: bool


CURRENCY_INFO: dict[CurrencyId, CurrencyInfo] = {
    CurrencyId.ETH: CurrencyInfo(
        id=CurrencyId.ETH,
        name="ETH",
        decimals=18,
        is_stablecoin=False,
    ),
    CurrencyId.USDC: CurrencyInfo(
        id=CurrencyId.USDC,
        name="USDC",
        decimals=6,
        is_stablecoin=True,
    ),
    CurrencyId.DAI: CurrencyInfo(
        id=CurrencyId.DAI,
        name="Dai Stablecoin",
        decimals=18,
        is_stablecoin=True,
    ),
}


class Price(EngineModel):
    """An amount of one currency, in its smallest unit."""

    currency: CurrencyId = Field(..., description="Currency of the amount")
    amount: int = Field(..., ge=0, strict=True, description="Amount in smallest units")


def get_currency_info(currency: CurrencyId) -> CurrencyInfo:
    """Get static info (name, decimals) for a currency."""
    return CURRENCY_INFO[currency]


def _build_price(currency: CurrencyId, amount: int) -> Price:
    if isinstance(amount, int) and not isinstance(amount, bool) and amount < 0:
        raise NegativeAmount(f"{currency.value} amount must be non-negative, got: {amount}")
    return Price(currency=currency, amount=amount)


def price_eth(amount: int) -> Price:
    """Create a price in ETH (wei)."""
    return _build_price(CurrencyId.ETH, amount)


def price_usdc(amount: int) -> Price:
    """Create a price in USDC (6 decimals)."""
    return _build_price(CurrencyId.USDC, amount)


def price_dai(amount: int) -> Price:
    """Create a price in DAI (18 decimals)."""
    return _build_price(CurrencyId.DAI, amount)


def is_price_currency_equal(price_a: Price, price_b: Price) -> bool:
    """Check if two prices share a currency."""
    return price_a.currency == price_b.currency


def is_price_equal(price_a: Price, price_b: Price) -> bool:
    """Check if two prices share a currency and an amount."""
    return is_price_currency_equal(price_a, price_b) and price_a.amount == price_b.amount


def add_prices(*prices: Price) -> Price:
    """
    Add two or more prices of the same currency.

    Args:
        *prices: At least two prices

    Returns:
        Total of all prices, in their shared currency

    Raises:
        ValidationError: If fewer than two prices are given
        CurrencyMismatch: If the prices are not all in one currency

    Example:
        >>> add_prices(price_usdc(1_000_000), price_usdc(500_000)).amount
        1500000
    """
    if len(prices) < 2:
        raise ValidationError(f"add_prices requires at least two prices, got {len(prices)}")

    currency = prices[0].currency
    if any(price.currency != currency for price in prices):
        currencies = sorted({price.currency.value for price in prices})
        raise CurrencyMismatch(
            f"All prices must have the same currency to be added together, got: {currencies}"
        )

    return Price(currency=currency, amount=sum(price.amount for price in prices))


def scale_int_by_float(value: int, scale_factor: float) -> int:
    """
    Scale a non-negative integer by a float, rounding down.

    The float is converted into its exact binary fraction
    (numerator / denominator) and the product is computed with integer
    arithmetic only, so neither large values nor tiny factors lose
    precision.

    Args:
        value: Non-negative integer to scale
        scale_factor: Non-negative finite multiplier

    Returns:
        floor(value * scale_factor)

    Raises:
        NegativeAmount: If value is negative
        InvalidScaleFactor: If scale_factor is negative, NaN or infinite

    Example:
        >>> scale_int_by_float(1000, 0.5)
        500
        >>> scale_int_by_float(1000, 1 / 3)
        333
    """
    if value < 0:
        raise NegativeAmount(f"Value to scale must be non-negative, got: {value}")

    if isinstance(scale_factor, bool):
        raise InvalidScaleFactor(f"Scale factor must be a number, got: {scale_factor!r}")

    try:
        factor = float(scale_factor)
    except (TypeError, ValueError) as e:
        raise InvalidScaleFactor(f"Scale factor must be a number, got: {scale_factor!r}") from e

    if not math.isfinite(factor):
        raise InvalidScaleFactor(f"Scale factor must be finite, got: {factor}")

    if factor < 0:
        raise InvalidScaleFactor(f"Scale factor must be non-negative, got: {factor}")

    if value == 0 or factor == 0:
        return 0

    numerator, denominator = factor.as_integer_ratio()
    return (value * numerator) // denominator


def scale_price(price: Price, scale_factor: float) -> Price:
    """
    Scale a price by a float, keeping its currency.

    Example:
        >>> scale_price(price_usdc(1_000_000), 0.5).amount
        500000
    """
    return Price(currency=price.currency, amount=scale_int_by_float(price.amount, scale_factor))


def _parse_units(value: str, currency: CurrencyId) -> Price:
    decimals = get_currency_info(currency).decimals

    try:
        parsed = Decimal(value.strip())
    except (InvalidOperation, AttributeError) as e:
        raise ValidationError(f"Invalid {currency.value} amount: {value!r}") from e

    if not parsed.is_finite():
        raise ValidationError(f"Invalid {currency.value} amount: {value!r}")

    if parsed < 0:
        raise NegativeAmount(f"{currency.value} amount must be non-negative, got: {value!r}")

    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, len(value) + decimals)
        scaled = parsed.scaleb(decimals)

    if scaled != scaled.to_integral_value():
        raise ValidationError(
            f"{currency.value} amount {value!r} has more than {decimals} decimal places"
        )

    return Price(currency=currency, amount=int(scaled))


def parse_eth(value: str) -> Price:
    """
    Parse a decimal ETH string into a price in wei.

    Example:
        >>> parse_eth("0.015").amount
        15000000000000000
    """
    return _parse_units(value, CurrencyId.ETH)


def parse_usdc(value: str) -> Price:
    """
    Parse a decimal USDC string into a price in 6-decimal units.

    Example:
        >>> parse_usdc("2.5").amount
        2500000
    """
    return _parse_units(value, CurrencyId.USDC)


def parse_dai(value: str) -> Price:
    """Parse a decimal DAI string into a price in 18-decimal units."""
    return _parse_units(value, CurrencyId.DAI)
