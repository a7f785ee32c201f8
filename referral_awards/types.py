"""
Type definitions for the award engine.

Annotated aliases shared by every model: account addresses, transaction
hashes, timestamps, durations, scores and ranks.
"""

from typing import Annotated

from eth_utils import is_hex, is_hex_address, to_normalized_address
from pydantic import AfterValidator, Field


def normalize_address(value: str) -> str:
    """Validate an account address and return it in canonical lowercase."""
    if not is_hex_address(value):
        raise ValueError(f"Invalid account address: {value!r}")
    return to_normalized_address(value)


def _normalize_transaction_hash(value: str) -> str:
    if not (is_hex(value) and value.startswith("0x") and len(value) == 66):
        raise ValueError(f"Invalid transaction hash: {value!r}")
    return value.lower()


# Canonical lowercase 0x-prefixed 20-byte account address
Address = Annotated[str, AfterValidator(normalize_address)]

# Lowercase 0x-prefixed 32-byte transaction hash
TransactionHash = Annotated[str, AfterValidator(_normalize_transaction_hash)]

# Seconds since the Unix epoch
UnixTimestamp = Annotated[int, Field(ge=0, strict=True)]

# Number of seconds
Duration = Annotated[int, Field(ge=0, strict=True)]

# Referrer score: finite, non-negative
ReferrerScore = Annotated[float, Field(ge=0, allow_inf_nan=False)]

# Position on a leaderboard, starting at 1
ReferrerRank = Annotated[int, Field(ge=1, strict=True)]

# A fraction between 0 and 1 (inclusive)
Fraction = Annotated[float, Field(ge=0, le=1, allow_inf_nan=False)]
