"""
Deterministic ordering of referrers.

Ties on the primary criteria are broken by comparing referrer addresses
as text, descending. The tie-break carries no meaning; it only makes
the output order reproducible.
"""

from collections.abc import Iterable, Mapping, Sequence
from typing import Protocol, TypeVar

from referral_awards.exceptions import DuplicateReferrer, ValidationError


class HasReferrer(Protocol):
    referrer: str


class HasIncrementalDuration(HasReferrer, Protocol):
    total_incremental_duration: int


T = TypeVar("T", bound=HasReferrer)
D = TypeVar("D", bound=HasIncrementalDuration)


def ensure_unique_referrers(records: Iterable[T]) -> None:
    """
    Check that no referrer appears twice.

    Raises:
        DuplicateReferrer: On the first repeated referrer
    """
    seen: set[str] = set()
    for record in records:
        if record.referrer in seen:
            raise DuplicateReferrer(record.referrer)
        seen.add(record.referrer)


def sort_referrers_by_duration(records: Sequence[D]) -> list[D]:
    """
    Sort referrers by total incremental duration, descending.

    Ties are broken by referrer address, descending.

    Raises:
        DuplicateReferrer: If any referrer appears twice
    """
    ensure_unique_referrers(records)
    return sorted(
        records,
        key=lambda r: (r.total_incremental_duration, r.referrer),
        reverse=True,
    )


def assign_ranks(records: Sequence[T]) -> list[tuple[int, T]]:
    """Pair each record of an already sorted list with its 1-based rank."""
    return [(index + 1, record) for index, record in enumerate(records)]


class HasRank(HasReferrer, Protocol):
    rank: int


def validate_ranked_mapping(referrers: Mapping[str, HasRank]) -> None:
    """
    Check a leaderboard mapping: keyed by each record's own referrer and
    iterated in rank order 1..N.

    Raises:
        ValueError: On the first inconsistent entry
    """
    for expected_rank, (referrer, record) in enumerate(referrers.items(), start=1):
        if record.referrer != referrer:
            raise ValueError(f"Mapping key {referrer} holds the record of {record.referrer}")
        if record.rank != expected_rank:
            raise ValueError(
                f"Referrer {referrer} has rank {record.rank} at position {expected_rank}"
            )


def ensure_complete_ranking(records: Sequence[HasRank]) -> None:
    """
    Check that ranks run 1..N in list order.

    Aggregations are only meaningful over the complete ranking; a page
    (anything but a prefix starting at rank 1 and covering everyone)
    must never be aggregated.

    Raises:
        ValidationError: If a rank is out of place
    """
    for expected_rank, record in enumerate(records, start=1):
        if record.rank != expected_rank:
            raise ValidationError(
                f"Expected a complete ranking: rank {record.rank} found at position "
                f"{expected_rank}"
            )
