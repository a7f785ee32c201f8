"""
Leaderboard pagination.

The page context is fully derived from (page, records_per_page,
total_records). Slicing only extracts records from an already fully
ranked list; it never re-ranks or re-scores.
"""

import math
from collections.abc import Mapping
from typing import TypeVar

from pydantic import Field, model_validator

from referral_awards.constants import (
    LEADERBOARD_PAGE_DEFAULT,
    REFERRERS_PER_LEADERBOARD_PAGE_DEFAULT,
    REFERRERS_PER_LEADERBOARD_PAGE_MAX,
)
from referral_awards.core.base import EngineModel
from referral_awards.exceptions import PageOutOfRange, ValidationError

T = TypeVar("T")


class ReferrerLeaderboardPageParams(EngineModel):
    """Requested page (1-indexed) and page size."""

    page: int = Field(
        default=LEADERBOARD_PAGE_DEFAULT, ge=1, strict=True, description="Page number"
    )
    records_per_page: int = Field(
        default=REFERRERS_PER_LEADERBOARD_PAGE_DEFAULT,
        ge=1,
        le=REFERRERS_PER_LEADERBOARD_PAGE_MAX,
        strict=True,
        description="Referrers per page",
    )


def build_referrer_leaderboard_page_params(
    page: int | None = None,
    records_per_page: int | None = None,
) -> ReferrerLeaderboardPageParams:
    """
    Materialize page params, filling in defaults.

    Raises:
        ValidationError: If page < 1 or records_per_page is outside 1..100
    """
    return ReferrerLeaderboardPageParams(
        page=LEADERBOARD_PAGE_DEFAULT if page is None else page,
        records_per_page=(
            REFERRERS_PER_LEADERBOARD_PAGE_DEFAULT
            if records_per_page is None
            else records_per_page
        ),
    )


def calc_total_pages(total_records: int, records_per_page: int) -> int:
    """Total pages, never less than 1 (an empty leaderboard has one empty page)."""
    return max(1, math.ceil(total_records / records_per_page))


class ReferrerLeaderboardPageContext(ReferrerLeaderboardPageParams):
    """
    Position of one page within the complete leaderboard.

    ``start_index`` and ``end_index`` are 0-based and inclusive; both are
    None if and only if ``total_records`` is 0.
    """

    total_records: int = Field(..., ge=0, strict=True)
    total_pages: int = Field(..., ge=1, strict=True)
    has_next: bool
    has_prev: bool
    start_index: int | None = Field(default=None, ge=0)
    end_index: int | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def validate_derived_fields(self) -> "ReferrerLeaderboardPageContext":
        """Every field must match what (page, records_per_page, total_records) imply."""
        expected_total_pages = calc_total_pages(self.total_records, self.records_per_page)
        if self.total_pages != expected_total_pages:
            raise ValueError(
                f"total_pages is {self.total_pages} but expected {expected_total_pages} "
                f"for total_records={self.total_records}, "
                f"records_per_page={self.records_per_page}"
            )

        if self.page > self.total_pages:
            raise ValueError(f"page {self.page} exceeds total_pages {self.total_pages}")

        if self.total_records == 0:
            if self.start_index is not None or self.end_index is not None:
                raise ValueError("start_index and end_index must be None when there are no records")
        else:
            expected_start = (self.page - 1) * self.records_per_page
            expected_end = min(
                expected_start + self.records_per_page - 1,
                self.total_records - 1,
            )
            if self.start_index != expected_start:
                raise ValueError(
                    f"start_index is {self.start_index} but expected {expected_start}"
                )
            if self.end_index != expected_end:
                raise ValueError(f"end_index is {self.end_index} but expected {expected_end}")

        expected_has_next = self.page * self.records_per_page < self.total_records
        if self.has_next != expected_has_next:
            raise ValueError(f"has_next is {self.has_next} but expected {expected_has_next}")

        expected_has_prev = self.page > 1
        if self.has_prev != expected_has_prev:
            raise ValueError(f"has_prev is {self.has_prev} but expected {expected_has_prev}")

        return self


def build_referrer_leaderboard_page_context(
    params: ReferrerLeaderboardPageParams,
    total_records: int,
) -> ReferrerLeaderboardPageContext:
    """
    Build the page context for a leaderboard of ``total_records`` referrers.

    Args:
        params: Materialized page params
        total_records: Size of the complete leaderboard

    Returns:
        Validated page context

    Raises:
        PageOutOfRange: If params.page is beyond the last page

    Example:
        >>> params = build_referrer_leaderboard_page_params(page=2, records_per_page=10)
        >>> ctx = build_referrer_leaderboard_page_context(params, 25)
        >>> (ctx.start_index, ctx.end_index, ctx.has_next)
        (10, 19, True)
    """
    total_pages = calc_total_pages(total_records, params.records_per_page)

    if params.page > total_pages:
        raise PageOutOfRange(params.page, total_pages)

    if total_records == 0:
        return ReferrerLeaderboardPageContext(
            page=params.page,
            records_per_page=params.records_per_page,
            total_records=0,
            total_pages=1,
            has_next=False,
            has_prev=False,
            start_index=None,
            end_index=None,
        )

    start_index = (params.page - 1) * params.records_per_page
    max_index_on_page = start_index + params.records_per_page - 1

    return ReferrerLeaderboardPageContext(
        page=params.page,
        records_per_page=params.records_per_page,
        total_records=total_records,
        total_pages=total_pages,
        has_next=max_index_on_page < total_records - 1,
        has_prev=params.page > 1,
        start_index=start_index,
        end_index=min(max_index_on_page, total_records - 1),
    )


def slice_referrers(
    referrers: Mapping[str, T],
    page_context: ReferrerLeaderboardPageContext,
) -> list[T]:
    """Extract records [start_index, end_index] from a fully ranked mapping."""
    if page_context.start_index is None or page_context.end_index is None:
        return []
    records = list(referrers.values())
    return records[page_context.start_index:page_context.end_index + 1]


def validate_referrer_leaderboard_page_context(page_context: ReferrerLeaderboardPageContext) -> None:
    """
    Re-derive a page context from its params and record count.

    Raises:
        ValidationError: If any derived field differs
    """
    params = ReferrerLeaderboardPageParams(
        page=page_context.page,
        records_per_page=page_context.records_per_page,
    )
    expected = build_referrer_leaderboard_page_context(params, page_context.total_records)
    if page_context != expected:
        raise ValidationError(
            f"ReferrerLeaderboardPageContext: {page_context!r} does not match {expected!r}"
        )
