"""
Exception types for the award engine.

Every failure is local and synchronous: nothing is retried and nothing
is recovered inside the engine. Callers decide how to react.
"""


class AwardEngineError(Exception):
    """Base class for all award engine errors."""
    pass


class ValidationError(AwardEngineError, ValueError):
    """Raised when a constructed value violates one of its invariants."""
    pass


class NegativeAmount(ValidationError):
    """Raised when a currency amount is negative."""
    pass


class DuplicateReferrer(ValidationError):
    """Raised when a referrer appears more than once in a ranking input."""

    def __init__(self, referrer: str) -> None:
        super().__init__(f"Duplicate referrer in ranking input: {referrer}")
        self.referrer = referrer


class PageOutOfRange(ValidationError):
    """Raised when a requested leaderboard page is beyond the last page."""

    def __init__(self, page: int, total_pages: int) -> None:
        super().__init__(f"Page {page} exceeds total pages {total_pages}")
        self.page = page
        self.total_pages = total_pages


class UnsupportedAwardModel(ValidationError):
    """Raised when rules of an unrecognized award model reach the engine."""

    def __init__(self, award_model: str) -> None:
        super().__init__(f"Unsupported award model: {award_model}")
        self.award_model = award_model


class CurrencyMismatch(AwardEngineError, ValueError):
    """Raised when prices in different currencies are combined."""
    pass


class InvalidScaleFactor(AwardEngineError, ValueError):
    """Raised when a scale factor is negative, NaN or infinite."""
    pass


class InternalInvariantViolation(AwardEngineError, RuntimeError):
    """Raised when a state the algorithm guarantees unreachable is reached."""
    pass
