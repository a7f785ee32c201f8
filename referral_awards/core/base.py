"""Base pydantic model shared by every engine record."""

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from referral_awards.exceptions import ValidationError


class EngineModel(BaseModel):
    """
    Immutable record.

    Pydantic validation failures surface as the engine's own
    ValidationError so callers only ever see one error taxonomy.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
    )

    def __init__(self, **data: Any) -> None:
        try:
            super().__init__(**data)
        except PydanticValidationError as exc:
            raise ValidationError(f"Invalid {type(self).__name__}: {exc}") from exc
