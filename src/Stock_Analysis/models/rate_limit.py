"""Rate-limit models: server-reported status and the local countdown."""

import math

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RateLimitStatus(BaseModel):
    """Snapshot returned by the scoring service's ``/rate-limit`` endpoint.

    ``seconds_remaining`` is only meaningful when ``is_limited`` is true.
    Wire names match the field names.
    """

    model_config = ConfigDict(frozen=True)

    is_limited: bool = False
    message: str | None = None
    seconds_remaining: int | None = Field(default=None, ge=0)

    @field_validator("seconds_remaining", mode="before")
    @classmethod
    def coerce_seconds(cls, value: object) -> object:
        """Round fractional seconds up."""
        if isinstance(value, float):
            if not math.isfinite(value):
                msg = f"seconds_remaining must be finite, got {value}"
                raise ValueError(msg)
            return math.ceil(value)
        return value

    @property
    def cooldown_seconds(self) -> int:
        """Seconds to count down from, or 0 when no countdown applies."""
        if self.is_limited and self.seconds_remaining:
            return self.seconds_remaining
        return 0


class CountdownState(BaseModel):
    """Seconds left on the local cooldown timer."""

    model_config = ConfigDict(frozen=True)

    seconds_left: int = Field(default=0, ge=0)
