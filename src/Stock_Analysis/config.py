"""Client configuration resolved from the environment.

The scoring service base URL and the HTTP timeout come from environment
variables, falling back to fixed defaults when unset.
"""

from __future__ import annotations

import logging
import os
from typing import Final

from pydantic import BaseModel, ConfigDict, field_validator

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

BACKEND_URL_ENV: Final[str] = "STOCK_ANALYSIS_BACKEND_URL"
TIMEOUT_ENV: Final[str] = "STOCK_ANALYSIS_TIMEOUT"

DEFAULT_BACKEND_URL: Final[str] = "https://stock-backend-l55g.onrender.com"
"""Public scoring service used when no backend URL is configured."""

DEFAULT_REQUEST_TIMEOUT: Final[float] = 60.0
"""Transport timeout in seconds. Analysis runs server-side LLM calls, so it is generous."""

DEFAULT_COUNTDOWN_TICK: Final[float] = 1.0


class ClientSettings(BaseModel):
    """Immutable settings for one analysis session."""

    model_config = ConfigDict(frozen=True)

    base_url: str = DEFAULT_BACKEND_URL
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    countdown_tick_seconds: float = DEFAULT_COUNTDOWN_TICK

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        """Endpoint paths are appended with a leading slash."""
        stripped = value.strip().rstrip("/")
        if not stripped:
            msg = "base_url must not be empty"
            raise ValueError(msg)
        return stripped

    @field_validator("request_timeout", "countdown_tick_seconds")
    @classmethod
    def validate_positive(cls, value: float) -> float:
        if value <= 0:
            msg = f"must be positive, got {value}"
            raise ValueError(msg)
        return value

    @classmethod
    def from_env(cls) -> ClientSettings:
        """Build settings from ``STOCK_ANALYSIS_*`` environment variables."""
        base_url = os.environ.get(BACKEND_URL_ENV, "") or DEFAULT_BACKEND_URL
        return cls(base_url=base_url, request_timeout=_resolve_timeout())


def _resolve_timeout() -> float:
    """Return the timeout from ``STOCK_ANALYSIS_TIMEOUT``, or the default if unset/invalid."""
    raw = os.environ.get(TIMEOUT_ENV)
    if not raw:
        return DEFAULT_REQUEST_TIMEOUT
    try:
        value = float(raw)
    except ValueError:
        logger.warning(
            "Ignoring invalid %s=%r, using %.1fs", TIMEOUT_ENV, raw, DEFAULT_REQUEST_TIMEOUT
        )
        return DEFAULT_REQUEST_TIMEOUT
    if value <= 0:
        logger.warning(
            "Ignoring non-positive %s=%r, using %.1fs", TIMEOUT_ENV, raw, DEFAULT_REQUEST_TIMEOUT
        )
        return DEFAULT_REQUEST_TIMEOUT
    return value
