"""StrEnum types for the analysis session domain.

Values are lowercase strings except Recommendation, whose values match the
labels sent by the scoring service. Use enum members in business logic,
never raw strings.
"""

from enum import StrEnum


class ConnectionState(StrEnum):
    """Backend availability as seen by the health probe."""

    HEALTHY = "healthy"
    OFFLINE = "offline"


class Recommendation(StrEnum):
    """Recommendation labels the scoring service is known to send.

    The service may send other labels; they are kept as plain strings.
    """

    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"


class StrengthTier(StrEnum):
    """Discrete bucket derived from the confidence score."""

    STRONG = "strong"
    MODERATE_STRONG = "moderate_strong"
    MODERATE = "moderate"
    WEAK = "weak"
    STRONG_CAUTION = "strong_caution"

    @property
    def label(self) -> str:
        """Display label, e.g. ``MODERATE-STRONG``."""
        return _TIER_LABELS[self]


_TIER_LABELS: dict[StrengthTier, str] = {
    StrengthTier.STRONG: "STRONG",
    StrengthTier.MODERATE_STRONG: "MODERATE-STRONG",
    StrengthTier.MODERATE: "MODERATE",
    StrengthTier.WEAK: "WEAK",
    StrengthTier.STRONG_CAUTION: "STRONG CAUTION",
}


class Polarity(StrEnum):
    """Positive/negative classification derived from the recommendation label alone."""

    POSITIVE = "positive"
    NEGATIVE = "negative"


class FailureKind(StrEnum):
    """Terminal failure taxonomy for a single analysis submission."""

    EMPTY_INPUT = "empty_input"
    UNREACHABLE = "unreachable"
    RATE_LIMITED = "rate_limited"
    SERVER_ERROR = "server_error"
    MISCONFIGURED_UPSTREAM = "misconfigured_upstream"


class AdmissionBlock(StrEnum):
    """Why the session refuses a new submission."""

    HEALTH_UNKNOWN = "health_unknown"
    BACKEND_OFFLINE = "backend_offline"
    REQUEST_PENDING = "request_pending"
    RATE_LIMITED = "rate_limited"
