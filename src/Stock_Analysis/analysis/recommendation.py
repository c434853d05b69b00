"""Recommendation classification from the consensus confidence score and label.

Two independent derivations:

- The strength tier (and therefore the guidance wording) comes from the
  numeric confidence alone, except that acquisition wording in the STRONG
  tier requires a BUY label.
- The polarity comes from the label alone: BUY and HOLD are positive,
  anything else is negative.

A low-confidence BUY therefore renders with positive polarity but cautious
wording.
"""

import logging

from Stock_Analysis.models.analysis import (
    CONFIDENCE_MAX,
    CONFIDENCE_MIN,
    RecommendationGuidance,
)
from Stock_Analysis.models.enums import Polarity, Recommendation, StrengthTier

logger = logging.getLogger(__name__)

# --- Tier lower bounds (inclusive) ---
STRONG_THRESHOLD: int = 75
MODERATE_STRONG_THRESHOLD: int = 60
MODERATE_THRESHOLD: int = 45
WEAK_THRESHOLD: int = 30

POSITIVE_LABELS: frozenset[str] = frozenset({Recommendation.BUY, Recommendation.HOLD})


def strength_tier(confidence: int) -> StrengthTier:
    """Bucket a 0-100 confidence score into a strength tier.

    Raises:
        ValueError: If *confidence* is outside 0-100.
    """
    if not CONFIDENCE_MIN <= confidence <= CONFIDENCE_MAX:
        msg = f"confidence must be between {CONFIDENCE_MIN} and {CONFIDENCE_MAX}, got {confidence}"
        raise ValueError(msg)

    if confidence >= STRONG_THRESHOLD:
        return StrengthTier.STRONG
    if confidence >= MODERATE_STRONG_THRESHOLD:
        return StrengthTier.MODERATE_STRONG
    if confidence >= MODERATE_THRESHOLD:
        return StrengthTier.MODERATE
    if confidence >= WEAK_THRESHOLD:
        return StrengthTier.WEAK
    return StrengthTier.STRONG_CAUTION


def recommendation_polarity(recommendation: str) -> Polarity:
    """BUY and HOLD are positive; every other label, known or not, is negative."""
    if recommendation in POSITIVE_LABELS:
        return Polarity.POSITIVE
    return Polarity.NEGATIVE


def guidance_lines(tier: StrengthTier, confidence: int, recommendation: str) -> list[str]:
    """Ordered guidance for a tier. The first line is the headline."""
    if tier == StrengthTier.STRONG:
        if recommendation != Recommendation.BUY:
            # No wording exists for a strong non-BUY signal
            return []
        return [
            "STRONG BUY - Excellent opportunity!",
            f"{confidence}% confidence - Very strong signal",
            "Consider buying if you don't own it",
            "Best for long-term investment",
        ]
    if tier == StrengthTier.MODERATE_STRONG:
        return [
            "STRONG HOLD - Keep the stock",
            f"{confidence}% confidence - Good signal",
            "If you own it, definitely hold",
            "Don't panic sell",
        ]
    if tier == StrengthTier.MODERATE:
        return [
            "MODERATE HOLD - Decide carefully",
            f"{confidence}% confidence - Mixed signals",
            "If you own it, you can hold but monitor closely",
            "Look for better opportunities",
        ]
    if tier == StrengthTier.WEAK:
        return [
            "CONSIDER SELLING - Think about exit",
            f"{confidence}% confidence - Weak signals",
            "Consider partial exit or set stop-loss",
        ]
    return [
        "STRONG SELL - Exit quickly",
        f"{confidence}% confidence - Very weak",
        "Create an exit strategy as soon as possible",
    ]


def classify(confidence: int, recommendation: str) -> RecommendationGuidance:
    """Classify an analysis into tier, polarity, and guidance lines.

    Args:
        confidence: Consensus confidence score (0-100).
        recommendation: Consensus label, e.g. ``BUY``. Unknown labels are allowed.

    Returns:
        RecommendationGuidance with the tier, polarity, and ordered guidance.

    Raises:
        ValueError: If *confidence* is outside 0-100.
    """
    tier = strength_tier(confidence)
    polarity = recommendation_polarity(recommendation)
    lines = guidance_lines(tier, confidence, recommendation)

    logger.debug(
        "Classified confidence=%d label=%s -> tier=%s polarity=%s",
        confidence,
        recommendation,
        tier,
        polarity,
    )
    return RecommendationGuidance(tier=tier, polarity=polarity, guidance_lines=lines)
