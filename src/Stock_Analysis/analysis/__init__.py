"""Recommendation classification for analysis results.

Re-exports all public functions so consumers can import directly:
    from Stock_Analysis.analysis import classify, strength_tier
"""

from Stock_Analysis.analysis.recommendation import (
    classify,
    guidance_lines,
    recommendation_polarity,
    strength_tier,
)

__all__ = [
    "classify",
    "guidance_lines",
    "recommendation_polarity",
    "strength_tier",
]
