"""Shared formatting utilities for terminal rendering of session state.

Colour choices follow one scheme throughout: green = positive, red =
negative, yellow = caution. Polarity colour comes from the recommendation
label; the confidence meter colour comes from the score.
"""

from __future__ import annotations

import datetime
import logging

from Stock_Analysis.models.analysis import AnalysisResult, MetricValue
from Stock_Analysis.models.enums import Polarity

logger = logging.getLogger(__name__)

COLOR_POSITIVE: str = "green"
COLOR_NEGATIVE: str = "red"
COLOR_CAUTION: str = "yellow"

# --- Confidence meter bands (inclusive lower bounds) ---
METER_STRONG: int = 75
METER_MODERATE_STRONG: int = 60
METER_MODERATE: int = 45

# Fixed weighting the scoring service publishes for its 0-100 score
SCORE_BREAKDOWN: tuple[tuple[str, int], ...] = (
    ("Fundamentals", 45),
    ("News Sentiment", 20),
    ("AI Analysis", 20),
    ("Price Trends", 15),
)

MAX_NEWS_ITEMS: int = 10

MARKET_METRICS: tuple[tuple[str, str], ...] = (
    ("Market Cap", "market_cap"),
    ("Volume", "volume"),
    ("Day High", "day_high"),
    ("Day Low", "day_low"),
    ("52W High", "week52_high"),
    ("52W Low", "week52_low"),
)

FUNDAMENTAL_METRICS: tuple[tuple[str, str], ...] = (
    ("P/E Ratio", "pe_ratio"),
    ("EPS", "eps"),
    ("ROE", "roe"),
    ("Debt/Equity", "debt_to_equity"),
    ("PEG Ratio", "peg_ratio"),
    ("Price/Book", "price_to_book"),
    ("Dividend Yield", "dividend_yield"),
    ("Beta", "beta"),
)


def format_countdown(seconds: int) -> str:
    """Format a countdown as ``m:ss``, e.g. 125 -> ``2:05``."""
    seconds = max(seconds, 0)
    minutes, remainder = divmod(seconds, 60)
    return f"{minutes}:{remainder:02d}"


def polarity_color(polarity: Polarity) -> str:
    return COLOR_POSITIVE if polarity == Polarity.POSITIVE else COLOR_NEGATIVE


def confidence_band_color(confidence: int) -> str:
    """Colour of the confidence meter: green, green-yellow, yellow, then red."""
    if confidence >= METER_STRONG:
        return "green"
    if confidence >= METER_MODERATE_STRONG:
        return "green_yellow"
    if confidence >= METER_MODERATE:
        return "yellow"
    return "red"


def confidence_bar(confidence: int, width: int = 20) -> str:
    """A plain-text meter, e.g. ``[#########-----------]``."""
    filled = round(width * max(0, min(confidence, 100)) / 100)
    return "[" + "#" * filled + "-" * (width - filled) + "]"


def format_news_date(published_at: str | None) -> str | None:
    """Render an ISO timestamp as ``DD/MM/YYYY``. Unparseable values pass through."""
    if not published_at:
        return None
    try:
        parsed = datetime.datetime.fromisoformat(published_at.replace("Z", "+00:00"))
    except ValueError:
        logger.debug("Unparseable news timestamp %r", published_at)
        return published_at
    return parsed.strftime("%d/%m/%Y")


def present_metrics(
    result: AnalysisResult,
    fields: tuple[tuple[str, str], ...],
) -> list[tuple[str, str]]:
    """``(label, value)`` pairs for the metrics the service actually returned."""
    rows: list[tuple[str, str]] = []
    for label, attr in fields:
        value: MetricValue = getattr(result, attr)
        if value is None or value == "":
            continue
        rows.append((label, str(value)))
    return rows


def format_timestamp(timestamp: str | None) -> str | None:
    """Render an ISO timestamp as ``DD/MM/YYYY HH:MM:SS``. Unparseable values pass through."""
    if not timestamp:
        return None
    try:
        parsed = datetime.datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    except ValueError:
        logger.debug("Unparseable analysis timestamp %r", timestamp)
        return timestamp
    return parsed.strftime("%d/%m/%Y %H:%M:%S")
