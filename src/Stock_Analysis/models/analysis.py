"""Analysis models: the outgoing request, the service payload, and its classification.

AnalysisResult mirrors the scoring service's JSON. Field names are snake_case;
the service's mixed wire names (``consensus_confidence``, ``stockName``,
``peRatio`` ...) are accepted via aliases. Unknown fields are kept so the
payload stays opaque to the client.
"""

import math

from pydantic import BaseModel, ConfigDict, Field, field_validator

from Stock_Analysis.models.enums import Polarity, StrengthTier

# --- Validation boundaries ---
CONFIDENCE_MIN: int = 0
CONFIDENCE_MAX: int = 100

MetricValue = str | int | float | None


class AnalysisRequest(BaseModel):
    """A single analysis submission. The query is the trimmed stock identifier."""

    model_config = ConfigDict(frozen=True)

    query: str

    @field_validator("query")
    @classmethod
    def validate_query(cls, value: str) -> str:
        """Trim whitespace and reject an empty query."""
        trimmed = value.strip()
        if not trimmed:
            msg = "query must not be empty"
            raise ValueError(msg)
        return trimmed

    def to_payload(self) -> dict[str, str]:
        """Body for ``POST /analyze``."""
        return {"stock_name": self.query}


class NewsItem(BaseModel):
    """A news headline cited by the analysis."""

    model_config = ConfigDict(frozen=True, extra="allow")

    title: str
    url: str | None = None
    source: str | None = None
    published_at: str | None = None


class AnalysisResult(BaseModel):
    """Structured analysis returned by ``POST /analyze``. Read-only once received."""

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    recommendation: str = Field(alias="consensus_recommendation")
    confidence: int = Field(alias="consensus_confidence")
    stock_name: str | None = Field(default=None, alias="stockName")
    current_price: MetricValue = Field(default=None, alias="currentPrice")
    summary: str | None = None

    bullish_factors: list[str] = Field(default_factory=list)
    bearish_factors: list[str] = Field(default_factory=list)
    risk_factors: list[str] = Field(default_factory=list)
    credible_news: list[NewsItem] = Field(default_factory=list)

    # Market metrics
    market_cap: MetricValue = Field(default=None, alias="marketCap")
    volume: MetricValue = None
    day_high: MetricValue = Field(default=None, alias="dayHigh")
    day_low: MetricValue = Field(default=None, alias="dayLow")
    week52_high: MetricValue = Field(default=None, alias="week52High")
    week52_low: MetricValue = Field(default=None, alias="week52Low")

    # Fundamental metrics
    pe_ratio: MetricValue = Field(default=None, alias="peRatio")
    eps: MetricValue = None
    roe: MetricValue = None
    debt_to_equity: MetricValue = Field(default=None, alias="debtToEquity")
    peg_ratio: MetricValue = Field(default=None, alias="pegRatio")
    price_to_book: MetricValue = Field(default=None, alias="priceToBook")
    dividend_yield: MetricValue = Field(default=None, alias="dividendYield")
    beta: MetricValue = None

    # Provenance
    data_sources_used: list[str] = Field(default_factory=list)
    api_calls_used: int | None = None
    analysis_timestamp: str | None = None

    @field_validator(
        "bullish_factors",
        "bearish_factors",
        "risk_factors",
        "credible_news",
        "data_sources_used",
        mode="before",
    )
    @classmethod
    def null_to_empty(cls, value: object) -> object:
        """The service sends ``null`` for empty collections."""
        return [] if value is None else value

    @field_validator("confidence", mode="before")
    @classmethod
    def truncate_confidence(cls, value: object) -> object:
        """Truncate fractional scores toward the lower tier; reject non-finite ones."""
        if isinstance(value, float):
            if not math.isfinite(value):
                msg = f"confidence must be finite, got {value}"
                raise ValueError(msg)
            return math.floor(value)
        return value

    @field_validator("confidence")
    @classmethod
    def validate_confidence(cls, value: int) -> int:
        """Confidence must be between 0 and 100."""
        if not CONFIDENCE_MIN <= value <= CONFIDENCE_MAX:
            msg = f"confidence must be between {CONFIDENCE_MIN} and {CONFIDENCE_MAX}, got {value}"
            raise ValueError(msg)
        return value


class RecommendationGuidance(BaseModel):
    """Classifier output: tier from the score, polarity from the label."""

    model_config = ConfigDict(frozen=True)

    tier: StrengthTier
    polarity: Polarity
    guidance_lines: list[str]


class AnalysisReport(BaseModel):
    """A successful analysis together with its classification."""

    model_config = ConfigDict(frozen=True)

    result: AnalysisResult
    guidance: RecommendationGuidance
