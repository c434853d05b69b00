"""Pydantic v2 models, enums, and type definitions.

Re-exports all public models so consumers can import directly:
    from Stock_Analysis.models import AnalysisResult, HealthStatus, Failed
"""

from Stock_Analysis.models.analysis import (
    AnalysisReport,
    AnalysisRequest,
    AnalysisResult,
    NewsItem,
    RecommendationGuidance,
)
from Stock_Analysis.models.enums import (
    AdmissionBlock,
    ConnectionState,
    FailureKind,
    Polarity,
    Recommendation,
    StrengthTier,
)
from Stock_Analysis.models.health import HealthStatus
from Stock_Analysis.models.rate_limit import CountdownState, RateLimitStatus
from Stock_Analysis.models.state import (
    Admission,
    ControllerState,
    ErrorInfo,
    Failed,
    Idle,
    Pending,
    Succeeded,
)

__all__ = [
    # Enums
    "AdmissionBlock",
    "ConnectionState",
    "FailureKind",
    "Polarity",
    "Recommendation",
    "StrengthTier",
    # Service status
    "CountdownState",
    "HealthStatus",
    "RateLimitStatus",
    # Analysis
    "AnalysisReport",
    "AnalysisRequest",
    "AnalysisResult",
    "NewsItem",
    "RecommendationGuidance",
    # Controller state
    "Admission",
    "ControllerState",
    "ErrorInfo",
    "Failed",
    "Idle",
    "Pending",
    "Succeeded",
]
