"""Scoring service client, probes, and the analysis controller.

Re-exports all public service classes so consumers can import directly:
    from Stock_Analysis.services import ScoringClient, RateLimitTracker
"""

from Stock_Analysis.services.controller import AnalysisController, advisory_message
from Stock_Analysis.services.events import (
    ControllerStateChanged,
    CountdownTicked,
    EventBus,
    HealthChanged,
    RateLimitChanged,
    SessionEvent,
)
from Stock_Analysis.services.health import HealthMonitor
from Stock_Analysis.services.rate_limit import CountdownTimer, RateLimitTracker
from Stock_Analysis.services.scoring_client import ScoringClient

__all__ = [
    # Transport
    "ScoringClient",
    # Events
    "ControllerStateChanged",
    "CountdownTicked",
    "EventBus",
    "HealthChanged",
    "RateLimitChanged",
    "SessionEvent",
    # Probes
    "CountdownTimer",
    "HealthMonitor",
    "RateLimitTracker",
    # Controller
    "AnalysisController",
    "advisory_message",
]
