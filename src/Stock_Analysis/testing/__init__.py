"""Public testing utilities for the Stock Analysis client.

Provides an in-process fake scoring service for tests and examples that
must not touch the network.
"""

from Stock_Analysis.testing.fake_service import (
    FakeScoringService,
    make_analysis_payload,
    wait_until,
)

__all__ = ["FakeScoringService", "make_analysis_payload", "wait_until"]
