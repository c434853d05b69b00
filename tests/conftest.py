"""Shared test fixtures for the Stock Analysis test suite.

Provides realistic sample models and a fake scoring service mounted on
``httpx.MockTransport`` so no test touches the network.
"""

from __future__ import annotations

import datetime
from collections.abc import AsyncGenerator
from typing import Any

import httpx
import pytest
import pytest_asyncio

from Stock_Analysis.config import ClientSettings
from Stock_Analysis.models import (
    AnalysisReport,
    AnalysisResult,
    ConnectionState,
    HealthStatus,
    Polarity,
    RecommendationGuidance,
    StrengthTier,
)
from Stock_Analysis.services.events import EventBus, SessionEvent
from Stock_Analysis.services.scoring_client import ScoringClient
from Stock_Analysis.testing import FakeScoringService, make_analysis_payload

TEST_BASE_URL: str = "http://scoring.test"
FAST_TICK_SECONDS: float = 0.01


@pytest.fixture()
def analysis_payload() -> dict[str, Any]:
    """A BUY / 80 analysis body with every optional section populated."""
    return make_analysis_payload()


@pytest.fixture()
def sample_result(analysis_payload: dict[str, Any]) -> AnalysisResult:
    return AnalysisResult.model_validate(analysis_payload)


@pytest.fixture()
def sample_report(sample_result: AnalysisResult) -> AnalysisReport:
    """The report the controller builds for ``sample_result``."""
    return AnalysisReport(
        result=sample_result,
        guidance=RecommendationGuidance(
            tier=StrengthTier.STRONG,
            polarity=Polarity.POSITIVE,
            guidance_lines=[
                "STRONG BUY - Excellent opportunity!",
                "80% confidence - Very strong signal",
                "Consider buying if you don't own it",
                "Best for long-term investment",
            ],
        ),
    )


@pytest.fixture()
def sample_health_status() -> HealthStatus:
    return HealthStatus(
        state=ConnectionState.HEALTHY,
        api_key_configured=True,
        checked_at=datetime.datetime(2025, 1, 15, 15, 0, 0, tzinfo=datetime.UTC),
    )


@pytest.fixture()
def settings() -> ClientSettings:
    """Settings pointing at the fake service, with a 10ms countdown tick."""
    return ClientSettings(base_url=TEST_BASE_URL, countdown_tick_seconds=FAST_TICK_SECONDS)


@pytest.fixture()
def fake_service() -> FakeScoringService:
    return FakeScoringService.healthy()


@pytest_asyncio.fixture()
async def http_client(
    fake_service: FakeScoringService,
) -> AsyncGenerator[httpx.AsyncClient, None]:
    async with httpx.AsyncClient(transport=fake_service.transport()) as client:
        yield client


@pytest.fixture()
def scoring_client(settings: ClientSettings, http_client: httpx.AsyncClient) -> ScoringClient:
    return ScoringClient(settings, http_client=http_client)


@pytest.fixture()
def event_log() -> list[SessionEvent]:
    return []


@pytest.fixture()
def bus(event_log: list[SessionEvent]) -> EventBus:
    """EventBus that records every published event into ``event_log``."""
    event_bus = EventBus()
    event_bus.subscribe_all(event_log.append)
    return event_bus
