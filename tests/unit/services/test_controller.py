"""Tests for AnalysisController: the single-flight request state machine.

Covers:
- success builds a Succeeded state with classified guidance
- blank input fails locally without any request
- each service failure maps to its FailureKind and advisory message
- 429 refreshes the rate-limit status exactly once
- a second submit while Pending is rejected without I/O
- cancellation returns the controller to Idle
- an unexpected exception still ends in Failed
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock

import httpx
import pytest
import pytest_asyncio

from Stock_Analysis.config import ClientSettings
from Stock_Analysis.models.enums import AdmissionBlock, FailureKind, Polarity, StrengthTier
from Stock_Analysis.models.state import Failed, Idle, Pending, Succeeded
from Stock_Analysis.services.controller import (
    EMPTY_INPUT_MESSAGE,
    MISCONFIGURED_UPSTREAM_MESSAGE,
    UNREACHABLE_MESSAGE,
    AnalysisController,
    advisory_message,
)
from Stock_Analysis.services.events import ControllerStateChanged, EventBus, SessionEvent
from Stock_Analysis.services.rate_limit import RateLimitTracker
from Stock_Analysis.services.scoring_client import ScoringClient
from Stock_Analysis.testing import FakeScoringService, wait_until
from Stock_Analysis.utils.exceptions import ServiceRequestError, SubmissionRejectedError


@pytest_asyncio.fixture()
async def tracker(
    scoring_client: ScoringClient,
    bus: EventBus,
    settings: ClientSettings,
) -> AsyncGenerator[RateLimitTracker, None]:
    rate_tracker = RateLimitTracker(
        scoring_client, bus, tick_interval=settings.countdown_tick_seconds
    )
    yield rate_tracker
    await rate_tracker.aclose()


@pytest.fixture()
def controller(
    scoring_client: ScoringClient, tracker: RateLimitTracker, bus: EventBus
) -> AnalysisController:
    return AnalysisController(scoring_client, tracker, bus)


def _state_kinds(events: list[SessionEvent]) -> list[str]:
    return [e.state.kind for e in events if isinstance(e, ControllerStateChanged)]


def _failed(state: object) -> Failed:
    assert isinstance(state, Failed)
    return state


# ---------------------------------------------------------------------------
# Success
# ---------------------------------------------------------------------------


class TestSubmitSuccess:
    """Tests for the happy path."""

    @pytest.mark.asyncio()
    async def test_initial_state_is_idle(self, controller: AnalysisController) -> None:
        assert isinstance(controller.state, Idle)
        assert controller.is_pending is False

    @pytest.mark.asyncio()
    async def test_success(
        self, controller: AnalysisController, event_log: list[SessionEvent]
    ) -> None:
        state = await controller.submit("  TCS  ")

        assert isinstance(state, Succeeded)
        assert controller.state is state
        assert state.report.result.recommendation == "BUY"
        assert state.report.guidance.tier == StrengthTier.STRONG
        assert state.report.guidance.polarity == Polarity.POSITIVE
        assert state.report.guidance.guidance_lines[1] == "80% confidence - Very strong signal"
        assert _state_kinds(event_log) == ["pending", "succeeded"]

    @pytest.mark.asyncio()
    async def test_pending_carries_trimmed_query(
        self, controller: AnalysisController, event_log: list[SessionEvent]
    ) -> None:
        await controller.submit("  TCS  ")

        pending = [
            e.state
            for e in event_log
            if isinstance(e, ControllerStateChanged) and isinstance(e.state, Pending)
        ]
        assert pending[0].request.query == "TCS"

    @pytest.mark.asyncio()
    async def test_fractional_confidence_stays_in_lower_tier(
        self, controller: AnalysisController, fake_service: FakeScoringService
    ) -> None:
        fake_service.reply(
            "/analyze",
            httpx.Response(
                200, json={"consensus_recommendation": "HOLD", "consensus_confidence": 74.6}
            ),
        )
        state = await controller.submit("TCS")

        assert isinstance(state, Succeeded)
        guidance = state.report.guidance
        assert guidance.tier == StrengthTier.MODERATE_STRONG
        assert guidance.guidance_lines[0] == "STRONG HOLD - Keep the stock"
        assert guidance.guidance_lines[1] == "74% confidence - Good signal"


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


class TestSubmitFailures:
    """Each failure class becomes a Failed state with its advisory message."""

    @pytest.mark.asyncio()
    @pytest.mark.parametrize("raw", ["", "   ", "\n\t"])
    async def test_blank_input_sends_nothing(
        self,
        raw: str,
        controller: AnalysisController,
        fake_service: FakeScoringService,
        event_log: list[SessionEvent],
    ) -> None:
        error = _failed(await controller.submit(raw)).error

        assert error.kind == FailureKind.EMPTY_INPUT
        assert error.message == EMPTY_INPUT_MESSAGE
        assert fake_service.requests == []
        assert _state_kinds(event_log) == ["failed"]

    @pytest.mark.asyncio()
    async def test_rate_limited_refreshes_status_once(
        self,
        controller: AnalysisController,
        tracker: RateLimitTracker,
        fake_service: FakeScoringService,
    ) -> None:
        fake_service.reply("/analyze", httpx.Response(429, json={"detail": "Try in 1 hour"}))
        fake_service.reply(
            "/rate-limit",
            httpx.Response(200, json={"is_limited": True, "seconds_remaining": 3600}),
        )

        error = _failed(await controller.submit("TCS")).error

        assert error.kind == FailureKind.RATE_LIMITED
        assert error.message == "Rate limit reached. Try in 1 hour"
        assert error.http_status == 429
        assert fake_service.count("/rate-limit") == 1
        assert tracker.is_limited
        assert tracker.countdown.seconds_left == 3600

    @pytest.mark.asyncio()
    async def test_rate_limited_without_detail(
        self, controller: AnalysisController, fake_service: FakeScoringService
    ) -> None:
        fake_service.reply("/analyze", httpx.Response(429))
        error = _failed(await controller.submit("TCS")).error

        assert error.message == "Rate limit reached. Rate limit exceeded"

    @pytest.mark.asyncio()
    async def test_misconfigured_upstream(
        self, controller: AnalysisController, fake_service: FakeScoringService
    ) -> None:
        fake_service.reply(
            "/analyze", httpx.Response(500, json={"detail": "GROQ API key missing"})
        )
        error = _failed(await controller.submit("TCS")).error

        assert error.kind == FailureKind.MISCONFIGURED_UPSTREAM
        assert error.message == MISCONFIGURED_UPSTREAM_MESSAGE
        assert error.detail == "GROQ API key missing"
        assert error.http_status == 500

    @pytest.mark.asyncio()
    async def test_server_error_with_detail(
        self, controller: AnalysisController, fake_service: FakeScoringService
    ) -> None:
        fake_service.reply("/analyze", httpx.Response(500, json={"detail": "Model timeout"}))
        error = _failed(await controller.submit("TCS")).error

        assert error.kind == FailureKind.SERVER_ERROR
        assert error.message == "Analysis error occurred. Model timeout"

    @pytest.mark.asyncio()
    async def test_server_error_without_detail(
        self, controller: AnalysisController, fake_service: FakeScoringService
    ) -> None:
        fake_service.reply("/analyze", httpx.Response(502, text="Bad Gateway"))
        error = _failed(await controller.submit("TCS")).error

        assert error.kind == FailureKind.SERVER_ERROR
        assert error.message == "Analysis error occurred. Analysis failed"
        assert error.http_status == 502

    @pytest.mark.asyncio()
    async def test_malformed_payload_is_server_error(
        self, controller: AnalysisController, fake_service: FakeScoringService
    ) -> None:
        fake_service.reply("/analyze", httpx.Response(200, json={"unexpected": True}))
        error = _failed(await controller.submit("TCS")).error

        assert error.kind == FailureKind.SERVER_ERROR
        assert error.http_status == 200

    @pytest.mark.asyncio()
    async def test_unreachable(
        self, controller: AnalysisController, fake_service: FakeScoringService
    ) -> None:
        fake_service.reply("/analyze", httpx.ConnectError("Connection refused"))
        error = _failed(await controller.submit("TCS")).error

        assert error.kind == FailureKind.UNREACHABLE
        assert error.message == UNREACHABLE_MESSAGE
        assert error.detail == "Connection refused"
        assert fake_service.count("/rate-limit") == 0

    @pytest.mark.asyncio()
    async def test_unclassified_service_error(
        self, tracker: RateLimitTracker, bus: EventBus
    ) -> None:
        client = AsyncMock(spec=ScoringClient)
        client.analyze.side_effect = ServiceRequestError("odd failure", endpoint="/analyze")
        controller = AnalysisController(client, tracker, bus)

        error = _failed(await controller.submit("TCS")).error

        assert error.kind == FailureKind.SERVER_ERROR

    @pytest.mark.asyncio()
    async def test_unexpected_exception_leaves_pending(
        self, tracker: RateLimitTracker, bus: EventBus, event_log: list[SessionEvent]
    ) -> None:
        client = AsyncMock(spec=ScoringClient)
        client.analyze.side_effect = RuntimeError("boom")
        controller = AnalysisController(client, tracker, bus)

        error = _failed(await controller.submit("TCS")).error

        assert error.kind == FailureKind.SERVER_ERROR
        assert error.message == "Analysis error occurred. boom"
        assert controller.is_pending is False
        assert _state_kinds(event_log) == ["pending", "failed"]

    @pytest.mark.asyncio()
    async def test_infinite_confidence_is_server_error(
        self, controller: AnalysisController, fake_service: FakeScoringService
    ) -> None:
        fake_service.reply(
            "/analyze",
            httpx.Response(
                200,
                content=b'{"consensus_recommendation": "BUY", "consensus_confidence": 1e400}',
            ),
        )
        error = _failed(await controller.submit("TCS")).error

        assert error.kind == FailureKind.SERVER_ERROR
        assert controller.is_pending is False

    @pytest.mark.asyncio()
    async def test_no_automatic_retry(
        self, controller: AnalysisController, fake_service: FakeScoringService
    ) -> None:
        fake_service.reply("/analyze", httpx.Response(500))
        await controller.submit("TCS")

        assert fake_service.count("/analyze") == 1


# ---------------------------------------------------------------------------
# Single flight
# ---------------------------------------------------------------------------


class TestSingleFlight:
    """At most one request is in flight."""

    @pytest.mark.asyncio()
    async def test_second_submit_rejected_while_pending(
        self, controller: AnalysisController, fake_service: FakeScoringService
    ) -> None:
        gate = asyncio.Event()
        fake_service.analyze_gate = gate
        first = asyncio.create_task(controller.submit("TCS"))
        await wait_until(lambda: fake_service.count("/analyze") == 1)

        assert controller.is_pending
        with pytest.raises(SubmissionRejectedError) as exc_info:
            await controller.submit("INFY")
        assert exc_info.value.reason == AdmissionBlock.REQUEST_PENDING

        gate.set()
        state = await first

        assert isinstance(state, Succeeded)
        assert fake_service.count("/analyze") == 1

    @pytest.mark.asyncio()
    async def test_cancellation_returns_to_idle(
        self,
        controller: AnalysisController,
        fake_service: FakeScoringService,
        event_log: list[SessionEvent],
    ) -> None:
        fake_service.analyze_gate = asyncio.Event()
        task = asyncio.create_task(controller.submit("TCS"))
        await wait_until(lambda: fake_service.count("/analyze") == 1)

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert isinstance(controller.state, Idle)
        assert _state_kinds(event_log) == ["pending", "idle"]

    @pytest.mark.asyncio()
    async def test_new_submit_after_terminal_state(
        self, controller: AnalysisController, fake_service: FakeScoringService
    ) -> None:
        fake_service.reply(
            "/analyze",
            httpx.ConnectError("Connection refused"),
            httpx.Response(
                200, json={"consensus_recommendation": "SELL", "consensus_confidence": 25}
            ),
        )
        assert isinstance(await controller.submit("TCS"), Failed)

        state = await controller.submit("TCS")

        assert isinstance(state, Succeeded)
        assert state.report.guidance.tier == StrengthTier.STRONG_CAUTION


# ---------------------------------------------------------------------------
# reset / advisory_message
# ---------------------------------------------------------------------------


class TestReset:
    @pytest.mark.asyncio()
    async def test_reset_clears_result(self, controller: AnalysisController) -> None:
        await controller.submit("TCS")
        assert isinstance(controller.reset(), Idle)
        assert isinstance(controller.state, Idle)

    @pytest.mark.asyncio()
    async def test_reset_rejected_while_pending(
        self, controller: AnalysisController, fake_service: FakeScoringService
    ) -> None:
        gate = asyncio.Event()
        fake_service.analyze_gate = gate
        task = asyncio.create_task(controller.submit("TCS"))
        await wait_until(lambda: controller.is_pending)

        with pytest.raises(SubmissionRejectedError):
            controller.reset()

        gate.set()
        await task


class TestAdvisoryMessage:
    """User-facing wording per failure kind."""

    @pytest.mark.parametrize(
        ("kind", "detail", "expected"),
        [
            (FailureKind.EMPTY_INPUT, None, "Please enter a stock name"),
            (
                FailureKind.UNREACHABLE,
                "refused",
                "Cannot connect to backend server. Is backend running?",
            ),
            (FailureKind.MISCONFIGURED_UPSTREAM, "missing", "API key not configured."),
            (FailureKind.RATE_LIMITED, "Wait 5 minutes", "Rate limit reached. Wait 5 minutes"),
            (FailureKind.RATE_LIMITED, None, "Rate limit reached."),
            (FailureKind.SERVER_ERROR, "Boom", "Analysis error occurred. Boom"),
            (FailureKind.SERVER_ERROR, None, "Analysis error occurred. Analysis failed"),
        ],
    )
    def test_messages(self, kind: FailureKind, detail: str | None, expected: str) -> None:
        assert advisory_message(kind, detail) == expected
