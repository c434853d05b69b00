"""Analysis session: the single owner of all client-side state.

An AnalysisSession wires the scoring client, event bus, connectivity monitor,
rate-limit tracker and analysis controller together, and enforces the
admission gate. Presentation code holds one session for its lifetime,
subscribes to ``session.events``, and reads state through the properties.
Logging is left to the embedding application; call
:func:`Stock_Analysis.logging_config.configure_logging` once at startup.

Usage::

    configure_logging()
    async with AnalysisSession() as session:
        session.events.subscribe_all(render)
        await session.start()
        if session.admission().allowed:
            state = await session.submit("TCS")
"""

from __future__ import annotations

import asyncio
import logging
from types import TracebackType

import httpx

from Stock_Analysis.config import ClientSettings
from Stock_Analysis.models.enums import AdmissionBlock
from Stock_Analysis.models.health import HealthStatus
from Stock_Analysis.models.rate_limit import CountdownState, RateLimitStatus
from Stock_Analysis.models.state import Admission, ControllerState
from Stock_Analysis.services.controller import AnalysisController
from Stock_Analysis.services.events import EventBus
from Stock_Analysis.services.health import HealthMonitor
from Stock_Analysis.services.rate_limit import RateLimitTracker
from Stock_Analysis.services.scoring_client import ScoringClient
from Stock_Analysis.utils.exceptions import SubmissionRejectedError

logger = logging.getLogger(__name__)

_BLOCK_MESSAGES: dict[AdmissionBlock, str] = {
    AdmissionBlock.HEALTH_UNKNOWN: "Backend health has not been checked yet.",
    AdmissionBlock.BACKEND_OFFLINE: "Backend is offline.",
    AdmissionBlock.REQUEST_PENDING: "An analysis request is already in flight.",
    AdmissionBlock.RATE_LIMITED: "Rate limit is active.",
}


class AnalysisSession:
    """Own one client session: probes, countdown, and the analysis controller."""

    def __init__(
        self,
        settings: ClientSettings | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
        events: EventBus | None = None,
    ) -> None:
        self._settings = settings if settings is not None else ClientSettings.from_env()
        self.events = events if events is not None else EventBus()
        self._client = ScoringClient(self._settings, http_client=http_client)
        self._monitor = HealthMonitor(self._client, self.events)
        self._tracker = RateLimitTracker(
            self._client,
            self.events,
            tick_interval=self._settings.countdown_tick_seconds,
        )
        self._controller = AnalysisController(self._client, self._tracker, self.events)
        self._closed = False

    async def __aenter__(self) -> AnalysisSession:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def settings(self) -> ClientSettings:
        return self._settings

    @property
    def health(self) -> HealthStatus | None:
        return self._monitor.status

    @property
    def rate_limit(self) -> RateLimitStatus | None:
        return self._tracker.status

    @property
    def countdown(self) -> CountdownState:
        return self._tracker.countdown

    @property
    def state(self) -> ControllerState:
        return self._controller.state

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Probe health and rate limit concurrently. Neither probe raises."""
        logger.info("Starting analysis session against %s", self._settings.base_url)
        await asyncio.gather(
            self._monitor.probe_health(),
            self._tracker.probe_rate_limit(),
        )

    async def probe_health(self) -> HealthStatus:
        """Re-run the health probe on demand."""
        return await self._monitor.probe_health()

    async def refresh_rate_limit(self) -> RateLimitStatus:
        """Manual rate-limit refresh; cancels the countdown if the limit is clear."""
        return await self._tracker.refresh()

    def admission(self) -> Admission:
        """Evaluate the admission gate.

        Submission is closed while health is unknown or offline, a request is
        in flight, or the rate limit is active. The server may still reject.
        """
        reason = self._blocked_reason()
        if reason is None:
            return Admission(allowed=True)
        return Admission(allowed=False, reason=reason)

    async def submit(self, raw_input: str) -> ControllerState:
        """Submit an analysis if the admission gate is open.

        Returns:
            The terminal ControllerState for this submission.

        Raises:
            SubmissionRejectedError: If the gate is closed. No request is sent.
        """
        reason = self._blocked_reason()
        if reason is not None:
            logger.warning("Submission rejected by admission gate: %s", reason)
            raise SubmissionRejectedError(_BLOCK_MESSAGES[reason], reason=reason)
        return await self._controller.submit(raw_input)

    def reset(self) -> ControllerState:
        """Clear the last result or error."""
        return self._controller.reset()

    async def aclose(self) -> None:
        """Stop the countdown and background probes, then close the HTTP client."""
        if self._closed:
            return
        self._closed = True
        await self._tracker.aclose()
        await self._client.aclose()
        logger.info("Analysis session closed")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _blocked_reason(self) -> AdmissionBlock | None:
        """First applicable block, in priority order, or None when open."""
        health = self._monitor.status
        if health is None:
            return AdmissionBlock.HEALTH_UNKNOWN
        if not health.is_healthy:
            return AdmissionBlock.BACKEND_OFFLINE
        if self._controller.is_pending:
            return AdmissionBlock.REQUEST_PENDING
        if self._tracker.is_limited:
            return AdmissionBlock.RATE_LIMITED
        return None
