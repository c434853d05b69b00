"""Server-driven rate-limit tracking with a live cooldown countdown.

RateLimitTracker polls ``/rate-limit`` and owns a CountdownTimer. When the
service reports a cooldown, the timer ticks once per second; at expiry it
clears the visible countdown immediately and schedules exactly one fresh
probe. Probe results always win over the countdown: whichever arrives last
determines the state.

A failed probe fails open (not limited) with a message flagging that the
status is unknown, so a flaky endpoint can never lock the user out.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable
from typing import Final

from Stock_Analysis.config import DEFAULT_COUNTDOWN_TICK
from Stock_Analysis.models.rate_limit import CountdownState, RateLimitStatus
from Stock_Analysis.services.events import CountdownTicked, EventBus, RateLimitChanged
from Stock_Analysis.services.scoring_client import ScoringClient
from Stock_Analysis.utils.exceptions import ServiceRequestError

logger = logging.getLogger(__name__)

RATE_LIMIT_UNAVAILABLE_MESSAGE: Final[str] = "Rate limit check unavailable"


class CountdownTimer:
    """Cancellable one-second countdown running as an asyncio task.

    ``on_tick`` receives every new value, including the starting value and
    the final 0. ``on_expire`` runs once when the countdown runs out on its
    own; it does not run after :meth:`stop`.
    """

    def __init__(
        self,
        *,
        on_tick: Callable[[int], None],
        on_expire: Callable[[], None],
        tick_interval: float = DEFAULT_COUNTDOWN_TICK,
    ) -> None:
        self._on_tick = on_tick
        self._on_expire = on_expire
        self._tick_interval = tick_interval
        self._seconds_left = 0
        self._task: asyncio.Task[None] | None = None

    @property
    def seconds_left(self) -> int:
        return self._seconds_left

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, seconds: int) -> None:
        """(Re)start the countdown at *seconds*. Must be called on a running loop."""
        if seconds <= 0:
            self.stop()
            return
        self._cancel_task()
        self._seconds_left = seconds
        self._on_tick(seconds)
        self._task = asyncio.create_task(self._run(), name="rate-limit-countdown")
        logger.debug("Countdown started at %ds", seconds)

    def stop(self) -> None:
        """Cancel the countdown and reset it to 0 without firing ``on_expire``."""
        was_running = self.is_running
        self._cancel_task()
        if self._seconds_left != 0:
            self._seconds_left = 0
            self._on_tick(0)
        if was_running:
            logger.debug("Countdown stopped")

    async def aclose(self) -> None:
        """Stop the countdown and wait for its task to finish."""
        task = self._task
        self.stop()
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    def _cancel_task(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time()
        while True:
            # Absolute deadlines keep ticks from drifting
            deadline += self._tick_interval
            await asyncio.sleep(max(0.0, deadline - loop.time()))

            if self._seconds_left <= 1:
                self._seconds_left = 0
                self._task = None
                self._on_tick(0)
                logger.info("Rate-limit countdown expired")
                self._on_expire()
                return

            self._seconds_left -= 1
            self._on_tick(self._seconds_left)


class RateLimitTracker:
    """Own the latest RateLimitStatus and the cooldown countdown.

    Usage::

        tracker = RateLimitTracker(client, bus)
        await tracker.probe_rate_limit()
        if tracker.is_limited:
            print(tracker.countdown.seconds_left)
        ...
        await tracker.aclose()
    """

    def __init__(
        self,
        client: ScoringClient,
        bus: EventBus,
        *,
        tick_interval: float = DEFAULT_COUNTDOWN_TICK,
    ) -> None:
        self._client = client
        self._bus = bus
        self._status: RateLimitStatus | None = None
        self._countdown = CountdownTimer(
            on_tick=self._publish_tick,
            on_expire=self._schedule_reprobe,
            tick_interval=tick_interval,
        )
        self._background_tasks: set[asyncio.Task[RateLimitStatus]] = set()

    @property
    def status(self) -> RateLimitStatus | None:
        """Latest snapshot, or None before the first probe completes."""
        return self._status

    @property
    def is_limited(self) -> bool:
        return self._status is not None and self._status.is_limited

    @property
    def countdown(self) -> CountdownState:
        return CountdownState(seconds_left=self._countdown.seconds_left)

    async def probe_rate_limit(self) -> RateLimitStatus:
        """Probe ``/rate-limit`` and apply the result on arrival.

        Returns:
            The new RateLimitStatus. Never raises.
        """
        try:
            status = await self._client.get_rate_limit()
        except ServiceRequestError as exc:
            logger.warning("Rate-limit probe failed, assuming not limited: %s", exc)
            status = RateLimitStatus(is_limited=False, message=RATE_LIMIT_UNAVAILABLE_MESSAGE)
        except Exception:
            logger.exception("Rate-limit probe failed unexpectedly, assuming not limited")
            status = RateLimitStatus(is_limited=False, message=RATE_LIMIT_UNAVAILABLE_MESSAGE)

        self._apply(status)
        return status

    async def refresh(self) -> RateLimitStatus:
        """User-triggered refresh. Identical to the automatic probe."""
        return await self.probe_rate_limit()

    async def aclose(self) -> None:
        """Stop the countdown and cancel any outstanding background probe."""
        await self._countdown.aclose()
        pending = list(self._background_tasks)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._background_tasks.clear()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _apply(self, status: RateLimitStatus) -> None:
        self._status = status
        logger.info(
            "Rate-limit status: limited=%s seconds_remaining=%s",
            status.is_limited,
            status.seconds_remaining,
        )
        self._bus.publish(RateLimitChanged(status=status))

        if status.cooldown_seconds > 0:
            self._countdown.start(status.cooldown_seconds)
        elif not status.is_limited:
            self._countdown.stop()

    def _publish_tick(self, seconds_left: int) -> None:
        self._bus.publish(CountdownTicked(seconds_left=seconds_left))

    def _schedule_reprobe(self) -> None:
        task = asyncio.create_task(self.probe_rate_limit(), name="rate-limit-reprobe")
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
