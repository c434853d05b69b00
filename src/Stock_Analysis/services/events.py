"""Session events and the pub-sub bus that delivers them to presentation code.

Each owning component publishes an event after it replaces its state, so a
UI binding can re-render without polling. Handlers run synchronously on the
event loop thread in registration order; a handler that raises is logged and
skipped so one broken subscriber never blocks the others.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass

from Stock_Analysis.models.health import HealthStatus
from Stock_Analysis.models.rate_limit import RateLimitStatus
from Stock_Analysis.models.state import ControllerState

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Event types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SessionEvent:
    """Base class for all session events."""


@dataclass(frozen=True)
class HealthChanged(SessionEvent):
    status: HealthStatus


@dataclass(frozen=True)
class RateLimitChanged(SessionEvent):
    status: RateLimitStatus


@dataclass(frozen=True)
class CountdownTicked(SessionEvent):
    """Emitted on every countdown change, including the reset to 0."""

    seconds_left: int


@dataclass(frozen=True)
class ControllerStateChanged(SessionEvent):
    state: ControllerState


EventHandler = Callable[[SessionEvent], None]


# ---------------------------------------------------------------------------
# Bus
# ---------------------------------------------------------------------------


class EventBus:
    """Synchronous pub-sub for session events.

    Usage::

        bus = EventBus()
        bus.subscribe(CountdownTicked, lambda e: print(e.seconds_left))
        bus.publish(CountdownTicked(seconds_left=3))
    """

    def __init__(self) -> None:
        self._handlers: dict[type[SessionEvent], list[EventHandler]] = defaultdict(list)
        self._global_handlers: list[EventHandler] = []

    def subscribe(self, event_type: type[SessionEvent], handler: EventHandler) -> None:
        """Register *handler* for a specific *event_type*."""
        self._handlers[event_type].append(handler)

    def subscribe_all(self, handler: EventHandler) -> None:
        """Register *handler* to receive every published event."""
        self._global_handlers.append(handler)

    def unsubscribe(self, event_type: type[SessionEvent], handler: EventHandler) -> bool:
        """Remove *handler* from *event_type*. Returns ``True`` if found."""
        handlers = self._handlers.get(event_type, [])
        try:
            handlers.remove(handler)
        except ValueError:
            return False
        return True

    def unsubscribe_all(self, handler: EventHandler) -> bool:
        """Remove a global handler. Returns ``True`` if found."""
        try:
            self._global_handlers.remove(handler)
        except ValueError:
            return False
        return True

    def publish(self, event: SessionEvent) -> None:
        """Publish *event* to all matching handlers (global first, then typed)."""
        # Snapshot so handlers may (un)subscribe while being called
        global_snapshot = list(self._global_handlers)
        typed_snapshot = list(self._handlers.get(type(event), []))

        for handler in global_snapshot:
            try:
                handler(event)
            except Exception:
                logger.exception("Error in global event handler %r", handler)

        for handler in typed_snapshot:
            try:
                handler(event)
            except Exception:
                logger.exception("Error in handler %r for %s", handler, type(event).__name__)

    def handler_count(self, event_type: type[SessionEvent] | None = None) -> int:
        """Number of handlers for *event_type*, or of all handlers when None."""
        if event_type is None:
            typed = sum(len(h) for h in self._handlers.values())
            return typed + len(self._global_handlers)
        return len(self._handlers.get(event_type, []))

    def clear(self) -> None:
        """Remove every handler."""
        self._handlers.clear()
        self._global_handlers.clear()
