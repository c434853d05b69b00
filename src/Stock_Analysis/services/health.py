"""Connectivity monitor for the remote scoring service.

Probes ``/health`` once per call. A failed probe is an expected outcome, not
an exceptional one: unreachable hosts, timeouts, non-JSON bodies and error
statuses all produce an ``offline`` HealthStatus instead of raising. There
are no retries; the caller decides whether to probe again.
"""

from __future__ import annotations

import datetime
import logging
from typing import Any, Final

from Stock_Analysis.models.enums import ConnectionState
from Stock_Analysis.models.health import HealthStatus
from Stock_Analysis.services.events import EventBus, HealthChanged
from Stock_Analysis.services.scoring_client import ScoringClient
from Stock_Analysis.utils.exceptions import ServiceRequestError

logger = logging.getLogger(__name__)

HEALTHY_STATUS: Final[str] = "healthy"
UNEXPECTED_FAILURE_DETAIL: Final[str] = "Health check failed"


class HealthMonitor:
    """Track whether the scoring service is reachable and healthy.

    Usage::

        monitor = HealthMonitor(client, bus)
        status = await monitor.probe_health()
        if not status.is_healthy:
            logger.warning("Backend offline: %s", status.detail)
    """

    def __init__(self, client: ScoringClient, bus: EventBus) -> None:
        self._client = client
        self._bus = bus
        self._status: HealthStatus | None = None

    @property
    def status(self) -> HealthStatus | None:
        """Latest snapshot, or None before the first probe completes."""
        return self._status

    async def probe_health(self) -> HealthStatus:
        """Probe ``/health`` and replace the current status.

        Returns:
            The new HealthStatus. Never raises.
        """
        now = datetime.datetime.now(datetime.UTC)
        try:
            data = await self._client.get_health()
        except ServiceRequestError as exc:
            logger.warning("Health probe failed: %s", exc)
            status = HealthStatus(state=ConnectionState.OFFLINE, detail=str(exc), checked_at=now)
        except Exception:
            logger.exception("Health probe failed unexpectedly")
            status = HealthStatus(
                state=ConnectionState.OFFLINE, detail=UNEXPECTED_FAILURE_DETAIL, checked_at=now
            )
        else:
            status = _status_from_payload(data, now)

        self._status = status
        logger.info(
            "Health probe complete: state=%s api_key_configured=%s",
            status.state,
            status.api_key_configured,
        )
        self._bus.publish(HealthChanged(status=status))
        return status


def _status_from_payload(data: dict[str, Any], checked_at: datetime.datetime) -> HealthStatus:
    """Map a ``/health`` body to a HealthStatus. Anything but ``healthy`` is offline."""
    reported = data.get("status")
    api_key = data.get("api_key_configured")
    api_key_configured = api_key if isinstance(api_key, bool) else None

    if reported == HEALTHY_STATUS:
        return HealthStatus(
            state=ConnectionState.HEALTHY,
            api_key_configured=api_key_configured,
            checked_at=checked_at,
        )
    return HealthStatus(
        state=ConnectionState.OFFLINE,
        detail=f"Service reported status {reported!r}",
        api_key_configured=api_key_configured,
        checked_at=checked_at,
    )
