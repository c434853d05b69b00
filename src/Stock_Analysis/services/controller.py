"""Analysis request controller: a single-flight state machine.

States: Idle -> Pending -> Succeeded | Failed. Every failure of the request
path is caught here and turned into a ``Failed`` state carrying an advisory
message; nothing from the service escapes to presentation code. No failure
is retried automatically.

Submitting while Pending is a contract violation (the session's admission
gate prevents it) and raises SubmissionRejectedError without any I/O.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Final

from pydantic import ValidationError

from Stock_Analysis.analysis.recommendation import classify
from Stock_Analysis.models.analysis import AnalysisReport, AnalysisRequest
from Stock_Analysis.models.enums import AdmissionBlock, FailureKind
from Stock_Analysis.models.state import (
    ControllerState,
    ErrorInfo,
    Failed,
    Idle,
    Pending,
    Succeeded,
)
from Stock_Analysis.services.events import ControllerStateChanged, EventBus
from Stock_Analysis.services.rate_limit import RateLimitTracker
from Stock_Analysis.services.scoring_client import ScoringClient
from Stock_Analysis.utils.exceptions import (
    RateLimitExceededError,
    ServerResponseError,
    ServiceRequestError,
    ServiceUnreachableError,
    SubmissionRejectedError,
    UpstreamMisconfiguredError,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Advisory messages
# ---------------------------------------------------------------------------

EMPTY_INPUT_MESSAGE: Final[str] = "Please enter a stock name"
UNREACHABLE_MESSAGE: Final[str] = "Cannot connect to backend server. Is backend running?"
MISCONFIGURED_UPSTREAM_MESSAGE: Final[str] = "API key not configured."
RATE_LIMITED_PREFIX: Final[str] = "Rate limit reached."
SERVER_ERROR_PREFIX: Final[str] = "Analysis error occurred."
GENERIC_FAILURE_DETAIL: Final[str] = "Analysis failed"

_DETAIL_FROM_MESSAGE: Final[frozenset[FailureKind]] = frozenset(
    {FailureKind.RATE_LIMITED, FailureKind.UNREACHABLE}
)


class AnalysisController:
    """Drive one analysis submission at a time through its lifecycle.

    Usage::

        controller = AnalysisController(client, tracker, bus)
        state = await controller.submit("  TCS ")
        match state:
            case Succeeded(report=report):
                ...
            case Failed(error=error):
                print(error.message)
    """

    def __init__(
        self,
        client: ScoringClient,
        tracker: RateLimitTracker,
        bus: EventBus,
    ) -> None:
        self._client = client
        self._tracker = tracker
        self._bus = bus
        self._state: ControllerState = Idle()

    @property
    def state(self) -> ControllerState:
        return self._state

    @property
    def is_pending(self) -> bool:
        return isinstance(self._state, Pending)

    async def submit(self, raw_input: str) -> ControllerState:
        """Validate *raw_input*, send one request, and return the terminal state.

        Raises:
            SubmissionRejectedError: If a request is already Pending.
        """
        if self.is_pending:
            msg = "An analysis request is already in flight."
            raise SubmissionRejectedError(msg, reason=AdmissionBlock.REQUEST_PENDING)

        try:
            request = AnalysisRequest(query=raw_input)
        except ValidationError:
            logger.debug("Rejected empty submission %r", raw_input)
            return self._fail(FailureKind.EMPTY_INPUT, EMPTY_INPUT_MESSAGE)

        self._transition(Pending(request=request))

        try:
            result = await self._client.analyze(request)
        except RateLimitExceededError as exc:
            # Refresh the countdown before surfacing the failure
            await self._tracker.probe_rate_limit()
            return self._fail_from(exc, FailureKind.RATE_LIMITED)
        except UpstreamMisconfiguredError as exc:
            return self._fail_from(exc, FailureKind.MISCONFIGURED_UPSTREAM)
        except ServerResponseError as exc:
            return self._fail_from(exc, FailureKind.SERVER_ERROR)
        except ServiceUnreachableError as exc:
            return self._fail_from(exc, FailureKind.UNREACHABLE)
        except ServiceRequestError as exc:
            logger.warning("Unclassified service error for %r: %s", request.query, exc)
            return self._fail_from(exc, FailureKind.SERVER_ERROR)
        except asyncio.CancelledError:
            self._transition(Idle())
            raise
        except Exception as exc:
            logger.exception("Unexpected error analyzing %r", request.query)
            return self._fail(
                FailureKind.SERVER_ERROR,
                advisory_message(FailureKind.SERVER_ERROR, str(exc) or None),
                detail=str(exc) or None,
            )

        report = AnalysisReport(
            result=result,
            guidance=classify(result.confidence, result.recommendation),
        )
        return self._transition(Succeeded(report=report))

    def reset(self) -> ControllerState:
        """Return a terminal state to Idle.

        Raises:
            SubmissionRejectedError: If a request is Pending.
        """
        if self.is_pending:
            msg = "Cannot reset while an analysis request is in flight."
            raise SubmissionRejectedError(msg, reason=AdmissionBlock.REQUEST_PENDING)
        return self._transition(Idle())

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _transition(self, state: ControllerState) -> ControllerState:
        logger.debug("Controller state: %s -> %s", self._state.kind, state.kind)
        self._state = state
        self._bus.publish(ControllerStateChanged(state=state))
        return state

    def _fail(
        self,
        kind: FailureKind,
        message: str,
        *,
        detail: str | None = None,
        http_status: int | None = None,
    ) -> ControllerState:
        error = ErrorInfo(kind=kind, message=message, detail=detail, http_status=http_status)
        logger.info("Analysis failed: kind=%s status=%s detail=%s", kind, http_status, detail)
        return self._transition(Failed(error=error))

    def _fail_from(self, exc: ServiceRequestError, kind: FailureKind) -> ControllerState:
        detail = exc.detail
        if detail is None and kind in _DETAIL_FROM_MESSAGE:
            detail = str(exc)
        return self._fail(
            kind,
            advisory_message(kind, detail),
            detail=detail,
            http_status=exc.http_status,
        )


def advisory_message(kind: FailureKind, detail: str | None = None) -> str:
    """User-facing message for a failure kind."""
    if kind == FailureKind.EMPTY_INPUT:
        return EMPTY_INPUT_MESSAGE
    if kind == FailureKind.UNREACHABLE:
        return UNREACHABLE_MESSAGE
    if kind == FailureKind.MISCONFIGURED_UPSTREAM:
        return MISCONFIGURED_UPSTREAM_MESSAGE
    if kind == FailureKind.RATE_LIMITED:
        return f"{RATE_LIMITED_PREFIX} {detail}" if detail else RATE_LIMITED_PREFIX
    return f"{SERVER_ERROR_PREFIX} {detail or GENERIC_FAILURE_DETAIL}"
