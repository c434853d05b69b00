"""HTTP client for the remote stock scoring service.

Wraps a shared ``httpx.AsyncClient`` and translates every outcome that is not
a usable payload into the ``ServiceRequestError`` hierarchy:

- no response at all -> ServiceUnreachableError
- HTTP 429 -> RateLimitExceededError
- missing upstream API key -> UpstreamMisconfiguredError
- any other non-2xx or malformed body -> ServerResponseError

Callers (monitor, tracker, controller) decide how each failure surfaces.
"""

from __future__ import annotations

import logging
from typing import Any, Final, NoReturn

import httpx
from pydantic import ValidationError

from Stock_Analysis.config import ClientSettings
from Stock_Analysis.models.analysis import AnalysisRequest, AnalysisResult
from Stock_Analysis.models.rate_limit import RateLimitStatus
from Stock_Analysis.utils.exceptions import (
    RateLimitExceededError,
    ServerResponseError,
    ServiceUnreachableError,
    UpstreamMisconfiguredError,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

HEALTH_ENDPOINT: Final[str] = "/health"
RATE_LIMIT_ENDPOINT: Final[str] = "/rate-limit"
ANALYZE_ENDPOINT: Final[str] = "/analyze"

HTTP_TOO_MANY_REQUESTS: Final[int] = 429

# Structured error code, checked before falling back to message matching
MISSING_CREDENTIAL_CODE: Final[str] = "api_key_missing"
MISSING_CREDENTIAL_MARKER: Final[str] = "api key"


def indicates_missing_credential(detail: str | None, code: str | None = None) -> bool:
    """Return True if an error body says the service has no upstream API key.

    A structured ``code`` wins when present; otherwise the free-text detail
    is matched case-insensitively against ``"API key"``.
    """
    if code is not None:
        return code == MISSING_CREDENTIAL_CODE
    if not detail:
        return False
    return MISSING_CREDENTIAL_MARKER in detail.lower()


class ScoringClient:
    """Async client for the scoring service's health, rate-limit, and analyze endpoints.

    Usage::

        client = ScoringClient(ClientSettings.from_env())
        try:
            result = await client.analyze(AnalysisRequest(query="TCS"))
        finally:
            await client.aclose()

    An externally supplied ``httpx.AsyncClient`` is used as-is and is not
    closed by :meth:`aclose`.
    """

    def __init__(
        self,
        settings: ClientSettings | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings if settings is not None else ClientSettings.from_env()
        self._owns_client = http_client is None
        self._client = (
            http_client
            if http_client is not None
            else httpx.AsyncClient(
                timeout=httpx.Timeout(self._settings.request_timeout),
                headers={"Accept": "application/json"},
            )
        )

        logger.info("ScoringClient initialized: base_url=%s", self._settings.base_url)

    @property
    def base_url(self) -> str:
        return self._settings.base_url

    async def aclose(self) -> None:
        """Close the httpx client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    async def get_health(self) -> dict[str, Any]:
        """Fetch ``/health`` and return the decoded JSON object.

        Raises:
            ServiceUnreachableError: If no response was received.
            ServerResponseError: On a non-2xx status or a non-object body.
        """
        response = await self._send("GET", HEALTH_ENDPOINT)
        if not response.is_success:
            msg = f"Health endpoint returned HTTP {response.status_code}."
            raise ServerResponseError(
                msg,
                endpoint=HEALTH_ENDPOINT,
                http_status=response.status_code,
                detail=_extract_detail(response),
            )
        return _json_object(response, HEALTH_ENDPOINT)

    async def get_rate_limit(self) -> RateLimitStatus:
        """Fetch ``/rate-limit`` and parse it into a RateLimitStatus.

        Raises:
            ServiceUnreachableError: If no response was received.
            ServerResponseError: On a non-2xx status or an invalid body.
        """
        response = await self._send("GET", RATE_LIMIT_ENDPOINT)
        if not response.is_success:
            msg = f"Rate-limit endpoint returned HTTP {response.status_code}."
            raise ServerResponseError(
                msg,
                endpoint=RATE_LIMIT_ENDPOINT,
                http_status=response.status_code,
                detail=_extract_detail(response),
            )
        data = _json_object(response, RATE_LIMIT_ENDPOINT)
        try:
            return RateLimitStatus.model_validate(data)
        except (ValidationError, ArithmeticError) as exc:
            msg = "Rate-limit payload failed validation."
            raise ServerResponseError(
                msg,
                endpoint=RATE_LIMIT_ENDPOINT,
                http_status=response.status_code,
            ) from exc

    async def analyze(self, request: AnalysisRequest) -> AnalysisResult:
        """Submit one analysis request and return the parsed result.

        Raises:
            ServiceUnreachableError: If no response was received.
            RateLimitExceededError: On HTTP 429.
            UpstreamMisconfiguredError: If the body reports a missing API key.
            ServerResponseError: On any other non-2xx status or a malformed payload.
        """
        response = await self._send("POST", ANALYZE_ENDPOINT, json=request.to_payload())

        if response.status_code == HTTP_TOO_MANY_REQUESTS:
            detail = _extract_detail(response)
            logger.warning("Analysis for %r rejected: rate limited (%s)", request.query, detail)
            raise RateLimitExceededError(
                detail or "Rate limit exceeded",
                endpoint=ANALYZE_ENDPOINT,
                http_status=response.status_code,
                detail=detail,
            )

        if not response.is_success:
            self._raise_for_error_body(response)

        try:
            body = response.json()
        except ValueError as exc:
            msg = "Analysis response is not valid JSON."
            raise ServerResponseError(
                msg,
                endpoint=ANALYZE_ENDPOINT,
                http_status=response.status_code,
            ) from exc

        try:
            result = AnalysisResult.model_validate(body)
        except (ValidationError, ArithmeticError) as exc:
            # A 2xx body can still carry an error message instead of a result
            self._raise_for_error_body(response, cause=exc)

        logger.info(
            "Analysis for %r: %s (%d/100)",
            request.query,
            result.recommendation,
            result.confidence,
        )
        return result

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _send(
        self,
        method: str,
        endpoint: str,
        *,
        json: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Issue one request. Transport failures become ServiceUnreachableError."""
        url = f"{self._settings.base_url}{endpoint}"
        try:
            if method == "POST":
                response = await self._client.post(url, json=json)
            else:
                response = await self._client.get(url)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, endpoint, exc)
            raise ServiceUnreachableError(
                str(exc) or type(exc).__name__,
                endpoint=endpoint,
            ) from exc

        logger.debug("%s %s -> HTTP %d", method, endpoint, response.status_code)
        return response

    def _raise_for_error_body(
        self,
        response: httpx.Response,
        *,
        cause: Exception | None = None,
    ) -> NoReturn:
        """Raise the error matching an ``/analyze`` failure body. Never returns."""
        detail = _extract_detail(response)
        code = _extract_code(response)

        if indicates_missing_credential(detail, code):
            logger.error("Scoring service reports a missing upstream API key: %s", detail)
            raise UpstreamMisconfiguredError(
                detail or "API key not configured",
                endpoint=ANALYZE_ENDPOINT,
                http_status=response.status_code,
                detail=detail,
            ) from cause

        if response.is_success:
            msg = "Analysis payload failed validation."
        else:
            msg = f"Analysis failed with HTTP {response.status_code}."
        logger.warning("%s detail=%s", msg, detail)
        raise ServerResponseError(
            msg,
            endpoint=ANALYZE_ENDPOINT,
            http_status=response.status_code,
            detail=detail,
        ) from cause


def _json_object(response: httpx.Response, endpoint: str) -> dict[str, Any]:
    """Decode a JSON object body, raising ServerResponseError otherwise."""
    try:
        data = response.json()
    except ValueError as exc:
        msg = f"{endpoint} returned a non-JSON body."
        raise ServerResponseError(
            msg,
            endpoint=endpoint,
            http_status=response.status_code,
        ) from exc
    if not isinstance(data, dict):
        msg = f"{endpoint} returned {type(data).__name__}, expected an object."
        raise ServerResponseError(msg, endpoint=endpoint, http_status=response.status_code)
    return data


def _error_body(response: httpx.Response) -> dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def _extract_detail(response: httpx.Response) -> str | None:
    """Return the server's ``detail`` (or ``error``) message, if any."""
    body = _error_body(response)
    detail = body.get("detail", body.get("error"))
    if detail is None or detail == "":
        return None
    # FastAPI validation errors send a list of error objects
    return detail if isinstance(detail, str) else str(detail)


def _extract_code(response: httpx.Response) -> str | None:
    code = _error_body(response).get("code")
    return code if isinstance(code, str) else None
